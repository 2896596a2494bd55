"""Quick Pick: free recommendation by curated tag overlap.

Algorithm:
1. No filters -> uniformly random recipe.
2. Primary: recipes sharing curated tags, highest match count wins,
   ties broken at random. Quality is perfect / great / close.
3. Weak primary (none, or fewer than half the filters matched) -> expand
   filters with the synonym expander and look for ai_tags hits. A recipe
   with at least one inferred hit is returned as an "inferred" match.
4. Otherwise the primary result, or a random recipe marked "none".
"""

import random
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import Recipe
from .recipe_store import RecipeStore
from .tag_normalizer import SynonymExpander, default_expander, expand_all

logger = logging.getLogger("mealpick.quick_pick")

GREAT_RATIO = 0.66
WEAK_RATIO = 0.5

NO_MATCH_NOTE = "No exact match, showing anyway"


@dataclass
class MatchResult:
    recipe: Recipe
    match_quality: Optional[str] = None  # perfect | great | close | inferred | none
    match_count: int = 0
    inferred_hits: int = 0
    note: Optional[str] = None


def classify_quality(match_count: int, filter_count: int) -> str:
    if match_count >= filter_count:
        return "perfect"
    if match_count >= GREAT_RATIO * filter_count:
        return "great"
    return "close"


def is_weak(best_count: int, filter_count: int) -> bool:
    return best_count == 0 or best_count < WEAK_RATIO * filter_count


class QuickPickMatcher:
    def __init__(
        self,
        db: Session,
        expander: Optional[SynonymExpander] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = RecipeStore(db)
        self.expander = expander or default_expander
        self.rng = rng or random.Random()

    def pick(self, filters: List[str]) -> Optional[MatchResult]:
        """Return a recommendation, or None if there are no recipes at all."""
        if not filters:
            recipe = self.store.get_random(self.rng)
            if recipe is None:
                return None
            return MatchResult(recipe=recipe)

        n = len(filters)
        primary = self._best_curated(filters)
        best_count = primary.match_count if primary else 0

        if is_weak(best_count, n):
            inferred = self._best_inferred(filters)
            if inferred is not None:
                logger.info(
                    f"Weak curated match ({best_count}/{n}), using inferred match "
                    f"'{inferred.recipe.name}' hits={inferred.inferred_hits}"
                )
                return inferred

        if primary is not None:
            return primary

        recipe = self.store.get_random(self.rng)
        if recipe is None:
            return None
        logger.info(f"No match for filters={filters}, returning random recipe")
        return MatchResult(recipe=recipe, match_quality="none", note=NO_MATCH_NOTE)

    def _best_curated(self, filters: List[str]) -> Optional[MatchResult]:
        matches = self.store.find_by_tag_overlap(filters)
        if not matches:
            return None
        top = matches[0].match_count
        chosen = self.rng.choice([m for m in matches if m.match_count == top])
        return MatchResult(
            recipe=chosen.recipe,
            match_quality=classify_quality(top, len(filters)),
            match_count=top,
        )

    def _best_inferred(self, filters: List[str]) -> Optional[MatchResult]:
        patterns = expand_all(filters, self.expander)
        ranked = [
            m for m in self.store.find_by_inferred_tag_like(patterns, filters)
            if m.inferred_count >= 1
        ]
        if not ranked:
            return None
        top_key = (ranked[0].match_count, ranked[0].inferred_count)
        chosen = self.rng.choice(
            [m for m in ranked if (m.match_count, m.inferred_count) == top_key]
        )
        return MatchResult(
            recipe=chosen.recipe,
            match_quality="inferred",
            match_count=chosen.match_count,
            inferred_hits=chosen.inferred_count,
        )
