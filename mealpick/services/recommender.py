import random
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import Recipe
from .quick_pick import QuickPickMatcher, NO_MATCH_NOTE, classify_quality
from .smart_match import SmartMatchSelector, SmartMatchError
from .tag_normalizer import SynonymExpander, normalize_filters

logger = logging.getLogger("mealpick.recommend")


@dataclass
class Recommendation:
    recipe: Recipe
    filters: List[str]
    source: str  # quick_pick | smart_match
    match_quality: Optional[str] = None
    match_count: int = 0
    inferred_hits: int = 0
    reasoning: Optional[str] = None
    new_tags: Optional[List[str]] = None
    downgraded: bool = False
    note: Optional[str] = None


class Recommender:
    """Routes a cooking request to Smart Match or Quick Pick.

    Smart Match runs only when asked for and there is at least one usable
    filter. If it fails the request is answered by Quick Pick and marked
    `downgraded`.
    """

    def __init__(
        self,
        db: Session,
        client=None,
        expander: Optional[SynonymExpander] = None,
        rng: Optional[random.Random] = None,
    ):
        rng = rng or random.Random()
        self.quick = QuickPickMatcher(db, expander=expander, rng=rng)
        self.smart = SmartMatchSelector(db, client=client, rng=rng)

    def recommend(self, filter_ids: List[str], smart_match: bool = False) -> Optional[Recommendation]:
        """None means there are no recipes to recommend."""
        filters = normalize_filters(filter_ids)
        downgraded = False

        if smart_match and filters:
            try:
                result = self.smart.select(filters)
            except SmartMatchError as e:
                logger.warning(f"Smart Match failed, falling back to Quick Pick: {e}")
                downgraded = True
            else:
                if result is None:
                    return None
                if result.fallback:
                    return Recommendation(
                        recipe=result.recipe,
                        filters=filters,
                        source="smart_match",
                        match_quality="none",
                        note=NO_MATCH_NOTE,
                    )
                return Recommendation(
                    recipe=result.recipe,
                    filters=filters,
                    source="smart_match",
                    match_quality=classify_quality(result.match_count, len(filters)),
                    match_count=result.match_count,
                    reasoning=result.reasoning,
                    new_tags=result.new_tags,
                )

        picked = self.quick.pick(filters)
        if picked is None:
            return None
        return Recommendation(
            recipe=picked.recipe,
            filters=filters,
            source="quick_pick",
            match_quality=picked.match_quality,
            match_count=picked.match_count,
            inferred_hits=picked.inferred_hits,
            downgraded=downgraded,
            note=picked.note,
        )
