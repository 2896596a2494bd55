"""Smart Match: AI-assisted recipe choice with inferred-tag write-back.

Flow:
1. Shortlist recipes whose curated tags overlap the filters (shuffled, capped).
2. Empty shortlist -> random recipe, no AI call, nothing recorded.
3. Ask the reasoning service to pick one candidate, explain why, and
   describe it with new short phrases.
4. Append the phrases to the recipe's ai_tags, stamp the metadata and
   record one usage row. These writes are best effort. Mock mode skips
   them, since no call was made.

Any failure of the call itself (transport, timeout, unparsable reply,
no usable new_tags)
raises SmartMatchError; the caller falls back to Quick Pick.
"""

import re
import json
import random
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from ..core.ai_client import ai_client, AIRequestError
from ..core.text import extract_json, clamp
from ..models import Recipe
from ..settings import settings
from . import usage_ledger
from .recipe_store import RecipeStore, TagMatch

logger = logging.getLogger("mealpick.smart_match")

FEATURE = "smart_match"
MAX_TAG_CHARS = 120


class SmartMatchError(Exception):
    """The external reasoning step failed; no recommendation was produced."""


class SmartMatchChoice(BaseModel):
    choice: int = Field(description="1-based number of the chosen candidate")
    reasoning: str
    new_tags: List[str] = Field(min_length=1)


@dataclass
class SmartMatchResult:
    recipe: Recipe
    reasoning: Optional[str] = None
    new_tags: List[str] = field(default_factory=list)
    match_count: int = 0
    fallback: bool = False
    tags_saved: bool = False
    usage_recorded: bool = False


def clean_inferred_tags(raw: List[str], limit: int) -> List[str]:
    """Lowercase, trim and collapse whitespace. Duplicates are kept."""
    out = []
    for tag in raw or []:
        if not isinstance(tag, str):
            continue
        tag = re.sub(r"\s+", " ", tag).strip().strip("\"'.,;").strip().lower()
        if tag:
            out.append(tag[:MAX_TAG_CHARS])
    return out[:limit]


class SmartMatchSelector:
    def __init__(
        self,
        db: Session,
        client=None,
        rng: Optional[random.Random] = None,
        shortlist_size: Optional[int] = None,
    ):
        self.db = db
        self.store = RecipeStore(db)
        self.client = client or ai_client
        self.rng = rng or random.Random()
        self.shortlist_size = shortlist_size or settings.smart_match_shortlist_size

    def shortlist(self, filters: List[str]) -> List[TagMatch]:
        matches = self.store.find_by_tag_overlap(filters)
        self.rng.shuffle(matches)
        return matches[:self.shortlist_size]

    def select(self, filters: List[str]) -> Optional[SmartMatchResult]:
        """Pick a recipe for non-empty filters. None only when the store is empty."""
        if not filters:
            raise ValueError("Smart Match requires at least one filter")

        candidates = self.shortlist(filters)
        if not candidates:
            recipe = self.store.get_random(self.rng)
            if recipe is None:
                return None
            logger.info(f"No Smart Match candidates for {filters}, returning random recipe")
            return SmartMatchResult(recipe=recipe, fallback=True)

        prompt = self.build_prompt(filters, candidates)
        choice = self._ask(prompt, candidates)

        picked = candidates[choice.choice - 1]
        recipe = picked.recipe
        recipe_id = recipe.id
        new_tags = clean_inferred_tags(choice.new_tags, settings.smart_match_max_new_tags)
        if not new_tags:
            raise SmartMatchError("Reply carried no usable new_tags")

        tags_saved = usage_recorded = False
        if self.client.mode == "mock":
            # Canned reply: nothing was called, so nothing is stored or billed
            logger.info("Smart Match mock reply, skipping ai_tags write-back and usage")
        else:
            tags_saved = self.store.append_inferred_tags(recipe_id, new_tags)
            if tags_saved:
                self.store.touch_inferred_metadata(recipe_id)
            usage_recorded = usage_ledger.record(self.db, FEATURE)

        try:
            self.db.refresh(recipe)
        except Exception as e:
            logger.error(f"Could not refresh recipe {recipe_id} after Smart Match: {e}")

        logger.info(
            f"Smart Match chose '{recipe.name}' ({choice.choice}/{len(candidates)}), "
            f"new_tags={len(new_tags)} saved={tags_saved} usage={usage_recorded}"
        )
        return SmartMatchResult(
            recipe=recipe,
            reasoning=choice.reasoning.strip(),
            new_tags=new_tags,
            match_count=picked.match_count,
            tags_saved=tags_saved,
            usage_recorded=usage_recorded,
        )

    def _ask(self, prompt: str, candidates: List[TagMatch]) -> SmartMatchChoice:
        if self.client.mode == "mock":
            text = self._mock_reply(candidates)
        else:
            try:
                text = self.client.complete(prompt, timeout=settings.ai_timeout_seconds)
            except AIRequestError as e:
                raise SmartMatchError(f"Reasoning call failed: {e}") from e

        try:
            choice = SmartMatchChoice.model_validate(extract_json(text, dict))
        except (ValueError, ValidationError) as e:
            logger.error(f"Unparsable Smart Match reply: {clamp(text, 200)!r}")
            raise SmartMatchError(f"Unparsable reply: {e}") from e

        if not 1 <= choice.choice <= len(candidates):
            raise SmartMatchError(
                f"Choice {choice.choice} out of range 1..{len(candidates)}"
            )
        return choice

    def build_prompt(self, filters: List[str], candidates: List[TagMatch]) -> str:
        lines = []
        for i, match in enumerate(candidates, start=1):
            r = match.recipe
            ingredients = clamp(
                (r.ingredients or "").replace("\n", ", "),
                settings.smart_match_ingredient_chars,
            )
            lines.append(
                f"{i}. {r.name} | Prep: {r.prep_time or 'N/A'} | Cook: {r.cook_time or 'N/A'} "
                f"| Servings: {r.servings or 'N/A'} | Tags: {', '.join(r.tags or []) or 'none'} "
                f"| Ingredients: {ingredients or 'N/A'}"
            )
        listing = "\n".join(lines)

        return f"""
You are helping a household decide what to cook tonight.
They asked for: {', '.join(filters)}

Candidate recipes:
{listing}

Choose the ONE best candidate. Weigh:
- how many of the requested criteria it meets
- whether its time and cooking method fit the request
- whether its ingredients suit the request
- overall practicality for a home cook

Then write 5-10 NEW short descriptive phrases (2-4 words, lowercase) about the
chosen recipe covering cooking context, ingredient characteristics, meal
characteristics, flavor profile and practical handling
(e.g. "weeknight friendly", "pantry staples", "crowd pleaser").

Respond with ONLY a JSON object, no markdown:
{{
  "choice": <candidate number>,
  "reasoning": "1-2 sentences on why this recipe fits",
  "new_tags": ["phrase one", "phrase two"]
}}
"""

    def _mock_reply(self, candidates: List[TagMatch]) -> str:
        recipe = candidates[0].recipe
        tags = [f"mock {t.lower()}" for t in (recipe.tags or [])][:5] or ["mock pick"]
        return json.dumps({
            "choice": 1,
            "reasoning": f"[AI MOCK] {recipe.name} matches the most requested criteria.",
            "new_tags": tags,
        })
