"""Curated tag suggestion and batch re-tagging.

Curated `tags` come from a fixed vocabulary. The re-tagging job replaces a
recipe's curated tags wholesale; it never touches `ai_tags`.
"""

import time
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.ai_client import ai_client, AIRequestError
from ..core.text import extract_json, clamp
from ..models import Recipe
from . import usage_ledger
from .recipe_store import RecipeStore

logger = logging.getLogger("mealpick.tagging")

FEATURE = "tag_suggestion"

TAG_VOCABULARY = {
    "Meal Type": ["Breakfast", "Lunch", "Dinner", "Brunch", "Snack"],
    "Course": ["Appetizer", "Main Dish", "Side Dish", "Salad", "Soup", "Dessert", "Beverage", "Sauce/Condiment"],
    "Dietary": ["Vegetarian", "Vegan", "Gluten-Free", "Dairy-Free", "Nut-Free", "Low-Carb", "Keto", "Paleo"],
    "Cuisine": ["American", "Italian", "Mexican", "Asian", "Indian", "Mediterranean", "French", "Thai",
                "Korean", "Japanese", "Chinese", "Greek", "Middle Eastern"],
    "Cooking Method": ["Baked", "Grilled", "Fried", "Slow Cooker", "Instant Pot", "One-Pot", "No-Cook",
                       "Roasted", "Sautéed", "Steamed"],
    "Time": ["Quick (< 30 min)", "Medium (30-60 min)", "Long (> 60 min)"],
    "Difficulty": ["Easy", "Medium", "Hard"],
    "Characteristics": ["Healthy", "Comfort Food", "Kid-Friendly", "Party Food", "Make-Ahead", "Meal Prep",
                        "Spicy", "Sweet", "Savory", "Fresh", "Hearty", "Light"],
}

ALL_TAGS = {t for tags in TAG_VOCABULARY.values() for t in tags}

# name keyword -> tags, for when AI is off or fails
HEURISTIC_KEYWORDS = {
    "salad": ["Salad", "Healthy", "Fresh"],
    "soup": ["Soup", "Comfort Food"],
    "stew": ["Soup", "Hearty", "Comfort Food"],
    "cookie": ["Dessert", "Sweet", "Baked"],
    "cake": ["Dessert", "Sweet", "Baked"],
    "pasta": ["Main Dish", "Italian", "Comfort Food"],
    "taco": ["Main Dish", "Mexican"],
    "curry": ["Main Dish", "Indian", "Spicy"],
    "salmon": ["Main Dish", "Healthy"],
    "tofu": ["Main Dish", "Vegetarian", "Asian"],
    "pancake": ["Breakfast", "Sweet"],
    "quick": ["Quick (< 30 min)", "Easy"],
    "easy": ["Easy"],
}


def _vocabulary_text() -> str:
    return "\n".join(f"{cat}: {', '.join(tags)}" for cat, tags in TAG_VOCABULARY.items())


def heuristic_tags(name: str) -> List[str]:
    lowered = (name or "").lower()
    out: List[str] = []
    for keyword, tags in HEURISTIC_KEYWORDS.items():
        if keyword in lowered:
            out.extend(t for t in tags if t not in out)
    return out


class TagSuggester:
    def __init__(self, db: Session, client=None):
        self.db = db
        self.client = client or ai_client

    def build_prompt(
        self,
        name: str,
        ingredients: Optional[str] = None,
        directions: Optional[str] = None,
        prep_time: Optional[str] = None,
        cook_time: Optional[str] = None,
    ) -> str:
        details = [f"**Recipe Name:** {name}"]
        if ingredients:
            details.append(f"**Ingredients:**\n{clamp(ingredients, 800)}")
        if directions:
            details.append(f"**Directions:**\n{clamp(directions, 800)}")
        if prep_time:
            details.append(f"**Prep Time:** {prep_time}")
        if cook_time:
            details.append(f"**Cook Time:** {cook_time}")

        return (
            "Analyze this recipe and assign 4-8 tags that accurately describe it.\n\n"
            + "\n\n".join(details)
            + "\n\n**Available Tags by Category:**\n"
            + _vocabulary_text()
            + "\n\nInclude at least one tag from Course, Time and Difficulty. "
            'Return ONLY a JSON array of tags. Example: ["Main Dish", "Italian", "Medium (30-60 min)", "Medium"]'
        )

    def suggest(
        self,
        name: str,
        ingredients: Optional[str] = None,
        directions: Optional[str] = None,
        prep_time: Optional[str] = None,
        cook_time: Optional[str] = None,
    ) -> tuple[List[str], str]:
        """Return (tags, source) where source is "ai" or "heuristic"."""
        if self.client.mode == "mock":
            return heuristic_tags(name), "heuristic"

        prompt = self.build_prompt(name, ingredients, directions, prep_time, cook_time)
        try:
            text = self.client.complete(prompt, max_output_tokens=200)
        except AIRequestError as e:
            logger.error(f"Tag suggestion failed for '{name}': {e}")
            return heuristic_tags(name), "heuristic"

        # The call happened, so it is billed whether or not the reply parses
        usage_ledger.record(self.db, FEATURE)

        try:
            raw = extract_json(text, list)
        except ValueError as e:
            logger.warning(f"Could not parse tags for '{name}': {e}")
            return heuristic_tags(name), "heuristic"

        tags = []
        for tag in raw:
            if isinstance(tag, str) and tag.strip() and tag.strip() not in tags:
                tags.append(tag.strip())
        unknown = [t for t in tags if t not in ALL_TAGS]
        if unknown:
            logger.info(f"Tags outside vocabulary for '{name}': {unknown}")
        return tags[:8], "ai"


def retag_recipe(db: Session, recipe: Recipe, suggester: Optional[TagSuggester] = None) -> Optional[List[str]]:
    """Replace curated tags with a fresh suggestion. Returns the new tags,
    or None when the recipe was left unchanged."""
    suggester = suggester or TagSuggester(db)
    tags, source = suggester.suggest(
        recipe.name,
        ingredients=recipe.ingredients,
        directions=recipe.directions,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
    )
    if not tags:
        logger.info(f"No tags suggested for '{recipe.name}', keeping {recipe.tags}")
        return None
    if not RecipeStore(db).replace_tags(recipe.id, tags):
        return None
    logger.info(f"Retagged '{recipe.name}' ({source}): {tags}")
    return tags


def retag_all(db: Session, suggester: Optional[TagSuggester] = None, delay_sec: float = 0.6) -> dict:
    """Re-tag every recipe, pausing between calls to stay under rate limits."""
    suggester = suggester or TagSuggester(db)
    recipe_ids = list(db.scalars(select(Recipe.id).order_by(Recipe.name)))
    stats = {"total": len(recipe_ids), "updated": 0, "unchanged": 0}

    for i, recipe_id in enumerate(recipe_ids, start=1):
        recipe = db.get(Recipe, recipe_id)
        if recipe is None:
            continue
        logger.info(f"[{i}/{len(recipe_ids)}] Tagging: {recipe.name}")
        if retag_recipe(db, recipe, suggester) is not None:
            stats["updated"] += 1
        else:
            stats["unchanged"] += 1
        if delay_sec and i < len(recipe_ids):
            time.sleep(delay_sec)

    return stats
