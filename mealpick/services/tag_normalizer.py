"""Filter identifier normalization and synonym expansion.

The UI sends short identifiers ("quick", "main-dish", "any-time"). These map
to the canonical tag strings stored on recipes. Identifiers without a mapping
are passed through unchanged so a newly introduced tag is filterable without
a code change.
"""

import re
from typing import Iterable, List, Protocol

ANY_MARKER = "any"
ANY_PREFIX = "any-"

FILTER_TAG_MAP = {
    # Time
    "quick": "Quick (< 30 min)",
    "medium-time": "Medium (30-60 min)",
    "long": "Long (> 60 min)",
    # Difficulty
    "easy": "Easy",
    "medium-difficulty": "Medium",
    "complex": "Hard",
    "hard": "Hard",
    # Course
    "main": "Main Dish",
    "main-dish": "Main Dish",
    "side": "Side Dish",
    "side-dish": "Side Dish",
    "salad": "Salad",
    "soup": "Soup",
    "dessert": "Dessert",
    "appetizer": "Appetizer",
    "beverage": "Beverage",
    "sauce": "Sauce/Condiment",
    # Meal type
    "breakfast": "Breakfast",
    "brunch": "Brunch",
    "lunch": "Lunch",
    "dinner": "Dinner",
    "snack": "Snack",
    # Characteristics
    "healthy": "Healthy",
    "comfort": "Comfort Food",
    "filling": "Hearty",
    "hearty": "Hearty",
    "light": "Light",
    "spicy": "Spicy",
    "kid-friendly": "Kid-Friendly",
    "make-ahead": "Make-Ahead",
    "meal-prep": "Meal Prep",
    # Dietary
    "vegetarian": "Vegetarian",
    "vegan": "Vegan",
    "gluten-free": "Gluten-Free",
    "dairy-free": "Dairy-Free",
    "low-carb": "Low-Carb",
    # Method
    "slow-cooker": "Slow Cooker",
    "instant-pot": "Instant Pot",
    "one-pot": "One-Pot",
    "grilled": "Grilled",
    "baked": "Baked",
    "no-cook": "No-Cook",
    # Cuisine
    "american": "American",
    "italian": "Italian",
    "mexican": "Mexican",
    "asian": "Asian",
    "indian": "Indian",
    "mediterranean": "Mediterranean",
    "thai": "Thai",
    "chinese": "Chinese",
    "japanese": "Japanese",
    "korean": "Korean",
    "greek": "Greek",
}

# keyword found in a canonical tag -> related phrases likely to appear in ai_tags
SYNONYM_RULES = {
    "quick": ["fast", "weeknight", "30 min", "speedy"],
    "easy": ["simple", "beginner", "minimal prep"],
    "long": ["weekend", "project", "low and slow"],
    "healthy": ["light", "fresh", "nutritious", "lean", "veggie"],
    "light": ["fresh", "bright", "not heavy"],
    "comfort": ["cozy", "hearty", "rich", "indulgent"],
    "hearty": ["filling", "satisfying", "stick-to-your-ribs"],
    "main dish": ["dinner", "entree", "main course"],
    "side dish": ["side", "accompaniment"],
    "dessert": ["sweet", "treat"],
    "breakfast": ["morning", "brunch"],
    "spicy": ["heat", "chili", "kick"],
    "kid": ["family", "kid", "picky eater"],
    "make-ahead": ["meal prep", "leftovers", "freezer"],
    "meal prep": ["make ahead", "leftovers", "batch"],
    "slow cooker": ["crockpot", "hands-off", "set and forget"],
    "one-pot": ["one pan", "sheet pan", "easy cleanup"],
    "vegetarian": ["meatless", "plant", "veggie"],
    "vegan": ["plant-based", "dairy-free", "meatless"],
    "grilled": ["charred", "smoky", "bbq"],
    "no-cook": ["no cook", "raw", "assembly"],
}

_PAREN_RE = re.compile(r"\s*\(.*?\)\s*")


def is_wildcard(identifier: str) -> bool:
    return identifier == ANY_MARKER or identifier.startswith(ANY_PREFIX)


def normalize_filters(identifiers: Iterable[str]) -> List[str]:
    """Map UI filter identifiers to canonical tags.

    Wildcards and blanks are dropped, unknown identifiers pass through as-is,
    duplicates are removed keeping the first occurrence.
    """
    out: List[str] = []
    for raw in identifiers or []:
        ident = (raw or "").strip()
        if not ident:
            continue
        key = ident.lower()
        if is_wildcard(key):
            continue
        tag = FILTER_TAG_MAP.get(key, ident)
        if tag not in out:
            out.append(tag)
    return out


class SynonymExpander(Protocol):
    def expand(self, tag: str) -> List[str]:
        ...


class KeywordSynonymExpander:
    """Substring keyword rules. Best effort, not exhaustive."""

    def __init__(self, rules: dict[str, list[str]] | None = None):
        self.rules = rules if rules is not None else SYNONYM_RULES

    def expand(self, tag: str) -> List[str]:
        lowered = (tag or "").strip().lower()
        if not lowered:
            return []

        phrases = [lowered]
        head = _PAREN_RE.sub(" ", lowered).strip()
        if head and head != lowered:
            phrases.append(head)

        for keyword, related in self.rules.items():
            if keyword in lowered:
                phrases.extend(related)

        seen = set()
        return [p for p in phrases if not (p in seen or seen.add(p))]


default_expander = KeywordSynonymExpander()


def expand_all(tags: Iterable[str], expander: SynonymExpander | None = None) -> List[str]:
    expander = expander or default_expander
    out: List[str] = []
    for tag in tags:
        for phrase in expander.expand(tag):
            phrase = phrase.lower()
            if phrase not in out:
                out.append(phrase)
    return out
