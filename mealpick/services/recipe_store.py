"""Recipe store queries used by the recommendation engine.

The database is the single source of truth. Overlap prefilters run in SQL
on Postgres (GIN-indexed array operators); match counting happens in Python
on the returned rows, which keeps the ranking identical across dialects.
"""

import random
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import sqlalchemy as sa
from sqlalchemy import func, or_, select, update, String
from sqlalchemy.dialects.postgresql import ARRAY as PG_ARRAY
from sqlalchemy.orm import Session

from ..models import Recipe

logger = logging.getLogger("mealpick.store")


@dataclass
class TagMatch:
    recipe: Recipe
    match_count: int


@dataclass
class InferredMatch:
    recipe: Recipe
    match_count: int
    inferred_count: int


def curated_overlap(recipe_tags: Optional[Iterable[str]], filters: Iterable[str]) -> int:
    """Number of filter tags present in the recipe's curated tags."""
    have = set(recipe_tags or [])
    return sum(1 for t in set(filters) if t in have)


def inferred_hits(ai_tags: Optional[Iterable[str]], patterns: Iterable[str]) -> int:
    """Number of ai_tags entries containing any pattern, case-insensitively.

    Duplicate entries each count.
    """
    lowered = [p.lower() for p in patterns if p]
    if not lowered:
        return 0
    return sum(
        1 for tag in (ai_tags or [])
        if any(p in (tag or "").lower() for p in lowered)
    )


class RecipeStore:
    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    # --- Reads ---

    def count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(Recipe)) or 0

    def get(self, recipe_id: str) -> Optional[Recipe]:
        return self.db.get(Recipe, recipe_id)

    def list_recipes(self, tag: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[Recipe]:
        stmt = select(Recipe).order_by(Recipe.name, Recipe.id)
        if tag and self.dialect == "postgresql":
            stmt = stmt.where(self._tags_overlap([tag]))
            return list(self.db.scalars(stmt.offset(offset).limit(limit)))

        recipes = list(self.db.scalars(stmt))
        if tag:
            recipes = [r for r in recipes if tag in (r.tags or [])]
        return recipes[offset:offset + limit]

    def get_random(self, rng: Optional[random.Random] = None) -> Optional[Recipe]:
        """Uniformly random recipe, or None when the store is empty."""
        rng = rng or random
        total = self.count()
        if total == 0:
            return None
        offset = rng.randrange(total)
        stmt = select(Recipe).order_by(Recipe.id).offset(offset).limit(1)
        return self.db.scalars(stmt).first()

    def find_by_tag_overlap(self, tags: List[str]) -> List[TagMatch]:
        """Recipes sharing at least one curated tag, highest match count first."""
        if not tags:
            return []

        stmt = select(Recipe)
        if self.dialect == "postgresql":
            stmt = stmt.where(self._tags_overlap(tags))

        matches = []
        for recipe in self.db.scalars(stmt):
            count = curated_overlap(recipe.tags, tags)
            if count > 0:
                matches.append(TagMatch(recipe=recipe, match_count=count))

        matches.sort(key=lambda m: m.match_count, reverse=True)
        return matches

    def find_by_inferred_tag_like(self, patterns: List[str], curated_tags: List[str]) -> List[InferredMatch]:
        """Recipes whose ai_tags contain any pattern or whose curated tags overlap.

        Ranked by (curated count, inferred count) descending.
        """
        stmt = select(Recipe)
        if self.dialect == "postgresql":
            conditions = [func.coalesce(func.cardinality(Recipe.ai_tags), 0) > 0]
            if curated_tags:
                conditions.append(self._tags_overlap(curated_tags))
            stmt = stmt.where(or_(*conditions))

        matches = []
        for recipe in self.db.scalars(stmt):
            curated = curated_overlap(recipe.tags, curated_tags)
            inferred = inferred_hits(recipe.ai_tags, patterns)
            if curated or inferred:
                matches.append(InferredMatch(recipe=recipe, match_count=curated, inferred_count=inferred))

        matches.sort(key=lambda m: (m.match_count, m.inferred_count), reverse=True)
        return matches

    # --- Writes (best effort: log, roll back, report False) ---

    def append_inferred_tags(self, recipe_id: str, tags: List[str]) -> bool:
        """Append to ai_tags in a single UPDATE so concurrent appends all land."""
        if not tags:
            return True
        try:
            if self.dialect not in ("postgresql", "sqlite"):
                return self._append_locked(recipe_id, tags)
            stmt = (
                update(Recipe)
                .where(Recipe.id == recipe_id)
                .values(ai_tags=self._append_expr(list(tags)))
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
            self.db.commit()
            if result.rowcount == 0:
                logger.warning(f"append_inferred_tags: recipe {recipe_id} not found")
                return False
            logger.info(f"Appended {len(tags)} ai_tags to recipe {recipe_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to append ai_tags to recipe {recipe_id}: {e}")
            return False

    def touch_inferred_metadata(self, recipe_id: str, when: Optional[datetime] = None) -> bool:
        """Stamp ai_tags_updated_at, never moving it backwards."""
        when = when or datetime.now(timezone.utc)
        try:
            self.db.execute(
                update(Recipe)
                .where(
                    Recipe.id == recipe_id,
                    or_(Recipe.ai_tags_updated_at.is_(None), Recipe.ai_tags_updated_at < when),
                )
                .values(ai_tags_updated_at=when)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to touch ai_tag metadata for recipe {recipe_id}: {e}")
            return False

    def replace_tags(self, recipe_id: str, tags: List[str]) -> bool:
        """Replace the curated tag set. ai_tags are left alone."""
        try:
            recipe = self.get(recipe_id)
            if recipe is None:
                return False
            recipe.tags = list(tags)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to replace tags for recipe {recipe_id}: {e}")
            return False

    # --- Helpers ---

    def _tags_overlap(self, tags: List[str]):
        return sa.type_coerce(Recipe.tags, PG_ARRAY(String(80))).overlap(
            sa.cast(list(tags), PG_ARRAY(String(80)))
        )

    def _append_expr(self, tags: List[str]):
        if self.dialect == "postgresql":
            new = sa.cast(sa.bindparam("new_ai_tags", tags, type_=PG_ARRAY(String(120))), PG_ARRAY(String(120)))
            return func.array_cat(
                func.coalesce(Recipe.ai_tags, sa.literal_column("ARRAY[]::varchar[]")), new
            )
        # SQLite stores arrays as JSON text
        expr = func.coalesce(Recipe.ai_tags, sa.literal_column("'[]'"))
        for tag in tags:
            expr = func.json_insert(expr, "$[#]", tag)
        return expr

    def _append_locked(self, recipe_id: str, tags: List[str]) -> bool:
        recipe = self.db.scalars(
            select(Recipe).where(Recipe.id == recipe_id).with_for_update()
        ).first()
        if recipe is None:
            self.db.rollback()
            return False
        recipe.ai_tags = list(recipe.ai_tags or []) + list(tags)
        self.db.commit()
        return True
