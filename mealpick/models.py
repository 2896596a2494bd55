"""SQLAlchemy ORM models for MealPick.

Tables:
- recipes: Recipe library with curated tags and append-only inferred tags
- ai_usage: One row per external reasoning call with its estimated cost
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Text,
    Index,
    ARRAY,
    Numeric,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Recipe(Base):
    """A home recipe.

    `tags` are curated category labels, replaced wholesale by the re-tagging
    job. `ai_tags` are free-text phrases appended by Smart Match; they are
    never pruned and may contain duplicates.
    """
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_tags", "tags", postgresql_using="gin"),
        Index("ix_recipes_ai_tags", "ai_tags", postgresql_using="gin"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Provenance (free text, as exported by the recipe manager)
    prep_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cook_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    total_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    servings: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ingredients: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    directions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tags: Mapped[Optional[list[str]]] = mapped_column(
        ARRAY(String(80)), nullable=True, default=list
    )
    ai_tags: Mapped[Optional[list[str]]] = mapped_column(
        ARRAY(String(120)), nullable=True, default=list
    )
    ai_tags_updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Import idempotency
    source_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def ai_tag_metadata(self) -> dict:
        return {
            "last_updated": self.ai_tags_updated_at,
            "count": len(self.ai_tags or []),
        }


class AIUsage(Base):
    """Append-only ledger of external reasoning calls."""
    __tablename__ = "ai_usage"
    __table_args__ = (
        Index("ix_ai_usage_created_at", "created_at"),
        Index("ix_ai_usage_feature", "feature"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    feature: Mapped[str] = mapped_column(String(50), nullable=False)
    estimated_cost: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
