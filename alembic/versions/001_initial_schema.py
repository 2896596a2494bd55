"""Initial schema with recipes and ai_usage

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-09-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Recipes table
    op.create_table(
        "recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("prep_time", sa.String(50), nullable=True),
        sa.Column("cook_time", sa.String(50), nullable=True),
        sa.Column("total_time", sa.String(50), nullable=True),
        sa.Column("servings", sa.String(50), nullable=True),
        sa.Column("ingredients", sa.Text, nullable=True),
        sa.Column("directions", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("source_url", sa.Text, nullable=True),
        sa.Column("photo_url", sa.Text, nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String(80)), nullable=True),
        sa.Column("source_hash", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recipes_tags", "recipes", ["tags"], postgresql_using="gin")
    op.create_index("ix_recipes_source_hash", "recipes", ["source_hash"])

    # AI usage ledger
    op.create_table(
        "ai_usage",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("feature", sa.String(50), nullable=False),
        sa.Column("estimated_cost", sa.Numeric(10, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_ai_usage_created_at", "ai_usage", ["created_at"])
    op.create_index("ix_ai_usage_feature", "ai_usage", ["feature"])


def downgrade() -> None:
    op.drop_table("ai_usage")
    op.drop_table("recipes")
