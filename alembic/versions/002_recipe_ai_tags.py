"""Add ai_tags and ai_tags_updated_at to recipes

Revision ID: 002_recipe_ai_tags
Revises: 001_initial_schema
Create Date: 2026-10-06

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002_recipe_ai_tags"
down_revision: Union[str, None] = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "recipes",
        sa.Column(
            "ai_tags",
            postgresql.ARRAY(sa.String(120)),
            nullable=True,
            server_default=sa.text("'{}'::varchar[]"),
        ),
    )
    op.add_column("recipes", sa.Column("ai_tags_updated_at", sa.DateTime(timezone=True), nullable=True))
    op.create_index("ix_recipes_ai_tags", "recipes", ["ai_tags"], postgresql_using="gin")


def downgrade() -> None:
    op.drop_index("ix_recipes_ai_tags", table_name="recipes")
    op.drop_column("recipes", "ai_tags_updated_at")
    op.drop_column("recipes", "ai_tags")
