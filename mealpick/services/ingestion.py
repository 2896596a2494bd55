import hashlib
import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import Recipe

logger = logging.getLogger("mealpick.ingestion")

SHORT_FIELDS = ("prep_time", "cook_time", "total_time", "servings")
TEXT_FIELDS = (
    "ingredients", "directions", "notes", "source_url", "photo_url",
)


def compute_hash(name: str, ingredients: Optional[str]) -> str:
    """Normalized hash of name + ingredients used to skip re-imports."""
    normalized = f"{(name or '').strip().lower()}\n{(ingredients or '').strip().lower()}"
    normalized = normalized.replace("\r\n", "\n")
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class IngestionService:
    def __init__(self, db: Session):
        self.db = db

    def import_recipes(self, items: Iterable[dict]) -> dict:
        """Import recipe-manager export rows.

        Each row needs a `name`; curated tags come from `tags`, or the legacy
        `ai_category` list. Duplicates (same name and ingredients) are skipped.
        """
        imported, skipped, failed = [], 0, []
        seen = set(self.db.scalars(select(Recipe.source_hash).where(Recipe.source_hash.is_not(None))))

        for item in items:
            name = _as_text(item.get("name"))
            if not name:
                failed.append({"item": str(item)[:80], "error": "missing name"})
                continue

            source_hash = compute_hash(name, item.get("ingredients"))
            if source_hash in seen:
                skipped += 1
                continue

            tags = item.get("tags") or item.get("ai_category") or []
            if isinstance(tags, str):
                tags = [t.strip() for t in tags.split(",") if t.strip()]

            recipe = Recipe(
                name=name[:255],
                tags=[str(t) for t in tags],
                ai_tags=[],
                source_hash=source_hash,
                **{f: (_as_text(item.get(f)) or "")[:50] or None for f in SHORT_FIELDS},
                **{f: _as_text(item.get(f)) for f in TEXT_FIELDS},
            )
            self.db.add(recipe)
            seen.add(source_hash)
            imported.append(recipe)

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Recipe import failed, rolled back {len(imported)} recipes: {e}")
            failed.extend({"item": r.name[:80], "error": "database error"} for r in imported)
            imported = []

        logger.info(f"Imported {len(imported)} recipes, skipped {skipped} duplicates, {len(failed)} failed")
        return {
            "imported": len(imported),
            "skipped": skipped,
            "failed": failed,
            "ids": [r.id for r in imported],
        }
