"""Import a recipe-manager JSON export into the recipes table.

Usage:
    python scripts/import_recipes.py path/to/recipes.json
"""
import sys
import os
import json

# Add project root to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from mealpick.db import SessionLocal, init_schema
from mealpick.services.ingestion import IngestionService
from mealpick.settings import settings


def main(path: str) -> int:
    if not os.path.exists(path):
        print(f"No recipes file found at {path}")
        return 1

    with open(path, encoding="utf-8") as f:
        recipes = json.load(f)

    print(f"Connecting to {settings.database_url.split('@')[-1]}...")
    created = init_schema()
    if created:
        print(f"Created tables: {', '.join(created)}")

    session = SessionLocal()()
    try:
        print(f"Importing {len(recipes)} recipes...")
        result = IngestionService(session).import_recipes(recipes)
        print(f"Imported {result['imported']} recipes, skipped {result['skipped']} duplicates.")
        for failure in result["failed"]:
            print(f"  Failed: {failure['item']} ({failure['error']})")
    except Exception as e:
        session.rollback()
        print(f"Error: {e}")
        return 1
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else "recipes.json"))
