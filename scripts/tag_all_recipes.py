"""Re-tag every recipe's curated tags with the AI tagger.

ai_tags gathered by Smart Match are left untouched.

Usage:
    AI_MODE=gemini GEMINI_API_KEY=... python scripts/tag_all_recipes.py [--delay 0.6]
"""
import sys
import os
import argparse
from collections import Counter

# Add project root to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from sqlalchemy import select

from mealpick.db import SessionLocal
from mealpick.models import Recipe
from mealpick.services.tagging import retag_all


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--delay", type=float, default=0.6, help="Seconds between AI calls")
    args = parser.parse_args()

    session = SessionLocal()()
    try:
        stats = retag_all(session, delay_sec=args.delay)
        print(f"Complete! {stats['updated']} updated, {stats['unchanged']} unchanged of {stats['total']}")

        counts = Counter(t for tags in session.scalars(select(Recipe.tags)) for t in (tags or []))
        print("Tag distribution:")
        for tag, count in counts.most_common(20):
            print(f"  {tag}: {count}")
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
