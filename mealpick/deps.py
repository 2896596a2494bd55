"""FastAPI dependencies for MealPick API.

Provides:
- Recipe store bound to the request's session
- Recommender wired to the shared AI client
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from .core.ai_client import ai_client
from .db import get_db
from .services.recipe_store import RecipeStore
from .services.recommender import Recommender


def get_ai_client():
    return ai_client


def get_recipe_store(db: Session = Depends(get_db)) -> RecipeStore:
    return RecipeStore(db)


def get_recommender(
    db: Session = Depends(get_db),
    client=Depends(get_ai_client),
) -> Recommender:
    return Recommender(db, client=client)
