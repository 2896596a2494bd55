"""Recipes API router.

Endpoints:
- GET /api/recipes - List recipes (optionally by curated tag)
- GET /api/recipes/{id} - Get one recipe with its ai_tags
- POST /api/recipes/import - Bulk import from a recipe-manager export
- POST /api/recipes/{id}/retag - Replace curated tags with a fresh suggestion
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_ai_client, get_recipe_store
from ..schemas import (
    RecipeOut, RecipeListOut, RecipeImportItem, RecipeImportResponse, RetagResponse
)
from ..services.ingestion import IngestionService
from ..services.recipe_store import RecipeStore
from ..services.tagging import TagSuggester, retag_recipe

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger("mealpick.recipes")


@router.get("/recipes", response_model=list[RecipeListOut])
def list_recipes(
    tag: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store: RecipeStore = Depends(get_recipe_store),
):
    """List recipes by name, optionally only those carrying a curated tag."""
    return store.list_recipes(tag=tag, limit=limit, offset=offset)


@router.get("/recipes/{recipe_id}", response_model=RecipeOut)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_recipe_store)):
    recipe = store.get(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return RecipeOut.model_validate(recipe)


@router.post("/recipes/import", response_model=RecipeImportResponse)
def import_recipes(
    items: list[RecipeImportItem],
    db: Session = Depends(get_db),
):
    """Import recipes; rows already imported (same name + ingredients) are skipped."""
    result = IngestionService(db).import_recipes(item.model_dump() for item in items)
    return RecipeImportResponse(**result)


@router.post("/recipes/{recipe_id}/retag", response_model=RetagResponse)
@limiter.limit("10/minute")
def retag(
    request: Request,  # Required for rate limiter
    recipe_id: str,
    db: Session = Depends(get_db),
    client=Depends(get_ai_client),
):
    """Replace curated tags. ai_tags are not touched."""
    store = RecipeStore(db)
    recipe = store.get(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")

    new_tags = retag_recipe(db, recipe, TagSuggester(db, client=client))
    db.refresh(recipe)
    return RetagResponse(
        recipe_id=recipe.id,
        updated=new_tags is not None,
        tags=recipe.tags or [],
    )
