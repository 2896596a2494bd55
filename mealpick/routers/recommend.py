"""Recommendation API router.

Endpoints:
- POST /api/recommend - Quick Pick or Smart Match for home cooking
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..deps import get_recommender
from ..schemas import RecommendRequest, RecommendationOut, RecipeOut
from ..services.recommender import Recommender
from ..services.render import render_recipe_card
from ..settings import settings

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger("mealpick.recommend")

NO_RECIPES_DETAIL = "No recipes found. Import your recipe collection first."


@router.post("/recommend", response_model=RecommendationOut)
@limiter.limit(settings.recommend_rate_limit)
def recommend(
    request: Request,  # Required for rate limiter
    payload: RecommendRequest,
    recommender: Recommender = Depends(get_recommender),
):
    """Pick something to cook.

    `smartMatch` with at least one filter asks the AI to choose; if that
    fails the answer comes from Quick Pick with `downgraded: true`.
    """
    if payload.mode != "cooking":
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported mode '{payload.mode}'. Only 'cooking' is handled here.",
        )

    rec = recommender.recommend(payload.filters, smart_match=payload.smart_match)
    if rec is None:
        raise HTTPException(status_code=404, detail=NO_RECIPES_DETAIL)

    return RecommendationOut(
        title=rec.recipe.name,
        recommendation=render_recipe_card(rec.recipe),
        recipe=RecipeOut.model_validate(rec.recipe),
        source=rec.source,
        filters=rec.filters,
        match_quality=rec.match_quality,
        match_count=rec.match_count,
        inferred_hits=rec.inferred_hits,
        reasoning=rec.reasoning,
        new_tags=rec.new_tags,
        downgraded=rec.downgraded,
        note=rec.note,
    )
