from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_ai_client
from ..schemas import TagSuggestRequest, TagSuggestResponse, UsageSummaryOut
from ..services import usage_ledger
from ..services.tagging import TagSuggester
from ..settings import settings as app_settings

router = APIRouter(prefix="/ai", tags=["ai"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/suggest-tags", response_model=TagSuggestResponse)
@limiter.limit("30/minute")
def suggest_tags(
    request: Request,  # Required for rate limiter
    payload: TagSuggestRequest,
    db: Session = Depends(get_db),
    client=Depends(get_ai_client),
):
    """Suggest 4-8 curated tags for a recipe (AI, heuristic fallback)."""
    tags, source = TagSuggester(db, client=client).suggest(
        payload.name,
        ingredients=payload.ingredients,
        directions=payload.directions,
        prep_time=payload.prep_time,
        cook_time=payload.cook_time,
    )
    return TagSuggestResponse(tags=tags, source=source)


@router.get("/usage", response_model=UsageSummaryOut)
def get_usage(
    window: str = Query("all"),
    db: Session = Depends(get_db),
):
    """Estimated AI spend grouped by feature."""
    if window not in usage_ledger.WINDOWS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid window. Must be one of: {', '.join(usage_ledger.WINDOWS)}",
        )
    return usage_ledger.aggregate(db, window)


@router.get("/status")
def get_ai_status(client=Depends(get_ai_client)):
    """Debug endpoint for AI availability."""
    return {
        "mode": client.mode,
        "available": client.is_available(),
        "has_api_key": bool(app_settings.gemini_api_key),
        "text_model": app_settings.gemini_text_model,
        "timeout_seconds": app_settings.ai_timeout_seconds,
        "last_error": client.last_error,
        "last_error_at": client.last_error_at.isoformat() if client.last_error_at else None,
    }
