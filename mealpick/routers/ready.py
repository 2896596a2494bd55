import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db
from ..infra.redis_client import get_redis
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("mealpick.ready")


async def _redis_ok() -> bool:
    try:
        r = await get_redis()
        await r.ping()
        return True
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


@router.get("/ready")
async def ready():
    return {"ok": True, "redis_ok": await _redis_ok()}


@router.get("/health")
async def health(db: Session = Depends(get_db)):
    body = {
        "status": "ok",
        "has_api_key": bool(settings.gemini_api_key),
        "ai_mode": settings.ai_mode,
        "database": "connected",
        "redis_ok": await _redis_ok(),
    }
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        body.update(status="error", database="disconnected", error=str(e))
        return JSONResponse(status_code=500, content=body)
    return body
