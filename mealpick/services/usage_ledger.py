"""AI usage ledger.

Every external reasoning call is recorded once with an estimated cost.
Recording never raises: a ledger failure must not take down the feature
that made the call. Summaries are read-through cached in Redis.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..infra.redis_cache import get_or_set_json_sync, delete_keys
from ..models import AIUsage
from ..settings import settings

logger = logging.getLogger("mealpick.usage")

FEATURES = (
    "smart_match",
    "receipt_extraction",
    "takeout_suggestion",
    "tag_suggestion",
    "chat",
)

WINDOWS = ("today", "7d", "30d", "all")

CACHE_PREFIX = "mealpick:usage"


def feature_cost(feature: str) -> Decimal:
    cost = getattr(settings, f"cost_{feature}", None)
    if cost is None:
        raise ValueError(f"Unknown AI feature: {feature}")
    return Decimal(cost)


def window_start(window: str, now: Optional[datetime] = None) -> Optional[datetime]:
    now = now or datetime.now(timezone.utc)
    if window == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if window == "7d":
        return now - timedelta(days=7)
    if window == "30d":
        return now - timedelta(days=30)
    if window == "all":
        return None
    raise ValueError(f"Unknown window: {window}")


def _cache_key(window: str) -> str:
    return f"{CACHE_PREFIX}:{window}"


def record(db: Session, feature: str, cost: Optional[Decimal] = None) -> bool:
    """Append one usage row. Returns False (and logs) on any failure."""
    try:
        amount = cost if cost is not None else feature_cost(feature)
        db.add(AIUsage(
            feature=feature,
            estimated_cost=amount,
            created_at=datetime.now(timezone.utc),
        ))
        db.commit()
        logger.info(f"Recorded AI usage feature={feature} cost={amount}")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to record AI usage for {feature}: {e}")
        return False

    try:
        delete_keys(*[_cache_key(w) for w in WINDOWS])
    except Exception as e:
        logger.warning(f"Usage cache invalidation failed: {e}")
    return True


def compute_summary(db: Session, window: str, now: Optional[datetime] = None) -> dict:
    since = window_start(window, now)
    stmt = (
        select(
            AIUsage.feature,
            func.count(AIUsage.id),
            func.coalesce(func.sum(AIUsage.estimated_cost), 0),
        )
        .group_by(AIUsage.feature)
        .order_by(AIUsage.feature)
    )
    if since is not None:
        stmt = stmt.where(AIUsage.created_at >= since)

    by_feature = []
    total_calls = 0
    total_cost = Decimal("0")
    for feature, calls, cost in db.execute(stmt):
        cost = Decimal(str(cost)).quantize(Decimal("0.0001"))
        by_feature.append({"feature": feature, "calls": calls, "cost": str(cost)})
        total_calls += calls
        total_cost += cost

    return {
        "window": window,
        "total_calls": total_calls,
        "total_cost": str(total_cost.quantize(Decimal("0.0001"))),
        "by_feature": by_feature,
    }


def aggregate(db: Session, window: str = "all") -> dict:
    """Calls and cost per feature for a trailing window."""
    if window not in WINDOWS:
        raise ValueError(f"Unknown window: {window}")
    try:
        summary, _hit = get_or_set_json_sync(
            _cache_key(window),
            settings.usage_cache_ttl_sec,
            lambda: compute_summary(db, window),
        )
        return summary
    except Exception as e:
        logger.warning(f"Usage cache unavailable, querying directly: {e}")
        return compute_summary(db, window)
