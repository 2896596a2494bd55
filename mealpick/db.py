from __future__ import annotations

import logging

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .settings import settings

logger = logging.getLogger("mealpick.db")


class Base(DeclarativeBase):
    pass


_engine = None
_SessionLocal = None


def init_engine(database_url: str | None = None):
    global _engine, _SessionLocal
    url = database_url or settings.database_url
    _engine = create_engine(url, pool_pre_ping=True)
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def get_engine():
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def SessionLocal():
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


def get_db():
    db = SessionLocal()()
    try:
        yield db
    finally:
        db.close()


def init_schema(engine=None) -> list[str]:
    """Create any missing tables.

    Checks the live schema rather than remembering a previous run, so it is
    safe to call on every startup or from scripts. Returns the names of the
    tables that were created.
    """
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    engine = engine or get_engine()
    existing = set(inspect(engine).get_table_names())
    missing = [t for t in Base.metadata.sorted_tables if t.name not in existing]
    if not missing:
        logger.info("Schema up to date, nothing to create")
        return []

    Base.metadata.create_all(bind=engine, tables=missing)
    names = [t.name for t in missing]
    logger.info(f"Created tables: {', '.join(names)}")
    return names
