import os
import json
import sqlite3

os.environ["AI_MODE"] = "mock"

import pytest
import fakeredis
import fakeredis.aioredis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import ARRAY

from mealpick.main import app, limiter as app_limiter
from mealpick.db import Base, get_db
from mealpick.deps import get_ai_client
from mealpick.infra import redis_client
from mealpick.models import Recipe
from mealpick.routers import ai as ai_router
from mealpick.routers import recipes as recipes_router
from mealpick.routers import recommend as recommend_router

# --- Test Database Setup ---

@compiles(ARRAY, 'sqlite')
def compile_array(element, compiler, **kw):
    return "JSON_ARRAY"

# Register adapters for SQLite to handle list/dict as JSON
sqlite3.register_adapter(list, json.dumps)
sqlite3.register_adapter(dict, json.dumps)
# Register converter for our custom type ONLY to avoid double-decoding standard JSON
sqlite3.register_converter("JSON_ARRAY", json.loads)

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={
        "check_same_thread": False,
        "detect_types": sqlite3.PARSE_DECLTYPES
    },
    poolclass=StaticPool  # in-memory DB shared across sessions
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeAIClient:
    """Stands in for the Gemini client: canned reply or canned error."""

    def __init__(self, reply=None, error=None, mode="gemini"):
        self.reply = reply
        self.error = error
        self.mode = mode
        self.prompts = []
        self.last_error = None
        self.last_error_at = None

    def is_available(self):
        return self.mode == "gemini"

    def complete(self, prompt, timeout=None, model=None, max_output_tokens=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    for lim in (app_limiter, ai_router.limiter, recipes_router.limiter, recommend_router.limiter):
        lim.reset()
    yield


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def session_factory():
    """Extra independent sessions on the same database."""
    sessions = []

    def _make():
        s = TestingSessionLocal()
        sessions.append(s)
        return s

    yield _make
    for s in sessions:
        s.close()


@pytest.fixture
def fake_ai():
    """Factory for fake AI clients."""
    return FakeAIClient


@pytest.fixture
def use_ai_client():
    """Route the API's AI dependency to the given client."""
    def _use(fake):
        app.dependency_overrides[get_ai_client] = lambda: fake
        return fake
    return _use


@pytest.fixture
def make_recipe(db_session):
    def _make(name, tags=None, ai_tags=None, **fields):
        recipe = Recipe(name=name, tags=list(tags or []), ai_tags=list(ai_tags or []), **fields)
        db_session.add(recipe)
        db_session.commit()
        db_session.refresh(recipe)
        return recipe
    return _make


@pytest.fixture(autouse=True)
def mock_redis():
    server = fakeredis.FakeServer()
    # Create fake clients sharing the same server
    async_redis = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    sync_redis = fakeredis.FakeRedis(server=server, decode_responses=True)

    # Force the clients into the infra module
    redis_client._redis_async = async_redis
    redis_client._redis_sync = sync_redis

    yield sync_redis

    # Cleanup
    redis_client._redis_async = None
    redis_client._redis_sync = None
