"""API-specific test fixtures."""

from contextlib import asynccontextmanager

import pytest
from fakeredis import FakeAsyncRedis
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture
def api_client(engine, database_url, generator_fake, spark_refiner_fake):
    """FastAPI test client with test database, fake Redis, GeneratorFake and SparkRefinerFake.

    Initializes the global database via init_db inside the TestClient's
    own event loop so route handlers can use get_session_factory().
    The engine fixture ensures tables exist before this runs.
    """
    import sparkforge.db.base as db_mod
    import sparkforge.db.redis as redis_mod
    from sparkforge.api.routes import api_router
    from sparkforge.api.routes.artifacts import get_generator
    from sparkforge.api.routes.sparks import get_spark_refiner
    from sparkforge.db import close_db, init_db
    from sparkforge.main import install_exception_handlers
    from sparkforge.middleware.correlation import setup_correlation_middleware

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - initialize DB and Redis in TestClient's event loop."""
        db_mod._engine = None
        db_mod._session_factory = None
        await init_db(database_url)
        redis_mod._redis = FakeAsyncRedis(decode_responses=True)
        yield
        await redis_mod._redis.aclose()
        redis_mod._redis = None
        await close_db()

    app = FastAPI(title="Sparkforge", description="Sparkforge - Test Client", lifespan=test_lifespan)
    setup_correlation_middleware(app)
    install_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    app.dependency_overrides[get_generator] = lambda: generator_fake
    app.dependency_overrides[get_spark_refiner] = lambda: spark_refiner_fake

    with TestClient(app) as client:
        yield client


@pytest.fixture
def story(api_client):
    """Story (with content) of a spark created through the API."""
    spark = api_client.post("/api/sparks", json={"title": "Hiring my first engineer"}).json()
    story = api_client.get(f"/api/sparks/{spark['id']}/story").json()
    api_client.put(
        f"/api/stories/{story['id']}",
        json={"content": "We hired slowly and it paid off when the product pivoted."},
    )
    return story
