"""Shared test fixtures for all test groups.

Database-backed fixtures use TEST_DATABASE_URL when set (PostgreSQL) and fall
back to a throwaway SQLite file otherwise.
"""

import os
from datetime import UTC, datetime, timedelta

import pytest
from fakeredis import FakeAsyncRedis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sparkforge.artifacts.generator_fake import GeneratorFake
from sparkforge.core.locking import ArtifactLock
from sparkforge.db.base import Base, create_engine
from sparkforge.services.artifact_service import ArtifactService
from sparkforge.services.spark_service import SparkService
from sparkforge.services.story_service import StoryService
from sparkforge.sparks.refiner_fake import SparkRefinerFake

STORY_TEXT = "I shipped our first release two weeks late and learned to cut scope early."


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        self.now += self.step
        return self.now


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'sparkforge_test.db'}")


@pytest.fixture
async def engine(database_url) -> AsyncEngine:
    """Engine with a freshly created schema, dropped again after the test."""
    import sparkforge.db.models  # noqa: F401

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def redis():
    """Create a fake Redis instance for testing."""
    fake_redis = FakeAsyncRedis(decode_responses=True)
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest.fixture
def artifact_lock(redis) -> ArtifactLock:
    return ArtifactLock(redis, ttl=30, wait_timeout=5.0)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def generator_fake():
    """Fresh GeneratorFake with happy_path scenario (default)."""
    return GeneratorFake(scenario="happy_path")


@pytest.fixture
def generator_fake_unchanged():
    return GeneratorFake(scenario="unchanged")


@pytest.fixture
def generator_fake_failing():
    """GeneratorFake with generation_failure scenario."""
    return GeneratorFake(scenario="generation_failure")


@pytest.fixture
def spark_refiner_fake():
    """SparkRefinerFake that returns titles and thoughts unchanged."""
    return SparkRefinerFake(scenario="identity")


@pytest.fixture
def story_service(session_factory) -> StoryService:
    return StoryService(session_factory)


@pytest.fixture
def spark_service(session_factory) -> SparkService:
    return SparkService(session_factory)


@pytest.fixture
def make_artifact_service(session_factory, story_service, artifact_lock, clock):
    """Factory for ArtifactService wired to the test database with a chosen generator."""

    def _make(generator=None, lock: ArtifactLock | None = None, **kwargs) -> ArtifactService:
        return ArtifactService(
            generator or GeneratorFake(),
            story_service,
            session_factory,
            lock or artifact_lock,
            clock=clock,
            **kwargs,
        )

    return _make


@pytest.fixture
def artifact_service(make_artifact_service, generator_fake) -> ArtifactService:
    return make_artifact_service(generator_fake)


@pytest.fixture
async def story_id(spark_service, story_service):
    """Id of a story (with STORY_TEXT content) belonging to a fresh spark."""
    spark = await spark_service.create_spark("Shipping late", "What the delay taught me")
    story = await story_service.get_story_by_spark(spark.id)
    await story_service.update_story(story.id, STORY_TEXT)
    return story.id
