"""Tests for the Redis-backed per-artifact lock."""

import pytest

from sparkforge.core.exceptions import ArtifactLockedError
from sparkforge.core.locking import ArtifactLock

pytestmark = pytest.mark.unit


@pytest.fixture
def lock(redis) -> ArtifactLock:
    return ArtifactLock(redis, ttl=30, wait_timeout=0.2)


async def test_acquire_sets_key_with_ttl(lock, redis):
    assert await lock.acquire("a1", owner="w1") is True

    assert (await redis.get("sparkforge:artifact-lock:a1")).startswith("w1:")
    assert 0 < await redis.ttl("sparkforge:artifact-lock:a1") <= 30


async def test_second_owner_cannot_acquire(lock):
    await lock.acquire("a1", owner="w1")

    assert await lock.acquire("a1", owner="w2") is False


async def test_same_owner_reacquires(lock):
    await lock.acquire("a1", owner="w1")

    assert await lock.acquire("a1", owner="w1") is True


async def test_release_requires_ownership(lock):
    await lock.acquire("a1", owner="w1")

    assert await lock.release("a1", owner="w2") is False
    assert await lock.release("a1", owner="w1") is True
    assert await lock.is_locked("a1") is None


async def test_is_locked_describes_holder(lock):
    await lock.acquire("a1", owner="w1")

    info = await lock.is_locked("a1")

    assert info["owner"] == "w1"
    assert info["artifact_id"] == "a1"
    assert info["locked_at"]
    assert info["expires_in"] > 0


async def test_hold_releases_on_exit(lock):
    async with lock.hold("a1") as owner:
        assert (await lock.is_locked("a1"))["owner"] == owner

    assert await lock.is_locked("a1") is None


async def test_hold_releases_on_error(lock):
    with pytest.raises(RuntimeError):
        async with lock.hold("a1"):
            raise RuntimeError("boom")

    assert await lock.is_locked("a1") is None


async def test_hold_times_out_when_busy(lock):
    await lock.acquire("a1", owner="someone-else")

    with pytest.raises(ArtifactLockedError) as exc_info:
        async with lock.hold("a1"):
            pass

    assert exc_info.value.artifact_id == "a1"
    assert exc_info.value.status_code == 409


async def test_locks_are_per_artifact(lock):
    async with lock.hold("a1"):
        async with lock.hold("a2"):
            assert await lock.is_locked("a1") is not None
            assert await lock.is_locked("a2") is not None


async def test_timeout_reports_current_holder(lock):
    await lock.acquire("a1", owner="someone-else")

    with pytest.raises(ArtifactLockedError, match=r"current lock expires in \d+s") as exc_info:
        async with lock.hold("a1"):
            pass

    assert exc_info.value.holder["owner"] == "someone-else"
    assert 0 < exc_info.value.holder["expires_in"] <= 30


def test_locked_error_without_holder_keeps_plain_message():
    error = ArtifactLockedError("a1", 0.5)

    assert str(error) == "Artifact a1 is busy, gave up after 0.5s"
    assert error.holder is None
