"""Per-artifact write locks backed by Redis.

Serializes the read-decide-write section of artifact mutations across workers:
- SET NX EX acquisition with a TTL so a crashed holder cannot wedge an artifact
- Ownership check before release
- ``hold()`` context manager that polls until acquired or the wait budget is spent
"""

import asyncio
import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import redis.asyncio as redis
import structlog

from sparkforge.core.exceptions import ArtifactLockedError

logger = structlog.get_logger(__name__)


class ArtifactLock:
    """Mutual exclusion for mutations of a single artifact."""

    LOCK_PREFIX = "sparkforge:artifact-lock:"
    DEFAULT_TTL = 60
    DEFAULT_WAIT = 10.0
    POLL_INTERVAL = 0.05

    def __init__(
        self,
        client: redis.Redis,
        ttl: int | None = None,
        wait_timeout: float | None = None,
    ):
        self.client = client
        self.ttl = ttl or self.DEFAULT_TTL
        self.wait_timeout = self.DEFAULT_WAIT if wait_timeout is None else wait_timeout

    def _lock_key(self, artifact_id: str) -> str:
        return f"{self.LOCK_PREFIX}{artifact_id}"

    async def acquire(self, artifact_id: str, owner: str, ttl: int | None = None) -> bool:
        """Try once to take the lock.

        Returns:
            True if acquired (or already held by ``owner``), False otherwise
        """
        key = self._lock_key(artifact_id)
        ttl = ttl or self.ttl

        lock_value = f"{owner}:{datetime.now(UTC).isoformat()}"
        if await self.client.set(key, lock_value, nx=True, ex=ttl):
            return True

        current = await self.client.get(key)
        if current and current.startswith(f"{owner}:"):
            await self.client.expire(key, ttl)
            return True

        return False

    async def release(self, artifact_id: str, owner: str) -> bool:
        """Release the lock if ``owner`` still holds it."""
        key = self._lock_key(artifact_id)

        current = await self.client.get(key)
        if current and current.startswith(f"{owner}:"):
            await self.client.delete(key)
            return True

        return False

    async def is_locked(self, artifact_id: str) -> dict | None:
        """Describe the current holder, or None when the artifact is free."""
        key = self._lock_key(artifact_id)

        current = await self.client.get(key)
        if not current:
            return None

        owner, _, locked_at = current.partition(":")
        return {
            "artifact_id": artifact_id,
            "owner": owner,
            "locked_at": locked_at or None,
            "expires_in": await self.client.ttl(key),
        }

    @asynccontextmanager
    async def hold(self, artifact_id: str) -> AsyncGenerator[str, None]:
        """Hold the artifact lock for the duration of the block.

        Yields:
            The owner token used for this acquisition

        Raises:
            ArtifactLockedError: If the lock is still taken after ``wait_timeout`` seconds
        """
        owner = uuid.uuid4().hex
        deadline = time.monotonic() + self.wait_timeout

        while not await self.acquire(artifact_id, owner):
            if time.monotonic() >= deadline:
                holder = await self.is_locked(artifact_id)
                logger.warning(
                    "artifact_lock_timeout",
                    artifact_id=artifact_id,
                    waited_seconds=self.wait_timeout,
                    holder=holder["owner"] if holder else None,
                    locked_at=holder["locked_at"] if holder else None,
                )
                raise ArtifactLockedError(artifact_id, self.wait_timeout, holder=holder)
            await asyncio.sleep(self.POLL_INTERVAL)

        try:
            yield owner
        finally:
            released = await self.release(artifact_id, owner)
            if not released:
                # TTL expired mid-operation; another writer may have overlapped
                logger.error("artifact_lock_lost", artifact_id=artifact_id, ttl=self.ttl)
