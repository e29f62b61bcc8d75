"""Concurrent mutations on one artifact are serialized by the per-artifact lock."""

import asyncio

import pytest

from sparkforge.core.exceptions import ArtifactLockedError, InvalidStateError
from sparkforge.core.locking import ArtifactLock
from sparkforge.schemas.artifacts import ArtifactType

pytestmark = pytest.mark.integration


async def test_concurrent_distinct_edits_get_distinct_numbers(artifact_service, story_id):
    artifact = await artifact_service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)

    results = await asyncio.gather(
        artifact_service.update_content(artifact.id, "left"),
        artifact_service.update_content(artifact.id, "right"),
        artifact_service.update_content(artifact.id, "middle"),
    )

    assert sorted(r.current_version for r in results) == [2, 3, 4]
    versions = await artifact_service.list_versions(artifact.id)
    assert [v.version for v in versions] == [4, 3, 2, 1]


async def test_concurrent_identical_edits_create_one_version(artifact_service, story_id):
    """The compare step sees the version written by the first writer."""
    artifact = await artifact_service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)

    results = await asyncio.gather(
        artifact_service.update_content(artifact.id, "same"),
        artifact_service.update_content(artifact.id, "same"),
    )

    assert sorted(r.new_version_created for r in results) == [False, True]
    assert len(await artifact_service.list_versions(artifact.id)) == 2


async def test_concurrent_feedback_calls_do_not_collide(artifact_service, story_id):
    artifact = await artifact_service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)

    results = await asyncio.gather(
        artifact_service.add_feedback(artifact.id, "shorter"),
        artifact_service.add_feedback(artifact.id, "funnier"),
    )

    assert {r.current_version for r in results} == {2, 3}
    assert (await artifact_service.get_artifact(artifact.id)).current_version in {2, 3}


async def test_edits_on_different_artifacts_run_independently(artifact_service, story_id):
    first = await artifact_service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)
    second = await artifact_service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)

    results = await asyncio.gather(
        artifact_service.update_content(first.id, "edit"),
        artifact_service.update_content(second.id, "edit"),
    )

    assert [r.current_version for r in results] == [2, 2]


async def test_busy_artifact_raises_locked_error(make_artifact_service, redis, story_id):
    impatient = ArtifactLock(redis, ttl=30, wait_timeout=0.1)
    service = make_artifact_service(lock=impatient)
    artifact = await service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)

    assert await impatient.acquire(str(artifact.id), owner="another-worker")

    with pytest.raises(ArtifactLockedError):
        await service.update_content(artifact.id, "blocked")

    await impatient.release(str(artifact.id), owner="another-worker")
    result = await service.update_content(artifact.id, "unblocked")
    assert result.new_version_created is True


async def test_lock_released_after_failed_operation(artifact_service, artifact_lock, story_id):
    artifact = await artifact_service.create_artifact(story_id, ArtifactType.LINKEDIN_POST)

    with pytest.raises(InvalidStateError):
        await artifact_service.delete_version(artifact.id, 1)

    assert await artifact_lock.is_locked(str(artifact.id)) is None
