"""Artifact API routes: creation, iteration, version history, finalize/duplicate."""

from functools import lru_cache
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from sparkforge.artifacts.generator import ArtifactGenerator, ContentGenerator
from sparkforge.core.config import get_settings
from sparkforge.core.locking import ArtifactLock
from sparkforge.db.base import get_session_factory
from sparkforge.db.redis import get_redis
from sparkforge.schemas.artifacts import (
    AddFeedbackRequest,
    ArtifactMutationResponse,
    ArtifactVersionResponse,
    ArtifactWithVersionResponse,
    CreateArtifactRequest,
    UpdateContentRequest,
)
from sparkforge.services.artifact_service import ArtifactService
from sparkforge.services.story_service import StoryService

router = APIRouter()


@lru_cache
def _default_generator() -> ArtifactGenerator:
    return ArtifactGenerator.from_settings(get_settings())


def get_generator() -> ContentGenerator:
    """Dependency that provides the content generator.

    One generator (and one set of provider clients) per process. Override this
    dependency in tests via app.dependency_overrides.
    """
    return _default_generator()


def get_artifact_service(generator: ContentGenerator = Depends(get_generator)) -> ArtifactService:
    settings = get_settings()
    session_factory = get_session_factory()
    lock = ArtifactLock(
        get_redis(),
        ttl=settings.artifact_lock_ttl_seconds,
        wait_timeout=settings.artifact_lock_wait_seconds,
    )
    return ArtifactService(
        generator,
        StoryService(session_factory),
        session_factory,
        lock,
        generation_timeout=settings.generation_timeout_seconds,
        snippet_length=settings.snippet_length,
    )


@router.post("", status_code=201, response_model=ArtifactWithVersionResponse)
async def create_artifact(
    request: CreateArtifactRequest,
    service: ArtifactService = Depends(get_artifact_service),
):
    """Create a draft artifact for a story with generated version 1.

    If generation fails the artifact is still created with empty content.
    """
    return await service.create_artifact(request.story_id, request.type)


@router.get("/{artifact_id}", response_model=ArtifactWithVersionResponse)
async def get_artifact(artifact_id: UUID, service: ArtifactService = Depends(get_artifact_service)):
    return await service.get_artifact(artifact_id)


@router.delete("/{artifact_id}", status_code=204)
async def delete_artifact(artifact_id: UUID, service: ArtifactService = Depends(get_artifact_service)):
    """Delete a draft artifact with all its versions.

    Raises:
        HTTPException(404): Artifact not found
    """
    if not await service.delete_artifact(artifact_id):
        raise HTTPException(status_code=404, detail="Artifact not found")
    return Response(status_code=204)


@router.get("/{artifact_id}/versions", response_model=list[ArtifactVersionResponse])
async def list_versions(artifact_id: UUID, service: ArtifactService = Depends(get_artifact_service)):
    """Full version history, newest version number first."""
    return await service.list_versions(artifact_id)


@router.get("/{artifact_id}/versions/{version}", response_model=ArtifactVersionResponse)
async def get_version(
    artifact_id: UUID,
    version: int = Path(ge=1),
    service: ArtifactService = Depends(get_artifact_service),
):
    return await service.get_version(artifact_id, version)


@router.delete("/{artifact_id}/versions/{version}", response_model=ArtifactWithVersionResponse)
async def delete_version(
    artifact_id: UUID,
    version: int = Path(ge=1),
    service: ArtifactService = Depends(get_artifact_service),
):
    """Remove one version. The last remaining version cannot be removed."""
    return await service.delete_version(artifact_id, version)


@router.post("/{artifact_id}/versions/{version}/restore", response_model=ArtifactWithVersionResponse)
async def restore_version(
    artifact_id: UUID,
    version: int = Path(ge=1),
    service: ArtifactService = Depends(get_artifact_service),
):
    """Make an existing version current without creating a new one."""
    return await service.restore_version(artifact_id, version)


@router.post("/{artifact_id}/iterate", response_model=ArtifactMutationResponse)
async def iterate_artifact(
    artifact_id: UUID,
    request: AddFeedbackRequest,
    service: ArtifactService = Depends(get_artifact_service),
):
    """Regenerate with feedback.

    ``new_version_created`` is False when the regenerated content matches the current version.
    """
    return await service.add_feedback(artifact_id, request.feedback)


@router.put("/{artifact_id}/content", response_model=ArtifactMutationResponse)
async def update_content(
    artifact_id: UUID,
    request: UpdateContentRequest,
    service: ArtifactService = Depends(get_artifact_service),
):
    return await service.update_content(artifact_id, request.content)


@router.post("/{artifact_id}/finalize", response_model=ArtifactWithVersionResponse)
async def finalize_artifact(artifact_id: UUID, service: ArtifactService = Depends(get_artifact_service)):
    return await service.finalize(artifact_id)


@router.post("/{artifact_id}/duplicate", status_code=201, response_model=ArtifactWithVersionResponse)
async def duplicate_artifact(artifact_id: UUID, service: ArtifactService = Depends(get_artifact_service)):
    """Start a new draft from a finalized artifact."""
    return await service.duplicate(artifact_id)
