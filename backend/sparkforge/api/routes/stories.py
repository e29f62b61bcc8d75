"""Story routes: editing, auto-save and the per-story artifact listing."""

from uuid import UUID

from fastapi import APIRouter, Depends

from sparkforge.api.routes.artifacts import get_artifact_service
from sparkforge.db.base import get_session_factory
from sparkforge.schemas.artifacts import ArtifactSummaryResponse
from sparkforge.schemas.stories import AutosaveStoryRequest, StoryResponse, UpdateStoryRequest
from sparkforge.services.artifact_service import ArtifactService
from sparkforge.services.story_service import StoryService

router = APIRouter()


def get_story_service() -> StoryService:
    return StoryService(get_session_factory())


@router.get("/{story_id}", response_model=StoryResponse)
async def get_story(story_id: UUID, service: StoryService = Depends(get_story_service)):
    return await service.get_story(story_id)


@router.put("/{story_id}", response_model=StoryResponse)
async def update_story(
    story_id: UUID,
    request: UpdateStoryRequest,
    service: StoryService = Depends(get_story_service),
):
    return await service.update_story(story_id, request.content, is_auto_save=request.is_auto_save)


@router.patch("/{story_id}/autosave", response_model=StoryResponse)
async def autosave_story(
    story_id: UUID,
    request: AutosaveStoryRequest,
    service: StoryService = Depends(get_story_service),
):
    """Auto-save from the editor; stamps last_auto_saved_at."""
    return await service.autosave_story(story_id, request.content)


@router.get("/{story_id}/artifacts", response_model=list[ArtifactSummaryResponse])
async def list_story_artifacts(story_id: UUID, service: ArtifactService = Depends(get_artifact_service)):
    """Artifacts of a story, newest first, with a content snippet of the current version."""
    return await service.list_by_story(story_id)
