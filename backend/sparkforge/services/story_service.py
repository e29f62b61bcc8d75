"""StoryService: read and edit the narrative a spark grows into.

Also serves as the story lookup the artifact lifecycle depends on
(``get_story_content``).
"""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sparkforge.core.exceptions import NotFoundError
from sparkforge.db.models.story import Story
from sparkforge.schemas.stories import StoryResponse

logger = structlog.get_logger(__name__)


class StoryService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_story(self, story_id: UUID) -> StoryResponse:
        """Raises NotFoundError if the story does not exist."""
        async with self.session_factory() as session:
            story = await session.get(Story, story_id)
            if story is None:
                raise NotFoundError("Story not found")
            return StoryResponse.model_validate(story)

    async def get_story_by_spark(self, spark_id: UUID) -> StoryResponse:
        async with self.session_factory() as session:
            result = await session.execute(select(Story).where(Story.spark_id == spark_id))
            story = result.scalar_one_or_none()
            if story is None:
                raise NotFoundError("Story not found")
            return StoryResponse.model_validate(story)

    async def get_story_content(self, story_id: UUID) -> str:
        """Story text used as generation context for artifacts."""
        return (await self.get_story(story_id)).content

    async def update_story(self, story_id: UUID, content: str, is_auto_save: bool = False) -> StoryResponse:
        """Replace story content; auto-saves also stamp ``last_auto_saved_at``."""
        now = datetime.now(UTC)
        async with self.session_factory() as session:
            story = await session.get(Story, story_id)
            if story is None:
                raise NotFoundError("Story not found")

            story.content = content
            story.updated_at = now
            if is_auto_save:
                story.last_auto_saved_at = now

            await session.commit()
            await session.refresh(story)

            logger.info("story_updated", story_id=str(story_id), auto_save=is_auto_save, length=len(content))
            return StoryResponse.model_validate(story)

    async def autosave_story(self, story_id: UUID, content: str) -> StoryResponse:
        return await self.update_story(story_id, content, is_auto_save=True)
