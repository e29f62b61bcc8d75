"""ArtifactService: draft/final lifecycle and version history of artifacts.

Constructor dependency injection (generator, story lookup, session factory, lock).
Every mutation follows the same shape:
1. Call the content generator (if needed) before taking any lock
2. Take the per-artifact Redis lock
3. SELECT ... FOR UPDATE the artifact, re-check its state, re-read the current version
4. Decide, write, commit once

Version numbers come from max(existing) + 1 and are never reused. The current
version pointer always resolves to a live row; deleting the current version moves
the pointer to the highest remaining number.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sparkforge.artifacts.generator import ContentGenerator
from sparkforge.artifacts.normalize import contents_equal
from sparkforge.core.exceptions import DataIntegrityError, GenerationError, InvalidStateError, NotFoundError
from sparkforge.core.locking import ArtifactLock
from sparkforge.db.models.artifact import Artifact, ArtifactVersion
from sparkforge.schemas.artifacts import (
    ArtifactMutationResponse,
    ArtifactState,
    ArtifactSummaryResponse,
    ArtifactType,
    ArtifactVersionResponse,
    ArtifactWithVersionResponse,
    GenerationType,
)
from sparkforge.services.artifact_store import ArtifactStore
from sparkforge.services.story_service import StoryService

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def project_artifact(artifact: Artifact, version: ArtifactVersion) -> ArtifactWithVersionResponse:
    """Merge an artifact row with one of its version rows into the read view."""
    return ArtifactWithVersionResponse(
        id=artifact.id,
        story_id=artifact.story_id,
        type=artifact.type,
        state=artifact.state,
        current_version=artifact.current_version,
        created_at=artifact.created_at,
        updated_at=artifact.updated_at,
        finalized_at=artifact.finalized_at,
        source_artifact_id=artifact.source_artifact_id,
        current_version_content=version.content,
        current_version_feedback=version.user_feedback,
        current_version_generation_type=version.generation_type,
    )


def project_summary(artifact: Artifact, version: ArtifactVersion, snippet_length: int) -> ArtifactSummaryResponse:
    """Listing row; base64 image payloads are not a meaningful preview."""
    snippet = "" if ArtifactType(artifact.type).is_binary else version.content[:snippet_length]
    return ArtifactSummaryResponse(
        id=artifact.id,
        story_id=artifact.story_id,
        type=artifact.type,
        state=artifact.state,
        current_version=artifact.current_version,
        created_at=artifact.created_at,
        updated_at=artifact.updated_at,
        finalized_at=artifact.finalized_at,
        source_artifact_id=artifact.source_artifact_id,
        content_snippet=snippet,
    )


class ArtifactService:
    """Version lifecycle manager and read projections for artifacts."""

    def __init__(
        self,
        generator: ContentGenerator,
        stories: StoryService,
        session_factory: async_sessionmaker[AsyncSession],
        lock: ArtifactLock,
        clock: Callable[[], datetime] = _utcnow,
        generation_timeout: float = 120.0,
        snippet_length: int = 150,
    ):
        """Initialize with collaborators.

        Args:
            generator: ContentGenerator (ArtifactGenerator in production, GeneratorFake in tests)
            stories: Story lookup used for generation context
            session_factory: SQLAlchemy async session factory
            lock: Per-artifact write lock
            clock: Source of timestamps
            generation_timeout: Seconds before a generator call is abandoned
            snippet_length: Preview length for per-story listings
        """
        self.generator = generator
        self.stories = stories
        self.session_factory = session_factory
        self.lock = lock
        self.clock = clock
        self.generation_timeout = generation_timeout
        self.snippet_length = snippet_length

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _generate(self, artifact_type: ArtifactType, story_content: str, feedback: str | None = None) -> str:
        try:
            return await asyncio.wait_for(
                self.generator.generate(artifact_type, story_content, feedback),
                timeout=self.generation_timeout,
            )
        except TimeoutError as exc:
            raise GenerationError(f"Content generation timed out after {self.generation_timeout:g}s") from exc

    @staticmethod
    def _require_draft(artifact: Artifact, message: str) -> None:
        if artifact.state != ArtifactState.DRAFT:
            raise InvalidStateError(message)

    @staticmethod
    async def _load(store: ArtifactStore, artifact_id: UUID, for_update: bool = False) -> Artifact:
        artifact = await store.get_artifact(artifact_id, for_update=for_update)
        if artifact is None:
            raise NotFoundError("Artifact not found")
        return artifact

    @staticmethod
    async def _commit(session: AsyncSession, artifact_id: UUID) -> None:
        try:
            await session.commit()
        except IntegrityError as exc:
            # uq_artifact_version_number collision means two writers were not serialized
            raise DataIntegrityError(f"Concurrent write detected on artifact {artifact_id}") from exc

    async def _apply_content(
        self,
        artifact_id: UUID,
        candidate: str,
        generation_type: GenerationType,
        feedback: str | None,
        finalized_message: str,
    ) -> ArtifactMutationResponse:
        """Compare ``candidate`` with the current version and append a version if it differs."""
        async with self.lock.hold(str(artifact_id)):
            async with self.session_factory() as session:
                store = ArtifactStore(session)
                artifact = await self._load(store, artifact_id, for_update=True)
                self._require_draft(artifact, finalized_message)
                current = await store.get_current_version(artifact)
                now = self.clock()

                if contents_equal(candidate, current.content):
                    artifact.updated_at = now
                    await self._commit(session, artifact_id)
                    await session.refresh(artifact)
                    return ArtifactMutationResponse(
                        **project_artifact(artifact, current).model_dump(),
                        new_version_created=False,
                    )

                new_number = await store.next_version_number(artifact.id)
                version = store.add_version(
                    artifact_id=artifact.id,
                    version=new_number,
                    content=candidate,
                    generation_type=generation_type,
                    user_feedback=feedback,
                    now=now,
                )
                artifact.current_version = new_number
                artifact.updated_at = now

                await self._commit(session, artifact_id)
                await session.refresh(artifact)
                await session.refresh(version)

                return ArtifactMutationResponse(
                    **project_artifact(artifact, version).model_dump(),
                    new_version_created=True,
                )

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def create_artifact(self, story_id: UUID, artifact_type: ArtifactType) -> ArtifactWithVersionResponse:
        """Create a draft artifact with a generated version 1.

        A generation failure does not block creation: version 1 is stored empty.

        Raises:
            NotFoundError: If the story does not exist
        """
        story_content = await self.stories.get_story_content(story_id)

        try:
            content = await self._generate(artifact_type, story_content)
        except GenerationError as exc:
            logger.warning(
                "artifact_generation_fallback",
                story_id=str(story_id),
                artifact_type=artifact_type.value,
                error=str(exc),
            )
            content = ""

        now = self.clock()
        async with self.session_factory() as session:
            store = ArtifactStore(session)
            artifact = await store.add_artifact(story_id=story_id, artifact_type=artifact_type, now=now)
            version = store.add_version(
                artifact_id=artifact.id,
                version=1,
                content=content,
                generation_type=GenerationType.AI_GENERATED,
                now=now,
            )
            await self._commit(session, artifact.id)
            await session.refresh(artifact)
            await session.refresh(version)

            logger.info(
                "artifact_created",
                artifact_id=str(artifact.id),
                story_id=str(story_id),
                artifact_type=artifact_type.value,
                empty=not content,
            )
            return project_artifact(artifact, version)

    async def add_feedback(self, artifact_id: UUID, feedback: str) -> ArtifactMutationResponse:
        """Regenerate content with feedback; store a new version unless nothing changed.

        Raises:
            NotFoundError: Artifact (or its story) not found
            InvalidStateError: Artifact is finalized
            GenerationError: Generator failed or timed out; nothing is written
        """
        finalized_message = "Cannot add feedback to finalized artifact"

        async with self.session_factory() as session:
            artifact = await self._load(ArtifactStore(session), artifact_id)
            self._require_draft(artifact, finalized_message)
            artifact_type = ArtifactType(artifact.type)
            story_id = artifact.story_id

        story_content = await self.stories.get_story_content(story_id)
        candidate = await self._generate(artifact_type, story_content, feedback)

        result = await self._apply_content(
            artifact_id,
            candidate,
            generation_type=GenerationType.AI_GENERATED,
            feedback=feedback,
            finalized_message=finalized_message,
        )
        logger.info(
            "artifact_feedback_applied",
            artifact_id=str(artifact_id),
            version=result.current_version,
            new_version_created=result.new_version_created,
        )
        return result

    async def update_content(self, artifact_id: UUID, content: str) -> ArtifactMutationResponse:
        """Save user-edited content as a new version unless it matches the current one."""
        result = await self._apply_content(
            artifact_id,
            content,
            generation_type=GenerationType.USER_EDITED,
            feedback=None,
            finalized_message="Cannot edit finalized artifact",
        )
        logger.info(
            "artifact_content_updated",
            artifact_id=str(artifact_id),
            version=result.current_version,
            new_version_created=result.new_version_created,
        )
        return result

    async def restore_version(self, artifact_id: UUID, target_version: int) -> ArtifactWithVersionResponse:
        """Point the artifact at an existing version. No rows are created or removed."""
        async with self.lock.hold(str(artifact_id)):
            async with self.session_factory() as session:
                store = ArtifactStore(session)
                artifact = await self._load(store, artifact_id, for_update=True)
                self._require_draft(artifact, "Cannot restore versions in finalized artifact")

                target = await store.get_version(artifact.id, target_version)
                if target is None:
                    raise NotFoundError("Target version not found")

                if artifact.current_version == target_version:
                    return project_artifact(artifact, target)

                artifact.current_version = target_version
                artifact.updated_at = self.clock()
                await self._commit(session, artifact_id)
                await session.refresh(artifact)

        logger.info("artifact_version_restored", artifact_id=str(artifact_id), version=target_version)
        return project_artifact(artifact, target)

    async def delete_version(self, artifact_id: UUID, version: int) -> ArtifactWithVersionResponse:
        """Remove one version; repair the current pointer if it was the one removed.

        Raises:
            InvalidStateError: Finalized artifact, or ``version`` is the last one left
            NotFoundError: Artifact or version not found
        """
        async with self.lock.hold(str(artifact_id)):
            async with self.session_factory() as session:
                store = ArtifactStore(session)
                artifact = await self._load(store, artifact_id, for_update=True)
                self._require_draft(artifact, "Cannot remove versions from finalized artifact")

                numbers = await store.version_numbers(artifact.id)
                if not numbers:
                    raise DataIntegrityError(f"Artifact {artifact_id} has no versions")
                if len(numbers) == 1:
                    raise InvalidStateError("Cannot remove the last remaining version")
                if version not in numbers:
                    raise NotFoundError("Version not found")

                await store.delete_version(artifact.id, version)
                if version == artifact.current_version:
                    artifact.current_version = max(n for n in numbers if n != version)
                artifact.updated_at = self.clock()

                await self._commit(session, artifact_id)
                await session.refresh(artifact)
                current = await store.get_current_version(artifact)

        logger.info(
            "artifact_version_deleted",
            artifact_id=str(artifact_id),
            version=version,
            current_version=artifact.current_version,
        )
        return project_artifact(artifact, current)

    async def finalize(self, artifact_id: UUID) -> ArtifactWithVersionResponse:
        """Freeze the artifact. Requires non-blank current content."""
        async with self.lock.hold(str(artifact_id)):
            async with self.session_factory() as session:
                store = ArtifactStore(session)
                artifact = await self._load(store, artifact_id, for_update=True)
                self._require_draft(artifact, "Artifact is already finalized")

                current = await store.get_current_version(artifact)
                if not current.content.strip():
                    raise InvalidStateError("Cannot finalize artifact with empty content")

                now = self.clock()
                artifact.state = ArtifactState.FINAL.value
                artifact.finalized_at = now
                artifact.updated_at = now

                await self._commit(session, artifact_id)
                await session.refresh(artifact)

        logger.info("artifact_finalized", artifact_id=str(artifact_id), version=artifact.current_version)
        return project_artifact(artifact, current)

    async def duplicate(self, source_artifact_id: UUID) -> ArtifactWithVersionResponse:
        """Start a new draft from a finalized artifact's current content."""
        async with self.session_factory() as session:
            store = ArtifactStore(session)
            source = await self._load(store, source_artifact_id)
            if source.state != ArtifactState.FINAL:
                raise InvalidStateError("Can only duplicate finalized artifacts")

            source_version = await store.get_current_version(source)
            now = self.clock()

            artifact = await store.add_artifact(
                story_id=source.story_id,
                artifact_type=ArtifactType(source.type),
                now=now,
                source_artifact_id=source.id,
            )
            version = store.add_version(
                artifact_id=artifact.id,
                version=1,
                content=source_version.content,
                generation_type=GenerationType.AI_GENERATED,
                now=now,
            )
            await self._commit(session, artifact.id)
            await session.refresh(artifact)
            await session.refresh(version)

        logger.info("artifact_duplicated", artifact_id=str(artifact.id), source_artifact_id=str(source_artifact_id))
        return project_artifact(artifact, version)

    async def delete_artifact(self, artifact_id: UUID) -> bool:
        """Delete a draft artifact and, by cascade, all its versions.

        Returns:
            False if the artifact does not exist
        """
        async with self.lock.hold(str(artifact_id)):
            async with self.session_factory() as session:
                store = ArtifactStore(session)
                artifact = await store.get_artifact(artifact_id, for_update=True)
                if artifact is None:
                    return False
                self._require_draft(artifact, "Cannot delete finalized artifact")

                await store.delete_artifact(artifact.id)
                await self._commit(session, artifact_id)

        logger.info("artifact_deleted", artifact_id=str(artifact_id))
        return True

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    async def get_artifact(self, artifact_id: UUID) -> ArtifactWithVersionResponse:
        """Artifact merged with its current version.

        Raises:
            NotFoundError: Artifact does not exist
            DataIntegrityError: Current version pointer is dangling
        """
        async with self.session_factory() as session:
            store = ArtifactStore(session)
            artifact = await self._load(store, artifact_id)
            current = await store.get_current_version(artifact)
            return project_artifact(artifact, current)

    async def list_versions(self, artifact_id: UUID) -> list[ArtifactVersionResponse]:
        async with self.session_factory() as session:
            store = ArtifactStore(session)
            await self._load(store, artifact_id)
            versions = await store.list_versions(artifact_id)
            return [ArtifactVersionResponse.model_validate(v) for v in versions]

    async def get_version(self, artifact_id: UUID, version: int) -> ArtifactVersionResponse:
        async with self.session_factory() as session:
            row = await ArtifactStore(session).get_version(artifact_id, version)
            if row is None:
                raise NotFoundError("Version not found")
            return ArtifactVersionResponse.model_validate(row)

    async def list_by_story(self, story_id: UUID) -> list[ArtifactSummaryResponse]:
        """One summary per artifact of the story, newest first."""
        await self.stories.get_story(story_id)
        async with self.session_factory() as session:
            rows = await ArtifactStore(session).list_with_current_version(story_id)

        summaries = []
        for artifact, version in rows:
            if version is None:
                raise DataIntegrityError(
                    f"Artifact {artifact.id} points at missing version {artifact.current_version}"
                )
            summaries.append(project_summary(artifact, version, self.snippet_length))
        return summaries
