"""SparkService: create, list, fetch and delete sparks.

Every spark owns exactly one story, created empty alongside it. When a refiner
is configured, the title and initial thoughts are edited before they are stored;
a failed edit keeps the text the user typed. Listings carry draft/final artifact
counts gathered in a single grouped query.
"""

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sparkforge.core.exceptions import GenerationError, NotFoundError
from sparkforge.db.models.artifact import Artifact
from sparkforge.db.models.spark import Spark
from sparkforge.db.models.story import Story
from sparkforge.schemas.artifacts import ArtifactState
from sparkforge.schemas.sparks import ArtifactCounts, SparkResponse
from sparkforge.sparks.refiner import SparkRefiner

logger = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 255


class SparkService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_user_id: str = "default_user",
        refiner: SparkRefiner | None = None,
    ):
        self.session_factory = session_factory
        self.default_user_id = default_user_id
        self.refiner = refiner

    @staticmethod
    def _keep_or_replace(field: str, original: str, outcome: str | BaseException) -> str:
        if isinstance(outcome, GenerationError):
            logger.warning("spark_refinement_fallback", field=field, error=str(outcome))
            return original
        if isinstance(outcome, BaseException):
            raise outcome
        if not outcome.strip():
            logger.warning("spark_refinement_fallback", field=field, error="empty refinement")
            return original
        return outcome.strip()

    async def _refine(self, title: str, initial_thoughts: str | None) -> tuple[str, str | None]:
        """Edit title and thoughts concurrently; thoughts are only sent when present."""
        if self.refiner is None:
            return title, initial_thoughts

        calls = [self.refiner.refine_title(title, initial_thoughts)]
        if initial_thoughts:
            calls.append(self.refiner.refine_thoughts(title, initial_thoughts))
        outcomes = await asyncio.gather(*calls, return_exceptions=True)

        refined_title = self._keep_or_replace("title", title, outcomes[0])[:TITLE_MAX_LENGTH]
        if initial_thoughts:
            initial_thoughts = self._keep_or_replace("initial_thoughts", initial_thoughts, outcomes[1])
        return refined_title, initial_thoughts

    async def _artifact_counts(self, session: AsyncSession, spark_ids: Iterable[UUID]) -> dict[UUID, ArtifactCounts]:
        spark_ids = list(spark_ids)
        counts = {spark_id: ArtifactCounts() for spark_id in spark_ids}
        if not spark_ids:
            return counts

        result = await session.execute(
            select(Story.spark_id, Artifact.state, func.count(Artifact.id))
            .join(Artifact, Artifact.story_id == Story.id)
            .where(Story.spark_id.in_(spark_ids))
            .group_by(Story.spark_id, Artifact.state)
        )
        for spark_id, state, count in result.all():
            if state == ArtifactState.DRAFT:
                counts[spark_id].draft = count
            elif state == ArtifactState.FINAL:
                counts[spark_id].final = count
        return counts

    @staticmethod
    def _to_response(spark: Spark, counts: ArtifactCounts) -> SparkResponse:
        return SparkResponse(
            id=spark.id,
            title=spark.title,
            initial_thoughts=spark.initial_thoughts,
            created_at=spark.created_at,
            updated_at=spark.updated_at,
            artifact_counts=counts,
        )

    async def create_spark(
        self,
        title: str,
        initial_thoughts: str | None = None,
        user_id: str | None = None,
    ) -> SparkResponse:
        """Create a spark and its empty story in one transaction.

        Refinement runs before the transaction opens, so no connection is held
        while the model is working.
        """
        title, initial_thoughts = await self._refine(title, initial_thoughts or None)
        now = datetime.now(UTC)
        async with self.session_factory() as session:
            spark = Spark(
                user_id=user_id or self.default_user_id,
                title=title,
                initial_thoughts=initial_thoughts,
                created_at=now,
                updated_at=now,
            )
            session.add(spark)
            await session.flush()

            session.add(
                Story(
                    spark_id=spark.id,
                    content="",
                    created_at=now,
                    updated_at=now,
                    last_auto_saved_at=now,
                )
            )
            await session.commit()
            await session.refresh(spark)

            logger.info("spark_created", spark_id=str(spark.id), user_id=spark.user_id)
            return self._to_response(spark, ArtifactCounts())

    async def list_sparks(self, user_id: str | None = None) -> list[SparkResponse]:
        """Sparks of one user, newest first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Spark)
                .where(Spark.user_id == (user_id or self.default_user_id))
                .order_by(Spark.created_at.desc())
            )
            sparks = list(result.scalars().all())
            counts = await self._artifact_counts(session, (spark.id for spark in sparks))
            return [self._to_response(spark, counts[spark.id]) for spark in sparks]

    async def get_spark(self, spark_id: UUID) -> SparkResponse:
        async with self.session_factory() as session:
            spark = await session.get(Spark, spark_id)
            if spark is None:
                raise NotFoundError("Spark not found")
            counts = await self._artifact_counts(session, [spark.id])
            return self._to_response(spark, counts[spark.id])

    async def delete_spark(self, spark_id: UUID) -> bool:
        """Delete a spark; story, artifacts and versions go with it.

        Returns:
            False if the spark did not exist
        """
        async with self.session_factory() as session:
            result = await session.execute(delete(Spark).where(Spark.id == spark_id))
            await session.commit()

        deleted = result.rowcount > 0
        if deleted:
            logger.info("spark_deleted", spark_id=str(spark_id))
        return deleted
