"""ArtifactStore: row-level access to the artifacts and artifact_versions tables.

Bound to one AsyncSession; the caller owns the transaction (commit/rollback).
"""

import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sparkforge.core.exceptions import DataIntegrityError
from sparkforge.db.models.artifact import Artifact, ArtifactVersion
from sparkforge.schemas.artifacts import ArtifactState, ArtifactType, GenerationType


class ArtifactStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---- reads ----

    async def get_artifact(self, artifact_id: UUID, for_update: bool = False) -> Artifact | None:
        """Load an artifact row, optionally taking a row lock (SELECT ... FOR UPDATE)."""
        stmt = select(Artifact).where(Artifact.id == artifact_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_version(self, artifact_id: UUID, version: int) -> ArtifactVersion | None:
        result = await self.session.execute(
            select(ArtifactVersion).where(
                ArtifactVersion.artifact_id == artifact_id,
                ArtifactVersion.version == version,
            )
        )
        return result.scalar_one_or_none()

    async def get_current_version(self, artifact: Artifact) -> ArtifactVersion:
        """Resolve ``artifact.current_version``.

        Raises:
            DataIntegrityError: If the pointer does not match a version row
        """
        version = await self.get_version(artifact.id, artifact.current_version)
        if version is None:
            raise DataIntegrityError(
                f"Artifact {artifact.id} points at missing version {artifact.current_version}"
            )
        return version

    async def list_versions(self, artifact_id: UUID) -> list[ArtifactVersion]:
        """All versions of an artifact, newest number first."""
        result = await self.session.execute(
            select(ArtifactVersion)
            .where(ArtifactVersion.artifact_id == artifact_id)
            .order_by(ArtifactVersion.version.desc())
        )
        return list(result.scalars().all())

    async def version_numbers(self, artifact_id: UUID) -> list[int]:
        result = await self.session.execute(
            select(ArtifactVersion.version)
            .where(ArtifactVersion.artifact_id == artifact_id)
            .order_by(ArtifactVersion.version)
        )
        return list(result.scalars().all())

    async def next_version_number(self, artifact_id: UUID) -> int:
        """max(existing) + 1, so numbering continues past restored or deleted versions."""
        result = await self.session.execute(
            select(func.max(ArtifactVersion.version)).where(ArtifactVersion.artifact_id == artifact_id)
        )
        return (result.scalar_one_or_none() or 0) + 1

    async def list_with_current_version(self, story_id: UUID) -> list[tuple[Artifact, ArtifactVersion | None]]:
        """Artifacts of a story joined to their current version, newest artifact first.

        Outer join: a dangling pointer yields ``(artifact, None)`` instead of dropping the row.
        """
        result = await self.session.execute(
            select(Artifact, ArtifactVersion)
            .outerjoin(
                ArtifactVersion,
                and_(
                    ArtifactVersion.artifact_id == Artifact.id,
                    ArtifactVersion.version == Artifact.current_version,
                ),
            )
            .where(Artifact.story_id == story_id)
            .order_by(Artifact.created_at.desc())
        )
        return [(artifact, version) for artifact, version in result.all()]

    # ---- writes ----

    async def add_artifact(
        self,
        story_id: UUID,
        artifact_type: ArtifactType,
        now: datetime,
        source_artifact_id: UUID | None = None,
    ) -> Artifact:
        """Insert a draft artifact pointing at version 1 (the caller adds that row)."""
        artifact = Artifact(
            id=uuid.uuid4(),
            story_id=story_id,
            type=artifact_type.value,
            state=ArtifactState.DRAFT.value,
            current_version=1,
            source_artifact_id=source_artifact_id,
            created_at=now,
            updated_at=now,
            finalized_at=None,
        )
        self.session.add(artifact)
        await self.session.flush()
        return artifact

    def add_version(
        self,
        artifact_id: UUID,
        version: int,
        content: str,
        generation_type: GenerationType,
        now: datetime,
        user_feedback: str | None = None,
    ) -> ArtifactVersion:
        row = ArtifactVersion(
            id=uuid.uuid4(),
            artifact_id=artifact_id,
            version=version,
            content=content,
            user_feedback=user_feedback,
            generation_type=generation_type.value,
            created_at=now,
        )
        self.session.add(row)
        return row

    async def delete_version(self, artifact_id: UUID, version: int) -> None:
        await self.session.execute(
            delete(ArtifactVersion).where(
                ArtifactVersion.artifact_id == artifact_id,
                ArtifactVersion.version == version,
            )
        )

    async def delete_artifact(self, artifact_id: UUID) -> None:
        """Delete the artifact; the database cascades its versions and nulls lineage pointers."""
        await self.session.execute(delete(Artifact).where(Artifact.id == artifact_id))
