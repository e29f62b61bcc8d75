"""Artifact models: draft/final publishable units and their immutable versions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid

from sparkforge.db.base import Base


class Artifact(Base):
    """A typed publishable unit derived from a story.

    ``current_version`` points at one row of ``artifact_versions`` for this artifact.
    ``source_artifact_id`` is lineage only: deleting the source nulls it out.
    """

    __tablename__ = "artifacts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    story_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("stories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(50), nullable=False)  # ArtifactType value
    state = Column(String(20), nullable=False, default="draft")  # ArtifactState value
    current_version = Column(Integer, nullable=False, default=1)
    source_artifact_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("artifacts.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    finalized_at = Column(DateTime(timezone=True), nullable=True)


class ArtifactVersion(Base):
    """Immutable content snapshot. Numbers are never reused within an artifact."""

    __tablename__ = "artifact_versions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    artifact_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("artifacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)
    content = Column(Text, nullable=False, default="")
    user_feedback = Column(Text, nullable=True)
    generation_type = Column(String(20), nullable=False)  # GenerationType value

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("artifact_id", "version", name="uq_artifact_version_number"),)
