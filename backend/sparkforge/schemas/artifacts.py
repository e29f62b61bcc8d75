"""Pydantic schemas for artifacts and their versions.

Enumerations are closed: the database stores their string values and every read
goes back through these enums.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ArtifactType(StrEnum):
    """Kinds of publishable content an artifact can hold."""

    LINKEDIN_POST = "linkedin_post"
    IMAGE = "image"

    @property
    def is_binary(self) -> bool:
        """Binary types carry base64 payloads rather than readable text."""
        return self is ArtifactType.IMAGE


class ArtifactState(StrEnum):
    DRAFT = "draft"
    FINAL = "final"


class GenerationType(StrEnum):
    """Provenance of a version's content."""

    AI_GENERATED = "ai_generated"
    USER_EDITED = "user_edited"


# ==================== REQUESTS ====================


class CreateArtifactRequest(BaseModel):
    story_id: UUID
    type: ArtifactType


class AddFeedbackRequest(BaseModel):
    feedback: str = Field(..., min_length=1, max_length=2000)


class UpdateContentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=50000)


# ==================== RESPONSES ====================


class ArtifactResponse(BaseModel):
    """Artifact row without version content."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    story_id: UUID
    type: ArtifactType
    state: ArtifactState
    current_version: int = Field(..., ge=1)
    created_at: datetime
    updated_at: datetime
    finalized_at: datetime | None = None
    source_artifact_id: UUID | None = None


class ArtifactWithVersionResponse(ArtifactResponse):
    """Artifact merged with its current version."""

    current_version_content: str
    current_version_feedback: str | None = None
    current_version_generation_type: GenerationType


class ArtifactMutationResponse(ArtifactWithVersionResponse):
    """Result of an edit that may or may not have produced a new version."""

    new_version_created: bool


class ArtifactVersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    artifact_id: UUID
    version: int = Field(..., ge=1)
    content: str
    user_feedback: str | None = None
    generation_type: GenerationType
    created_at: datetime


class ArtifactSummaryResponse(ArtifactResponse):
    """Row of a per-story artifact listing; image content is never previewed."""

    content_snippet: str
