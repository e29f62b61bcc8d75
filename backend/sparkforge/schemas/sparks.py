"""Pydantic schemas for sparks."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateSparkRequest(BaseModel):
    title: str = Field(..., max_length=255)
    initial_thoughts: str | None = Field(None, max_length=500)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class ArtifactCounts(BaseModel):
    draft: int = 0
    final: int = 0


class SparkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    initial_thoughts: str | None = None
    created_at: datetime
    updated_at: datetime
    artifact_counts: ArtifactCounts = Field(default_factory=ArtifactCounts)
