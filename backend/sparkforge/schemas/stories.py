"""Pydantic schemas for stories."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UpdateStoryRequest(BaseModel):
    content: str = Field(..., max_length=50000)
    is_auto_save: bool = False


class AutosaveStoryRequest(BaseModel):
    content: str = Field(..., max_length=50000)


class StoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    spark_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime
    last_auto_saved_at: datetime | None = None
