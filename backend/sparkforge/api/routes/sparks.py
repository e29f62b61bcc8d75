"""Spark routes. A spark owns exactly one story, created alongside it."""

from functools import lru_cache
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response

from sparkforge.api.routes.stories import get_story_service
from sparkforge.core.config import get_settings
from sparkforge.db.base import get_session_factory
from sparkforge.schemas.sparks import CreateSparkRequest, SparkResponse
from sparkforge.schemas.stories import StoryResponse
from sparkforge.services.spark_service import SparkService
from sparkforge.services.story_service import StoryService
from sparkforge.sparks.refiner import ClaudeSparkRefiner, SparkRefiner

router = APIRouter()


@lru_cache
def _default_refiner() -> ClaudeSparkRefiner:
    return ClaudeSparkRefiner.from_settings(get_settings())


def get_spark_refiner() -> SparkRefiner:
    """Dependency that provides the title and thoughts refiner.

    Override this dependency in tests via app.dependency_overrides.
    """
    return _default_refiner()


def get_spark_service(refiner: SparkRefiner = Depends(get_spark_refiner)) -> SparkService:
    return SparkService(get_session_factory(), default_user_id=get_settings().default_user_id, refiner=refiner)


@router.post("", status_code=201, response_model=SparkResponse)
async def create_spark(request: CreateSparkRequest, service: SparkService = Depends(get_spark_service)):
    return await service.create_spark(request.title, request.initial_thoughts)


@router.get("", response_model=list[SparkResponse])
async def list_sparks(service: SparkService = Depends(get_spark_service)):
    """All sparks, newest first, with draft/final artifact counts."""
    return await service.list_sparks()


@router.get("/{spark_id}", response_model=SparkResponse)
async def get_spark(spark_id: UUID, service: SparkService = Depends(get_spark_service)):
    return await service.get_spark(spark_id)


@router.delete("/{spark_id}", status_code=204)
async def delete_spark(spark_id: UUID, service: SparkService = Depends(get_spark_service)):
    """Delete a spark together with its story, artifacts and versions.

    Raises:
        HTTPException(404): Spark not found
    """
    if not await service.delete_spark(spark_id):
        raise HTTPException(status_code=404, detail="Spark not found")
    return Response(status_code=204)


@router.get("/{spark_id}/story", response_model=StoryResponse)
async def get_spark_story(spark_id: UUID, service: StoryService = Depends(get_story_service)):
    return await service.get_story_by_spark(spark_id)
