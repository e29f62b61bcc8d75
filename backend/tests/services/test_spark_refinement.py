"""SparkService refines title and initial thoughts before storing them."""

import asyncio

import pytest

from sparkforge.core.exceptions import GenerationError
from sparkforge.services.spark_service import SparkService
from sparkforge.sparks.refiner_fake import SparkRefinerFake

pytestmark = pytest.mark.integration


async def test_create_spark_stores_refined_title_and_thoughts(session_factory):
    refiner = SparkRefinerFake(scenario="refined")
    service = SparkService(session_factory, refiner=refiner)

    spark = await service.create_spark("remote onbording", "first week was chaos")

    assert spark.title == "Refined: remote onbording"
    assert spark.initial_thoughts == "Refined: first week was chaos"
    assert sorted(call[0] for call in refiner.calls) == ["initial_thoughts", "title"]

    stored = await service.get_spark(spark.id)
    assert stored.title == spark.title
    assert stored.initial_thoughts == spark.initial_thoughts


@pytest.mark.parametrize("thoughts", [None, ""])
async def test_no_thoughts_means_only_title_is_refined(session_factory, thoughts):
    refiner = SparkRefinerFake(scenario="refined")
    service = SparkService(session_factory, refiner=refiner)

    spark = await service.create_spark("Idea", thoughts)

    assert refiner.calls == [("title", "Idea", None)]
    assert spark.initial_thoughts is None


async def test_refinement_failure_keeps_what_the_user_typed(session_factory, story_service):
    service = SparkService(session_factory, refiner=SparkRefinerFake(scenario="refinement_failure"))

    spark = await service.create_spark("Raw title", "raw thoughts")

    assert spark.title == "Raw title"
    assert spark.initial_thoughts == "raw thoughts"
    story = await story_service.get_story_by_spark(spark.id)
    assert story.content == ""


async def test_title_and_thoughts_are_refined_concurrently(session_factory):
    both_started = asyncio.Event()
    started = []

    class GatedRefiner:
        async def _enter(self, field):
            started.append(field)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)

        async def refine_title(self, title, initial_thoughts=None):
            await self._enter("title")
            return "Title after edit"

        async def refine_thoughts(self, title, initial_thoughts):
            await self._enter("initial_thoughts")
            return "Thoughts after edit"

    service = SparkService(session_factory, refiner=GatedRefiner())

    spark = await service.create_spark("t", "th")

    assert spark.title == "Title after edit"
    assert spark.initial_thoughts == "Thoughts after edit"


async def test_one_field_failing_does_not_discard_the_other(session_factory):
    class HalfBrokenRefiner:
        async def refine_title(self, title, initial_thoughts=None):
            raise GenerationError("Refining title failed: overloaded")

        async def refine_thoughts(self, title, initial_thoughts):
            return "Cleaned up thoughts"

    service = SparkService(session_factory, refiner=HalfBrokenRefiner())

    spark = await service.create_spark("Keep me", "messy thoughts")

    assert spark.title == "Keep me"
    assert spark.initial_thoughts == "Cleaned up thoughts"


async def test_blank_or_oversized_refinement(session_factory):
    class SloppyRefiner:
        async def refine_title(self, title, initial_thoughts=None):
            return "x" * 400

        async def refine_thoughts(self, title, initial_thoughts):
            return "   "

    service = SparkService(session_factory, refiner=SloppyRefiner())

    spark = await service.create_spark("Short", "original thoughts")

    assert spark.title == "x" * 255
    assert spark.initial_thoughts == "original thoughts"


async def test_unexpected_refiner_error_propagates(session_factory, spark_service):
    class BuggyRefiner:
        async def refine_title(self, title, initial_thoughts=None):
            raise RuntimeError("bug")

        async def refine_thoughts(self, title, initial_thoughts):
            return initial_thoughts

    service = SparkService(session_factory, refiner=BuggyRefiner())

    with pytest.raises(RuntimeError, match="bug"):
        await service.create_spark("Title", "thoughts")
    assert await spark_service.list_sparks() == []
