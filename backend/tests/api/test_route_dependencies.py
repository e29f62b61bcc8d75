"""Provider clients are built once per process, not once per request."""

import pytest

from sparkforge.api.routes.artifacts import _default_generator, get_generator
from sparkforge.api.routes.sparks import _default_refiner, get_spark_refiner
from sparkforge.artifacts.generator import ArtifactGenerator
from sparkforge.core.config import get_settings
from sparkforge.sparks.refiner import ClaudeSparkRefiner

pytestmark = pytest.mark.unit


@pytest.fixture
def fresh_caches(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    for cached in (get_settings, _default_generator, _default_refiner):
        cached.cache_clear()
    yield
    for cached in (get_settings, _default_generator, _default_refiner):
        cached.cache_clear()


def test_get_generator_reuses_one_generator(fresh_caches):
    first = get_generator()
    second = get_generator()

    assert isinstance(first, ArtifactGenerator)
    assert first is second
    assert first.text_client is second.text_client


def test_get_spark_refiner_reuses_one_client(fresh_caches):
    first = get_spark_refiner()

    assert isinstance(first, ClaudeSparkRefiner)
    assert get_spark_refiner().client is first.client
