"""Editorial refinement of a spark's title and initial thoughts.

``SparkRefiner`` is the contract ``SparkService`` depends on. ``ClaudeSparkRefiner``
is the production implementation; tests substitute ``SparkRefinerFake``.
"""

from typing import Protocol, runtime_checkable

import anthropic
import structlog

from sparkforge.artifacts.llm_helpers import _invoke_with_retry
from sparkforge.core.config import Settings
from sparkforge.core.exceptions import GenerationError
from sparkforge.sparks.prompts import refine_thoughts_prompt, refine_title_prompt

logger = structlog.get_logger(__name__)


@runtime_checkable
class SparkRefiner(Protocol):
    async def refine_title(self, title: str, initial_thoughts: str | None = None) -> str:
        """Return an edited title.

        Raises:
            GenerationError: If the provider is unavailable, fails or returns nothing
        """
        ...

    async def refine_thoughts(self, title: str, initial_thoughts: str) -> str:
        """Return edited initial thoughts.

        Raises:
            GenerationError: If the provider is unavailable, fails or returns nothing
        """
        ...


class ClaudeSparkRefiner:
    def __init__(self, client: anthropic.AsyncAnthropic | None, model: str, max_tokens: int = 500):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaudeSparkRefiner":
        client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key) if settings.anthropic_api_key else None
        return cls(client=client, model=settings.text_model, max_tokens=settings.refine_max_tokens)

    async def _complete(self, system: str, user_text: str, field: str) -> str:
        if self.client is None:
            raise GenerationError("ANTHROPIC_API_KEY is not configured")

        try:
            text = await _invoke_with_retry(
                self.client,
                model=self.model,
                system=system,
                messages=[{"role": "user", "content": user_text}],
                max_tokens=self.max_tokens,
            )
        except anthropic.APIError as exc:
            logger.warning("spark_refine_failed", field=field, error=str(exc), error_type=type(exc).__name__)
            raise GenerationError(f"Refining {field} failed: {exc}") from exc

        text = text.strip()
        if not text:
            raise GenerationError(f"Refining {field} returned no content")
        return text

    async def refine_title(self, title: str, initial_thoughts: str | None = None) -> str:
        refined = await self._complete(refine_title_prompt(title, initial_thoughts), title, "title")
        # Headlines come back quoted often enough to strip unconditionally
        return refined.splitlines()[0].strip().strip('"').strip()

    async def refine_thoughts(self, title: str, initial_thoughts: str) -> str:
        return await self._complete(refine_thoughts_prompt(title, initial_thoughts), initial_thoughts, "initial_thoughts")
