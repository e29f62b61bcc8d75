"""Content generation for artifacts.

``ContentGenerator`` is the contract the lifecycle manager depends on.
``ArtifactGenerator`` is the production implementation: Claude for text
artifacts, Replicate for images. Tests substitute ``GeneratorFake``.
"""

from typing import Protocol, runtime_checkable

import anthropic
import httpx
import structlog

from sparkforge.artifacts.llm_helpers import _invoke_with_retry
from sparkforge.artifacts.prompts import image_prompt, linkedin_post_system_prompt
from sparkforge.core.config import Settings
from sparkforge.core.exceptions import GenerationError
from sparkforge.integrations.replicate import ReplicateError, ReplicateImageClient
from sparkforge.schemas.artifacts import ArtifactType

logger = structlog.get_logger(__name__)


@runtime_checkable
class ContentGenerator(Protocol):
    """Produces artifact content from a story, optionally steered by feedback."""

    async def generate(
        self,
        artifact_type: ArtifactType,
        story_content: str,
        feedback: str | None = None,
    ) -> str:
        """Return plain text for text types, base64 for image types.

        Raises:
            GenerationError: If the underlying provider is unavailable or fails
        """
        ...


class ArtifactGenerator:
    """Generates artifact content with Anthropic (text) and Replicate (image)."""

    def __init__(
        self,
        text_client: anthropic.AsyncAnthropic | None,
        image_client: ReplicateImageClient | None,
        text_model: str,
        text_max_tokens: int = 2000,
    ):
        self.text_client = text_client
        self.image_client = image_client
        self.text_model = text_model
        self.text_max_tokens = text_max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArtifactGenerator":
        """Build clients for whichever providers have credentials configured."""
        text_client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key) if settings.anthropic_api_key else None
        image_client = (
            ReplicateImageClient(
                api_token=settings.replicate_api_token,
                model=settings.image_model,
                timeout=settings.generation_timeout_seconds,
            )
            if settings.replicate_api_token
            else None
        )
        return cls(
            text_client=text_client,
            image_client=image_client,
            text_model=settings.text_model,
            text_max_tokens=settings.text_max_tokens,
        )

    async def generate(
        self,
        artifact_type: ArtifactType,
        story_content: str,
        feedback: str | None = None,
    ) -> str:
        if artifact_type is ArtifactType.IMAGE:
            return await self._generate_image(story_content, feedback)
        return await self._generate_text(story_content, feedback)

    async def _generate_text(self, story_content: str, feedback: str | None) -> str:
        if self.text_client is None:
            raise GenerationError("ANTHROPIC_API_KEY is not configured")

        system = linkedin_post_system_prompt(story=story_content, feedback=feedback)
        messages = [{"role": "user", "content": f"Story context: {story_content}"}]

        try:
            text = await _invoke_with_retry(
                self.text_client,
                model=self.text_model,
                system=system,
                messages=messages,
                max_tokens=self.text_max_tokens,
            )
        except anthropic.APIError as exc:
            logger.warning("text_generation_failed", error=str(exc), error_type=type(exc).__name__)
            raise GenerationError(f"Text generation failed: {exc}") from exc

        if not text.strip():
            logger.warning("text_generation_empty", model=self.text_model)
            raise GenerationError("Text generation returned no content")
        return text

    async def _generate_image(self, story_content: str, feedback: str | None) -> str:
        if self.image_client is None:
            raise GenerationError("REPLICATE_API_TOKEN is not configured")

        try:
            return await self.image_client.generate_base64(image_prompt(story_content, feedback))
        except (ReplicateError, httpx.HTTPError) as exc:
            logger.warning("image_generation_failed", error=str(exc), error_type=type(exc).__name__)
            raise GenerationError(f"Image generation failed: {exc}") from exc
