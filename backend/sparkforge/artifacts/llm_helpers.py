"""Anthropic call wrapper with retry on overload."""

from typing import Any

import structlog
from anthropic._exceptions import OverloadedError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)


def _first_text_block(response: Any) -> str:
    """Return the text of the first text content block, or '' if there is none."""
    for block in response.content:
        if getattr(block, "type", None) == "text":
            return block.text
    return ""


@retry(
    retry=retry_if_exception_type(OverloadedError),
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=2, min=2, max=30),
    reraise=True,
    before_sleep=lambda rs: logger.warning(
        "claude_overloaded_retrying",
        attempt=rs.attempt_number,
        sleep_seconds=rs.next_action.sleep,
    ),
)
async def _invoke_with_retry(
    client: Any,
    model: str,
    system: str,
    messages: list[dict],
    max_tokens: int = 2000,
) -> str:
    """Invoke ``client.messages.create()`` retrying only on Claude 529 overload.

    Args:
        client: anthropic.AsyncAnthropic (or anything exposing ``messages.create``)
        model: Model name
        system: System prompt string
        messages: List of message dicts (role/content format)
        max_tokens: Maximum tokens for the response

    Returns:
        Text of the first text block in the response
    """
    response = await client.messages.create(
        model=model,
        system=system,
        messages=messages,
        max_tokens=max_tokens,
    )
    return _first_text_block(response)
