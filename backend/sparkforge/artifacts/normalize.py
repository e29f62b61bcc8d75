"""Whitespace-insensitive content comparison used to skip no-op versions."""

import re

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_content(content: str) -> str:
    """Trim and collapse every whitespace run to a single space."""
    return _WHITESPACE_RUN.sub(" ", content.strip())


def contents_equal(left: str, right: str) -> bool:
    """True when both contents normalize to identical (case-sensitive) strings."""
    return normalize_content(left) == normalize_content(right)
