"""Artifact content generation package.

Provides:
- ContentGenerator: protocol consumed by the lifecycle manager
- ArtifactGenerator: Claude (text) and Replicate (image) implementation
- contents_equal: whitespace-insensitive comparison for version dedup
"""

from sparkforge.artifacts.generator import ArtifactGenerator, ContentGenerator
from sparkforge.artifacts.normalize import contents_equal, normalize_content

__all__ = ["ArtifactGenerator", "ContentGenerator", "contents_equal", "normalize_content"]
