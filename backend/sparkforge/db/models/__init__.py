"""Re-export all models so Base.metadata sees them."""

from sparkforge.db.models.artifact import Artifact, ArtifactVersion
from sparkforge.db.models.spark import Spark
from sparkforge.db.models.story import Story

__all__ = [
    "Artifact",
    "ArtifactVersion",
    "Spark",
    "Story",
]
