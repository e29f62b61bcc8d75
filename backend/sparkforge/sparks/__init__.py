"""Spark refinement package."""

from sparkforge.sparks.refiner import ClaudeSparkRefiner, SparkRefiner

__all__ = ["ClaudeSparkRefiner", "SparkRefiner"]
