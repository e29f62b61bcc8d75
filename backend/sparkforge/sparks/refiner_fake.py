"""SparkRefinerFake: scenario-based test double for the SparkRefiner protocol.

Scenarios:
- identity: returns its input unchanged
- refined: returns a deterministic edit of the input
- refinement_failure: every call raises GenerationError
"""

from sparkforge.core.exceptions import GenerationError


class SparkRefinerFake:
    VALID_SCENARIOS = {"identity", "refined", "refinement_failure"}

    def __init__(self, scenario: str = "identity"):
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.calls: list[tuple[str, str, str | None]] = []

    def _edit(self, field: str, text: str) -> str:
        if self.scenario == "refinement_failure":
            raise GenerationError(f"Refining {field} failed: overloaded")
        if self.scenario == "refined":
            return f"Refined: {text.strip()}"
        return text

    async def refine_title(self, title: str, initial_thoughts: str | None = None) -> str:
        self.calls.append(("title", title, initial_thoughts))
        return self._edit("title", title)

    async def refine_thoughts(self, title: str, initial_thoughts: str) -> str:
        self.calls.append(("initial_thoughts", title, initial_thoughts))
        return self._edit("initial_thoughts", initial_thoughts)
