"""GeneratorFake: scenario-based test double for the ContentGenerator protocol.

Scenarios:
- happy_path: content derived from the story; feedback yields a revised post
- unchanged: always returns the same text, so every iteration is a no-op
- generation_failure: every call raises GenerationError

All scenarios return instantly and record their calls.
"""

import base64

from sparkforge.core.exceptions import GenerationError
from sparkforge.schemas.artifacts import ArtifactType

FAKE_IMAGE_BYTES = b"\x89PNG\r\n\x1a\nsparkforge-fake-image"


class GeneratorFake:
    VALID_SCENARIOS = {"happy_path", "unchanged", "generation_failure"}

    def __init__(self, scenario: str = "happy_path"):
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.calls: list[tuple[ArtifactType, str, str | None]] = []

    async def generate(
        self,
        artifact_type: ArtifactType,
        story_content: str,
        feedback: str | None = None,
    ) -> str:
        self.calls.append((artifact_type, story_content, feedback))

        if self.scenario == "generation_failure":
            raise GenerationError("Anthropic API rate limit exceeded. Retry after 60 seconds.")

        if artifact_type is ArtifactType.IMAGE:
            payload = FAKE_IMAGE_BYTES if feedback is None or self.scenario == "unchanged" else FAKE_IMAGE_BYTES + feedback.encode()
            return base64.b64encode(payload).decode("ascii")

        if self.scenario == "unchanged" or feedback is None:
            return f"Here is what I learned: {story_content.strip()}\n\n#growth #leadership"

        return f"Here is what I learned: {story_content.strip()}\n\n(Revised: {feedback})\n\n#growth #leadership"
