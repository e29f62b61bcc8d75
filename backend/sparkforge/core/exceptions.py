class SparkforgeError(Exception):
    """Base exception for Sparkforge application."""

    status_code: int = 500


class NotFoundError(SparkforgeError):
    """Raised when a spark, story, artifact or artifact version does not exist."""

    status_code = 404


class InvalidStateError(SparkforgeError):
    """Raised when the artifact lifecycle forbids the requested operation."""

    status_code = 400


class GenerationError(SparkforgeError):
    """Raised when the content generator is unavailable, errors, or times out."""

    status_code = 502


class ArtifactLockedError(SparkforgeError):
    """Raised when the per-artifact write lock could not be acquired in time."""

    status_code = 409

    def __init__(self, artifact_id: str, waited_seconds: float, holder: dict | None = None):
        self.artifact_id = artifact_id
        self.waited_seconds = waited_seconds
        self.holder = holder
        message = f"Artifact {artifact_id} is busy, gave up after {waited_seconds:g}s"
        if holder and holder.get("expires_in", -1) > 0:
            message += f"; current lock expires in {holder['expires_in']}s"
        super().__init__(message)


class DataIntegrityError(SparkforgeError):
    """Raised when persisted state violates an invariant (e.g. dangling current version)."""

    status_code = 500
