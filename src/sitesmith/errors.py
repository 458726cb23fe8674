"""Error types that can terminate a generation job.

Stage-level service failures never surface as these; they are absorbed by
``run_with_fallback``. Invalid input, an unwritable output sink and an
explicit cancellation end a job early. An unexpected defect inside the
pipeline is reported as ``PipelineError``.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_PROFILE = "INVALID_PROFILE"
    OUTPUT_SINK = "OUTPUT_SINK"
    CANCELLED = "CANCELLED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL = "INTERNAL"


class SitesmithError(Exception):
    """Base error carrying a machine-readable code."""

    code: ErrorCode = ErrorCode.INVALID_PROFILE

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def model_dump(self) -> dict[str, str]:
        """Return the structured failure reason sent to observers."""
        return {"code": self.code.value, "message": self.message}


class InvalidProfileError(SitesmithError):
    """The business profile is missing a mandatory field or is malformed."""

    code = ErrorCode.INVALID_PROFILE


class OutputSinkError(SitesmithError):
    """The output sink could not persist the finished artifact."""

    code = ErrorCode.OUTPUT_SINK


class JobCancelledError(SitesmithError):
    """Raised at a stage boundary after cancellation was requested."""

    code = ErrorCode.CANCELLED


class ServiceUnavailableError(SitesmithError):
    """An external generation service is not configured or not reachable."""

    code = ErrorCode.SERVICE_UNAVAILABLE


class PipelineError(SitesmithError):
    """A pipeline step raised outside any stage fallback."""

    code = ErrorCode.INTERNAL
