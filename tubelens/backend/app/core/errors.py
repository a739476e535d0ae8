"""
TubeLens error taxonomy.

Every error a caller can observe derives from TubeLensError and carries an
HTTP status plus a stable machine code; the API layer renders them with a
single exception handler.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class TubeLensError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.context:
            payload["context"] = self.context
        return payload


class ConfigurationError(TubeLensError):
    code = "CONFIGURATION_ERROR"


class ValidationError(TubeLensError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(TubeLensError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = (
            f"{resource} with identifier '{identifier}' not found"
            if identifier else f"{resource} not found"
        )
        super().__init__(message)


class PreconditionError(TubeLensError):
    """A trigger was invoked on a job that is not in a runnable state."""
    status_code = 409
    code = "PRECONDITION_FAILED"


class ExternalServiceError(TubeLensError):
    status_code = 503
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, original: Optional[BaseException] = None):
        detail = str(original) if original else "Unknown error"
        super().__init__(
            f"External service {service} failed: {detail}",
            context={"service": service},
        )
        self.service = service
        self.original = original


class TranscriptUnavailableError(TubeLensError):
    status_code = 502
    code = "TRANSCRIPT_UNAVAILABLE"

    def __init__(self, youtube_id: str, failures: Dict[str, str], skipped: Iterable[str] = ()):
        skipped = list(skipped)
        parts = [f"{name}: {reason}" for name, reason in failures.items()]
        if skipped:
            parts.append(f"skipped (no credentials): {', '.join(skipped)}")
        detail = "; ".join(parts) if parts else "no extraction path available"
        super().__init__(
            f"All transcript extraction methods failed for {youtube_id} ({detail})",
            context={"youtube_id": youtube_id, "attempted": list(failures), "skipped": skipped},
        )
        self.failures = failures
        self.skipped = skipped


class SectionGenerationError(TubeLensError):
    code = "SECTION_GENERATION_FAILED"


class CriticalSectionsFailedError(TubeLensError):
    code = "CRITICAL_SECTIONS_FAILED"

    def __init__(self, section_types: Iterable[str]):
        self.section_types = list(section_types)
        super().__init__(f"Critical sections failed: {', '.join(self.section_types)}")
