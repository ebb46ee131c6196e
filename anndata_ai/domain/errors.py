from __future__ import annotations

from typing import List, Optional, Sequence


class AnalysisError(Exception):
    """Base class for errors raised while serving an analysis request."""


class ValidationError(AnalysisError):
    """Caller input is missing required fields or has malformed values.

    Raised before any upstream call is made.
    """

    def __init__(self, message: str, missing_fields: Optional[Sequence[str]] = None):
        self.missing_fields: List[str] = list(missing_fields or [])
        super().__init__(message)


class UpstreamError(AnalysisError):
    """The remote text-generation service did not produce a usable completion."""

    reason = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        backend: str = "unknown",
        status_code: Optional[int] = None,
    ):
        self.backend = backend
        self.status_code = status_code
        super().__init__(message)


class UpstreamUnavailable(UpstreamError):
    reason = "unavailable"


class UpstreamAuthError(UpstreamError):
    reason = "auth"


class UpstreamTimeout(UpstreamError):
    reason = "timeout"


class UpstreamEmptyResponse(UpstreamError):
    reason = "empty_response"
