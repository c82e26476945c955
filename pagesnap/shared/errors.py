"""
Error hierarchy for PageSnap.

Every error carries a stable ``code`` and the HTTP status the boundary should
answer with. Core failures all map to 500; the boundary-only errors (token,
method) carry their own statuses.
"""

from typing import Any


class PageSnapError(Exception):
    """Base class for all PageSnap errors."""

    code: str = "INTERNAL_ERROR"
    http_status: int = 500
    public_error: str = "Internal Server Error"

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON error body sent to clients."""
        return {"error": self.public_error, "message": self.message}


# =============================================================================
# CORE ERRORS
# =============================================================================

class InvalidParameters(PageSnapError):
    """Malformed or contradictory capture request."""

    code = "INVALID_PARAMETERS"


class RenderLaunchError(PageSnapError):
    """The renderer process could not be started."""

    code = "RENDER_LAUNCH_FAILED"


class NavigationError(PageSnapError):
    """URL unreachable or rejected, or markup could not be set."""

    code = "NAVIGATION_FAILED"


class CaptureError(PageSnapError):
    """Raster capture failed on a dead or invalid page."""

    code = "CAPTURE_FAILED"


class CaptureTimeoutError(CaptureError):
    """The configured capture deadline expired."""

    code = "CAPTURE_TIMEOUT"


class ImageProcessingError(PageSnapError):
    """Corrupt raster or unparsable trim color."""

    code = "IMAGE_PROCESSING_FAILED"


class CaptureFailure(PageSnapError):
    """
    Aggregate failure raised by the capture orchestrator.

    Wraps the underlying error; ``kind`` is the code of the cause so callers
    can tell a bad URL from a renderer crash without parsing the message.
    """

    code = "CAPTURE_FAILURE"

    def __init__(self, cause: Exception) -> None:
        if isinstance(cause, PageSnapError):
            kind = cause.code
            message = cause.message
        else:
            kind = type(cause).__name__
            message = str(cause)
        super().__init__(message, details={"kind": kind})
        self.cause = cause
        self.kind = kind


# =============================================================================
# BOUNDARY ERRORS
# =============================================================================

class InvalidTokenError(PageSnapError):
    """Request path did not carry the configured token."""

    code = "INVALID_TOKEN"
    http_status = 401
    public_error = "Invalid token"


class MethodNotAllowedError(PageSnapError):
    """Only POST is accepted."""

    code = "METHOD_NOT_ALLOWED"
    http_status = 405
    public_error = "Method not allowed. Use POST instead."
