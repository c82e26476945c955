"""Capture request validation."""

from typing import Any

from pydantic import ValidationError

from pagesnap.shared.errors import InvalidParameters

from .schemas import CapturePayload, CaptureRequest


def validate_capture_request(payload: Any) -> CaptureRequest:
    """
    Build a CaptureRequest from a decoded JSON body.

    Raises:
        InvalidParameters: payload is not an object, has zero or two sources,
            or carries a malformed waitFor, trimColor, url or deviceProfile.
    """
    if not isinstance(payload, dict):
        raise InvalidParameters(
            f"Request body must be a JSON object, got {type(payload).__name__}"
        )

    try:
        params = CapturePayload.model_validate(payload)
    except ValidationError as e:
        problems = [_describe(err) for err in e.errors()]
        raise InvalidParameters(
            "Invalid capture parameters: " + "; ".join(problems),
            details={"errors": problems},
        ) from e

    return params.to_capture_request()


def _describe(err: Any) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()) if part != "__root__")
    msg = err.get("msg", "invalid value")
    # Model-level errors have an empty location
    return f"{loc}: {msg}" if loc else msg
