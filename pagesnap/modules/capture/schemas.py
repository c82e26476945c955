"""Capture module schemas."""

import re
from dataclasses import dataclass, field
from typing import Annotated, Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator, model_validator

TRIM_COLOR_PATTERN = re.compile(r"[0-9a-fA-F]{6}")

# Schemes that never carry an authority component
OPAQUE_SCHEMES = {"about", "data", "javascript", "mailto", "blob"}


# =============================================================================
# VALIDATED REQUEST
# =============================================================================

@dataclass(frozen=True)
class UrlSource:
    """Navigate the page to a URL."""
    url: str


@dataclass(frozen=True)
class MarkupSource:
    """Set the page content directly."""
    html: str


CaptureSource = UrlSource | MarkupSource


@dataclass(frozen=True)
class CaptureRequest:
    """A validated, immutable capture request."""
    source: CaptureSource
    settle_delay_seconds: int = 0
    trim_color: str | None = None
    device_profile: dict[str, Any] | None = field(default=None, compare=False)


# =============================================================================
# WIRE PAYLOAD
# =============================================================================

class CapturePayload(BaseModel):
    """Decoded JSON body of a capture request."""

    model_config = ConfigDict(extra="ignore")

    url: StrictStr | None = Field(None, description="Absolute URL to capture")
    html: StrictStr | None = Field(None, description="Markup to capture")
    wait_for: Annotated[StrictInt, Field(ge=0)] | None = Field(
        None, alias="waitFor", description="Seconds to wait after load before capturing"
    )
    trim_color: StrictStr | None = Field(
        None, alias="trimColor", description="6-hex-digit background color to trim"
    )
    device_profile: dict[str, Any] | None = Field(
        None, alias="deviceProfile", description="Browser context options (viewport, user agent, ...)"
    )

    @field_validator("wait_for", mode="before")
    @classmethod
    def _accept_integral_float(cls, value: Any) -> Any:
        # JSON 1.0 and 1e0 are the integer 1
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str | None) -> str | None:
        if not value:
            return value
        if not is_absolute_url(value):
            raise ValueError(f"not an absolute URL: {value!r}")
        return value

    @field_validator("trim_color")
    @classmethod
    def _check_trim_color(cls, value: str | None) -> str | None:
        if value and not TRIM_COLOR_PATTERN.fullmatch(value):
            raise ValueError(f"expected 6 hex digits, got {value!r}")
        return value

    @model_validator(mode="after")
    def _check_single_source(self) -> "CapturePayload":
        if self.url and self.html:
            raise ValueError("provide either url or html, not both")
        if not self.url and not self.html:
            raise ValueError("either url or html is required")
        return self

    def to_capture_request(self) -> CaptureRequest:
        source: CaptureSource = UrlSource(self.url) if self.url else MarkupSource(self.html or "")
        return CaptureRequest(
            source=source,
            settle_delay_seconds=self.wait_for or 0,
            trim_color=self.trim_color or None,
            device_profile=self.device_profile,
        )


def is_absolute_url(value: str) -> bool:
    """True if ``value`` has a scheme and, for hierarchical schemes, a host or path."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not re.fullmatch(r"[a-zA-Z][a-zA-Z0-9+.\-]*", parts.scheme):
        return False
    scheme = parts.scheme.lower()
    if scheme in OPAQUE_SCHEMES:
        return bool(parts.path)
    if scheme == "file":
        return bool(parts.path)
    return bool(parts.netloc) and bool(parts.hostname)
