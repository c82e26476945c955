"""
Shared types used across modules.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Per-request metadata attached to log records."""

    request_id: str
    client: str | None = None
