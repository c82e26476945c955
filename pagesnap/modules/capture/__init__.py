"""Capture module - render URLs or markup to PNG using Playwright."""

from .router import router
from .schemas import CaptureRequest, MarkupSource, UrlSource
from .service import CaptureService

__all__ = ["router", "CaptureService", "CaptureRequest", "MarkupSource", "UrlSource"]
