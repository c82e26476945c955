"""
Capture service - end-to-end capture of a URL or markup to PNG.
"""

import asyncio
import time
from typing import Any, Callable

from pagesnap.config import Settings, get_settings
from pagesnap.shared.errors import CaptureFailure, CaptureTimeoutError, InvalidParameters
from pagesnap.shared.logging import get_logger

from .imaging import process_image
from .schemas import CaptureRequest, UrlSource
from .session import RenderSession
from .validator import validate_capture_request

logger = get_logger(__name__)


class CaptureService:
    """
    Orchestrates one capture: open session, load, settle, capture, close,
    then run the image pipeline.

    Each call launches its own renderer. Nothing is shared between calls.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory: Callable[..., RenderSession] = RenderSession,
    ) -> None:
        self.settings = settings or get_settings()
        self._session_factory = session_factory

    async def capture_payload(self, payload: Any) -> bytes:
        """Validate a decoded JSON body, then capture it."""
        try:
            request = validate_capture_request(payload)
        except InvalidParameters as e:
            raise CaptureFailure(e) from e
        return await self.capture(request)

    async def capture(self, request: CaptureRequest) -> bytes:
        """
        Capture a request to PNG bytes.

        Raises:
            CaptureFailure: any step failed; ``kind`` names the cause. The
                render session has been closed by the time this is raised.
        """
        start_time = time.monotonic()
        target = _describe_source(request)

        try:
            raster = await self._render_with_deadline(request)
            image = await asyncio.to_thread(
                process_image,
                raster,
                request.trim_color,
                width=self.settings.output_width,
                trim_threshold=self.settings.trim_threshold,
                compress_level=self.settings.png_compress_level,
            )
        except Exception as e:
            raise CaptureFailure(e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(f"Captured {target}: {len(image)} bytes in {duration_ms}ms")
        return image

    async def _render_with_deadline(self, request: CaptureRequest) -> bytes:
        timeout = self.settings.capture_timeout_seconds
        if timeout is None:
            return await self._render(request)

        try:
            return await asyncio.wait_for(self._render(request), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise CaptureTimeoutError(f"Capture did not finish within {timeout}s") from e

    async def _render(self, request: CaptureRequest) -> bytes:
        profile = request.device_profile
        if profile is None:
            profile = self.settings.default_device_profile

        session = self._session_factory(
            profile,
            headless=self.settings.headless,
            browser_args=self.settings.browser_args,
        )
        # The session closes on every exit path, including cancellation
        async with session:
            await session.load(request.source)
            await session.settle(request.settle_delay_seconds)
            return await session.capture()


def _describe_source(request: CaptureRequest) -> str:
    if isinstance(request.source, UrlSource):
        return request.source.url
    return f"markup ({len(request.source.html)} chars)"
