"""
Render session - one isolated Chromium instance per capture.

A session owns the Playwright driver, the browser process, one browser
context and one page. They are created together in ``open()`` and released
together in ``close()``. Sessions are never pooled or reused.
"""

import asyncio
from enum import Enum
from typing import Any, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from pagesnap.shared.errors import (
    CaptureError,
    NavigationError,
    PageSnapError,
    RenderLaunchError,
)
from pagesnap.shared.logging import get_logger

from .schemas import CaptureSource, MarkupSource, UrlSource

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LAUNCHED = "launched"
    CONTENT_LOADED = "content_loaded"
    CAPTURED = "captured"
    CLOSED = "closed"
    FAILED = "failed"


TERMINAL_STATES = {SessionState.CLOSED, SessionState.FAILED}


class RenderSession:
    """
    Lifecycle of a single renderer for a single capture.

    Use as an async context manager so that ``close()`` runs on every exit
    path::

        async with RenderSession(profile) as session:
            await session.load(source)
            await session.settle(seconds)
            raster = await session.capture()
    """

    def __init__(
        self,
        device_profile: dict[str, Any] | None = None,
        *,
        headless: bool = True,
        browser_args: list[str] | None = None,
        driver_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.device_profile = dict(device_profile or {})
        self.headless = headless
        self.browser_args = list(browser_args or [])
        self._driver_factory = driver_factory

        self.state = SessionState.UNINITIALIZED
        self._driver = None
        self._browser = None
        self._context = None
        self._page = None

    async def __aenter__(self) -> "RenderSession":
        try:
            await self.open()
        except BaseException:
            # __aexit__ does not run when __aenter__ raises
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Launch a fresh browser and open a page in a new isolated context."""
        if self.state != SessionState.UNINITIALIZED:
            raise RenderLaunchError(f"Session already opened (state: {self.state.value})")

        try:
            self._driver = await self._driver_factory().start()
            self._browser = await self._driver.chromium.launch(
                headless=self.headless,
                args=self.browser_args,
            )
            self._context = await self._browser.new_context(**self.device_profile)
            self._page = await self._context.new_page()
        except Exception as e:
            # Partially created resources are released by close()
            self.state = SessionState.FAILED
            raise RenderLaunchError(f"Failed to launch renderer: {e}") from e

        self.state = SessionState.LAUNCHED
        logger.debug("Renderer launched")

    async def load(self, source: CaptureSource) -> None:
        """Navigate to a URL or set the page markup."""
        self._require(NavigationError, SessionState.LAUNCHED)

        try:
            if isinstance(source, UrlSource):
                logger.debug(f"Navigating to {source.url}")
                await self._page.goto(source.url, wait_until="load")
            elif isinstance(source, MarkupSource):
                logger.debug(f"Setting content ({len(source.html)} chars)")
                await self._page.set_content(source.html)
            else:
                raise NavigationError(f"Unsupported source: {type(source).__name__}")
        except PageSnapError:
            self.state = SessionState.FAILED
            raise
        except PlaywrightError as e:
            self.state = SessionState.FAILED
            raise NavigationError(f"Failed to load content: {e.message}") from e

        self.state = SessionState.CONTENT_LOADED

    async def settle(self, seconds: int) -> None:
        """Wait for asynchronous rendering to finish before capture."""
        self._require(CaptureError, SessionState.CONTENT_LOADED)
        if seconds > 0:
            logger.debug(f"Settling for {seconds}s")
            await asyncio.sleep(seconds)

    async def capture(self) -> bytes:
        """Take a full-page PNG snapshot of the current page."""
        self._require(CaptureError, SessionState.CONTENT_LOADED)

        try:
            raster = await self._page.screenshot(full_page=True, type="png")
        except PlaywrightError as e:
            self.state = SessionState.FAILED
            raise CaptureError(f"Failed to capture page: {e.message}") from e

        self.state = SessionState.CAPTURED
        logger.debug(f"Captured raster: {len(raster)} bytes")
        return raster

    async def close(self) -> None:
        """
        Tear down context, then browser, then driver.

        Safe to call more than once and from any state. Teardown errors are
        logged, never raised.
        """
        await self._teardown()
        self.state = SessionState.CLOSED

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _teardown(self) -> None:
        context, browser, driver = self._context, self._browser, self._driver
        self._page = None
        self._context = None
        self._browser = None
        self._driver = None

        if context is not None:
            try:
                await context.close()
            except Exception as e:
                # Context may already be closed
                logger.debug(f"Ignoring context close error: {e}")
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                # Browser may already be closed
                logger.debug(f"Ignoring browser close error: {e}")
        if driver is not None:
            try:
                await driver.stop()
            except Exception as e:
                logger.debug(f"Ignoring driver stop error: {e}")

    def _require(self, error_cls: type[PageSnapError], *states: SessionState) -> None:
        if self.state in TERMINAL_STATES:
            raise error_cls(f"Render session is {self.state.value}")
        if self.state not in states:
            raise error_cls(
                f"Invalid session state {self.state.value}, "
                f"expected {' or '.join(s.value for s in states)}"
            )
