"""Shared fixtures: settings, a fake Playwright driver, and a test client."""

from io import BytesIO
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image, ImageDraw

from pagesnap.app import build_app
from pagesnap.config import Settings, reset_settings
from pagesnap.modules.capture.router import get_service
from pagesnap.modules.capture.service import CaptureService
from pagesnap.modules.capture.session import RenderSession

TEST_TOKEN = "test-token"


def make_png(
    size: tuple[int, int] = (1280, 720),
    background: str = "white",
    box: tuple[int, int, int, int] | None = (100, 100, 300, 200),
    fill: str = "black",
) -> bytes:
    """Build a PNG with a solid background and an optional filled rectangle."""
    image = Image.new("RGB", size, background)
    if box is not None:
        ImageDraw.Draw(image).rectangle(box, fill=fill)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeDriver:
    """
    Stand-in for ``async_playwright()``.

    Exposes the browser, context and page mocks so tests can inject failures
    and inspect calls.
    """

    def __init__(self, raster: bytes | None = None) -> None:
        self.page = MagicMock(name="page")
        self.page.goto = AsyncMock(return_value=None)
        self.page.set_content = AsyncMock(return_value=None)
        self.page.screenshot = AsyncMock(return_value=raster or make_png())

        self.context = MagicMock(name="context")
        self.context.new_page = AsyncMock(return_value=self.page)
        self.context.close = AsyncMock()

        self.browser = MagicMock(name="browser")
        self.browser.new_context = AsyncMock(return_value=self.context)
        self.browser.close = AsyncMock()

        self.playwright = MagicMock(name="playwright")
        self.playwright.chromium.launch = AsyncMock(return_value=self.browser)
        self.playwright.stop = AsyncMock()

        self.manager = MagicMock(name="manager")
        self.manager.start = AsyncMock(return_value=self.playwright)

    def __call__(self) -> Any:
        return self.manager


class RecordingSessionFactory:
    """Builds RenderSessions on a fake driver and counts close() calls."""

    def __init__(self, driver: FakeDriver) -> None:
        self.driver = driver
        self.sessions: list[RenderSession] = []
        self.close_calls: list[int] = []

    def __call__(self, device_profile: Any = None, **kwargs: Any) -> RenderSession:
        factory = self
        index = len(self.sessions)
        self.close_calls.append(0)

        class CountingSession(RenderSession):
            async def close(self) -> None:
                factory.close_calls[index] += 1
                await super().close()

        session = CountingSession(device_profile, driver_factory=self.driver, **kwargs)
        self.sessions.append(session)
        return session


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(_env_file=None, token=TEST_TOKEN)


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def session_factory(fake_driver: FakeDriver) -> RecordingSessionFactory:
    return RecordingSessionFactory(fake_driver)


@pytest.fixture
def capture_service(settings: Settings, session_factory: RecordingSessionFactory) -> CaptureService:
    return CaptureService(settings, session_factory=session_factory)


@pytest.fixture
def client(settings: Settings, capture_service: CaptureService):
    """Test client wired to the fake renderer."""
    app = build_app(settings)
    app.dependency_overrides[get_service] = lambda: capture_service
    with TestClient(app) as test_client:
        yield test_client
    reset_settings()
