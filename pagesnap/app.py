"""
Application factory - builds the FastAPI app with middleware and routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pagesnap import __version__
from pagesnap.config import Settings, get_settings, init_settings
from pagesnap.modules.capture.router import router as capture_router
from pagesnap.shared.errors import CaptureFailure, MethodNotAllowedError, PageSnapError
from pagesnap.shared.ids import generate_request_id
from pagesnap.shared.logging import (
    clear_request_context,
    get_logger,
    set_request_context,
    setup_logging,
)
from pagesnap.shared.types import RequestContext

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()

    setup_logging(settings.log_level)
    logger.info(f"Starting PageSnap {__version__}...")
    logger.info(f"Renderer: chromium (headless={settings.headless})")
    if settings.capture_timeout_seconds is None:
        logger.info("No capture deadline configured")

    yield

    logger.info("PageSnap stopped")


def build_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    else:
        init_settings(settings)

    # Docs routes are disabled so that every non-POST request is answered with 405
    app = FastAPI(
        title="PageSnap",
        description="HTML and URL screenshot service",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Request context middleware
    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Response:
        """Attach request context for logging."""
        ctx = RequestContext(
            request_id=request.headers.get("X-Request-ID", generate_request_id()),
            client=request.client.host if request.client else None,
        )
        set_request_context(ctx)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = ctx.request_id
            return response
        finally:
            clear_request_context()

    @app.exception_handler(PageSnapError)
    async def pagesnap_error_handler(request: Request, exc: PageSnapError) -> JSONResponse:
        """Render errors as ``{"error", "message"}`` JSON."""
        if isinstance(exc, CaptureFailure):
            logger.error(f"Error: [{exc.kind}] {exc.message}")

        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
        """Answer every non-POST method with the JSON 405 body."""
        if exc.status_code == 405:
            error = MethodNotAllowedError()
            return JSONResponse(status_code=error.http_status, content=error.to_dict())
        return await http_exception_handler(request, exc)

    app.include_router(capture_router)

    return app
