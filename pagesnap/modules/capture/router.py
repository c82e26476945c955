"""Capture module routes."""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from pagesnap.config import Settings, get_settings
from pagesnap.shared.errors import (
    CaptureFailure,
    InvalidParameters,
    InvalidTokenError,
)
from pagesnap.shared.logging import get_logger

from .service import CaptureService

logger = get_logger(__name__)
router = APIRouter(tags=["capture"])


def get_service() -> CaptureService:
    """Dependency injection for service."""
    return CaptureService()


def verify_token(path: str, settings: Settings = Depends(get_settings)) -> None:
    """The first path segment must be the configured token."""
    segments = [part for part in path.split("/") if part]
    if not segments or segments[0] != settings.token:
        raise InvalidTokenError()


async def read_payload(request: Request) -> Any:
    """Decode the request body; an empty body is an empty object."""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CaptureFailure(InvalidParameters(f"Request body is not valid JSON: {e}")) from e


@router.post("/{path:path}", dependencies=[Depends(verify_token)])
async def capture(
    request: Request,
    service: CaptureService = Depends(get_service),
) -> Response:
    """
    Capture a URL or HTML markup as PNG.

    Body fields: ``url`` or ``html`` (exactly one), ``waitFor`` (seconds),
    ``trimColor`` (6 hex digits), ``deviceProfile`` (browser context options).
    """
    payload = await read_payload(request)
    image = await service.capture_payload(payload)

    return Response(
        content=image,
        media_type="image/png",
        headers={"Content-Length": str(len(image))},
    )

