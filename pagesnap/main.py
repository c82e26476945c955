"""
PageSnap entrypoint - runs uvicorn server.
"""

import uvicorn

from pagesnap.app import build_app
from pagesnap.config import get_settings


def main() -> None:
    """Run the PageSnap server."""
    settings = get_settings()
    app = build_app(settings)

    print(f"Screenshot API listening at http://{settings.host}:{settings.port}")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
