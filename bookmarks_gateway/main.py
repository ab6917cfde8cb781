"""
FastAPI application entrypoint for the bookmarks gateway.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from bookmarks_gateway.api.routes import router as api_router
from bookmarks_gateway.core.config import get_settings
from bookmarks_gateway.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="X Bookmarks Gateway",
        version="0.1.0",
        description="OAuth2 PKCE login and token-refreshing proxy for X bookmarks.",
    )
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    logger.info("Bookmarks gateway running on http://localhost:%s", settings.port)
    logger.info("Visit http://localhost:%s/login to authenticate", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":  # pragma: no cover - script entry point
    run()


__all__ = ["app", "create_app", "run"]
