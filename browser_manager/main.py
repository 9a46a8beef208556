from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from browser_manager.api import revisions
from browser_manager.api.utils import register_exception_handlers
from browser_manager.logging_config import configure_logging
from browser_manager.settings import get_settings

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Browser Manager",
    description="Service for creating tagged Cloud Run revisions of the browser service",
    version="0.1.0",
)

app.include_router(revisions.router)

register_exception_handlers(app)


def run(*, host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    level = configure_logging(settings)
    logger.info("browser-manager is listening on port %s", port)
    uvicorn.run(
        "browser_manager.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
        log_level=level,
        access_log=settings.access_log,
    )


if __name__ == "__main__":
    run()
