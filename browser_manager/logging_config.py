from __future__ import annotations

import logging

from browser_manager.settings import Settings, get_settings

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# uvicorn installs its own handlers on these unless told not to (log_config=None).
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def level_for(settings: Settings) -> int:
    resolved = logging.getLevelName(settings.log_level.upper())
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def configure_logging(settings: Settings | None = None, *, force: bool = False) -> int:
    """Send application, uvicorn and httpx records through one root handler.

    An existing root handler (pytest, an embedding server) is kept unless ``force`` is set.
    Returns the level that was applied.
    """
    settings = settings or get_settings()
    level = level_for(settings)

    root = logging.getLogger()
    root.setLevel(level)
    if force or not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
        root.handlers[:] = [handler]

    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
        server_logger.setLevel(level)
    if not settings.access_log:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # httpx logs every request line at INFO, metadata token fetches included.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return level
