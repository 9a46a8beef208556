import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from browser_manager.services.errors import (
    BrowserManagerException,
    InvalidRevisionIdError,
    MetadataResolutionError,
    OperationFailedError,
    RevisionTimeoutError,
    ServiceDefinitionError,
    UpstreamApiError,
)

ERROR_STATUS = {
    InvalidRevisionIdError: 422,
    MetadataResolutionError: 503,
    UpstreamApiError: 502,
    ServiceDefinitionError: 502,
    OperationFailedError: 502,
    RevisionTimeoutError: 504,
}

logger = logging.getLogger(__name__)


def status_for(exc: Exception) -> int:
    return ERROR_STATUS.get(type(exc), 500)


def _exception_handler(request: Request, exc: BrowserManagerException):
    status = status_for(exc)
    if status >= 500:
        # Sync handlers run in a worker thread, so the exception is passed in explicitly.
        logger.exception(
            "Request failed path=%s status=%s error=%s", request.url.path, status, exc, exc_info=exc
        )
    else:
        logger.warning("Request failed path=%s status=%s error=%s", request.url.path, status, exc)
    return JSONResponse({"detail": str(exc), "error": exc.kind}, status_code=status)


def register_exception_handlers(app):
    app.exception_handler(BrowserManagerException)(_exception_handler)
