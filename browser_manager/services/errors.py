from __future__ import annotations

from typing import Literal

ErrorCategory = Literal["retryable", "fatal"]


class BrowserManagerException(Exception):
    kind = "internal"


class MetadataResolutionError(BrowserManagerException):
    """A value could not be read from the instance metadata service."""

    kind = "metadata"

    def __init__(self, message: str, *, item: str) -> None:
        self.item = item
        super().__init__(message)


class UpstreamApiError(BrowserManagerException):
    """The Cloud Run API answered with a non-success status or could not be reached."""

    kind = "upstream"

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory,
        status_code: int | None = None,
        reason: str | None = None,
        body: str = "",
    ) -> None:
        self.category = category
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(self._build_message(message))

    @property
    def retryable(self) -> bool:
        return self.category == "retryable"

    def _build_message(self, message: str) -> str:
        if self.status_code is None:
            return f"{message} (category={self.category})"
        detail = self.body.strip()
        if len(detail) > 400:
            detail = f"{detail[:397]}..."
        return (
            f"{message} (category={self.category}, status={self.status_code}, "
            f"message={self.reason!r}, body={detail!r})"
        )


class ServiceDefinitionError(BrowserManagerException):
    kind = "malformed_response"


class OperationFailedError(BrowserManagerException):
    kind = "operation_failed"

    def __init__(self, message: str, *, operation: str, code: int | None = None) -> None:
        self.operation = operation
        self.code = code
        super().__init__(message)


class RevisionTimeoutError(BrowserManagerException):
    """The update operation did not report completion in time."""

    kind = "timeout"

    def __init__(self, message: str, *, operation: str, timeout_s: float) -> None:
        self.operation = operation
        self.timeout_s = timeout_s
        super().__init__(message)


class InvalidRevisionIdError(BrowserManagerException):
    kind = "invalid_revision_id"
