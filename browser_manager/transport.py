from __future__ import annotations

from typing import Any

import httpx

from browser_manager.services.errors import ErrorCategory, UpstreamApiError

_RETRYABLE_STATUSES = frozenset({408, 429})


def classify_status(status_code: int) -> ErrorCategory:
    if status_code in _RETRYABLE_STATUSES or status_code >= 500:
        return "retryable"
    return "fatal"


def build_client(*, timeout_s: float, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    return httpx.Client(timeout=timeout_s, transport=transport)


def send_request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    error_message: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send one request and raise ``UpstreamApiError`` unless the response is 2xx.

    Transport failures (DNS, refused connections, timeouts) are always retryable;
    HTTP failures are classified by status code.
    """
    try:
        response = client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise UpstreamApiError(f"{error_message}: {exc}", category="retryable") from exc

    if not response.is_success:
        raise UpstreamApiError(
            error_message,
            category=classify_status(response.status_code),
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=response.text,
        )
    return response
