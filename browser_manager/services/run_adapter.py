from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable

import httpx

from browser_manager.services.errors import (
    OperationFailedError,
    RevisionTimeoutError,
    ServiceDefinitionError,
)
from browser_manager.settings import DEFAULT_RUN_API_URL
from browser_manager.transport import send_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    name: str | None
    done: bool
    response: dict[str, Any] | None = None


class CloudRunAdapter:
    """Adapter for the Cloud Run Admin API (v2) service and operation resources."""

    def __init__(
        self,
        *,
        client: httpx.Client,
        base_url: str = DEFAULT_RUN_API_URL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._sleep = sleep
        self._clock = clock

    def service_url(self, *, project_id: str, region: str, service_id: str) -> str:
        return f"{self._base_url}/projects/{project_id}/locations/{region}/services/{service_id}"

    def get_service(self, url: str, *, access_token: str) -> dict[str, Any]:
        logger.info("Fetching service %s", url)
        response = send_request(
            self._client,
            "GET",
            url,
            headers=_auth_headers(access_token),
            error_message=f"Failed to fetch service {url}",
        )
        return _json_object(response, what=f"service {url}")

    def update_service(self, url: str, *, access_token: str, service: dict[str, Any]) -> OperationResult:
        # The whole definition goes back: update_mask=traffic is not merged by Cloud Run.
        response = send_request(
            self._client,
            "PATCH",
            url,
            headers=_auth_headers(access_token),
            json=service,
            error_message=f"Failed to update service {url}",
        )
        return _operation_from(_json_object(response, what=f"update of {url}"))

    def get_operation(self, name: str, *, access_token: str) -> OperationResult:
        url = f"{self._base_url}/{name}"
        response = send_request(
            self._client,
            "GET",
            url,
            headers=_auth_headers(access_token),
            error_message=f"Failed to fetch operation {name}",
        )
        return _operation_from(_json_object(response, what=f"operation {name}"))

    def wait_for_operation(
        self,
        operation: OperationResult,
        *,
        access_token: str,
        timeout_s: float,
        poll_interval_s: float,
    ) -> OperationResult:
        """Poll ``operation`` until it reports ``done`` or ``timeout_s`` elapses.

        Sleeps never run past the deadline, and a completion first observed after
        the deadline (a slow poll) still counts as a timeout.
        """
        if operation.done or operation.name is None:
            return operation

        deadline = self._clock() + timeout_s
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise _timed_out(operation.name, timeout_s)
            self._sleep(min(poll_interval_s, remaining))
            current = self.get_operation(operation.name, access_token=access_token)
            logger.debug("Polled operation %s done=%s", operation.name, current.done)
            if current.done:
                if self._clock() > deadline:
                    raise _timed_out(operation.name, timeout_s)
                return current


def _timed_out(operation: str, timeout_s: float) -> RevisionTimeoutError:
    return RevisionTimeoutError(
        f"Timed out after {timeout_s:g}s waiting for operation {operation}",
        operation=operation,
        timeout_s=timeout_s,
    )


def _auth_headers(access_token: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {access_token}",
    }


def _json_object(response: httpx.Response, *, what: str) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ServiceDefinitionError(f"Invalid JSON in response for {what}") from exc
    if not isinstance(payload, dict):
        raise ServiceDefinitionError(f"Expected a JSON object in response for {what}")
    return payload


def _operation_from(payload: dict[str, Any]) -> OperationResult:
    name = payload.get("name")
    # Anything that is not a long-running operation is taken as an already applied update.
    if not isinstance(name, str) or "/operations/" not in name:
        return OperationResult(name=None, done=True, response=payload)

    done = bool(payload.get("done", False))
    error = payload.get("error")
    if done and isinstance(error, dict):
        code = error.get("code")
        raise OperationFailedError(
            f"Operation {name} failed: {error.get('message', 'unknown error')}",
            operation=name,
            code=code if isinstance(code, int) else None,
        )
    response = payload.get("response")
    return OperationResult(
        name=name,
        done=done,
        response=response if isinstance(response, dict) else None,
    )
