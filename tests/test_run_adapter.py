from __future__ import annotations

import httpx
import pytest

from browser_manager.services.errors import (
    OperationFailedError,
    RevisionTimeoutError,
    ServiceDefinitionError,
    UpstreamApiError,
)
from browser_manager.services.run_adapter import CloudRunAdapter, OperationResult
from tests.platform_fakes import OPERATION_NAME, SERVICE_PATH, FakeClock, FakePlatform

SERVICE_URL = f"https://run.googleapis.com{SERVICE_PATH}"


def _adapter(platform: FakePlatform, clock: FakeClock | None = None) -> CloudRunAdapter:
    clock = clock or FakeClock()
    return CloudRunAdapter(client=platform.client(), sleep=clock.sleep, clock=clock.monotonic)


def test_service_url() -> None:
    adapter = CloudRunAdapter(client=httpx.Client())
    url = adapter.service_url(project_id="proj1", region="us-central1", service_id="browser")
    assert url == SERVICE_URL


def test_get_service_sends_bearer_token(platform) -> None:
    service = _adapter(platform).get_service(SERVICE_URL, access_token="tok1")

    assert service["template"]["containers"][0]["image"] == "gcr.io/proj1/browser:latest"
    request = platform.requests[0]
    assert request.headers["Authorization"] == "Bearer tok1"
    assert request.headers["Content-Type"] == "application/json"


def test_get_service_non_success_raises_upstream_error(platform) -> None:
    platform.get_status = 404
    with pytest.raises(UpstreamApiError) as exc_info:
        _adapter(platform).get_service(SERVICE_URL, access_token="tok1")
    assert exc_info.value.status_code == 404
    assert "service not found" in exc_info.value.body


def test_get_service_non_object_body_raises() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2])))
    with pytest.raises(ServiceDefinitionError):
        CloudRunAdapter(client=client).get_service(SERVICE_URL, access_token="tok1")


def test_update_service_sends_whole_definition(platform) -> None:
    body = {"traffic": [{"tag": "b000000"}], "template": {"revision": "browser-b000000"}}
    operation = _adapter(platform).update_service(SERVICE_URL, access_token="tok1", service=body)

    assert platform.patched_bodies == [body]
    assert operation == OperationResult(name=OPERATION_NAME, done=True, response=None)


def test_update_service_response_without_operation_is_done(platform) -> None:
    platform.patch_response = {"name": "projects/proj1/locations/us-central1/services/browser", "uri": "x"}
    operation = _adapter(platform).update_service(SERVICE_URL, access_token="tok1", service={})
    assert operation.name is None
    assert operation.done is True
    assert operation.response == platform.patch_response


def test_wait_for_operation_polls_until_done(platform) -> None:
    clock = FakeClock()
    platform.operation_polls = [
        {"name": OPERATION_NAME, "done": False},
        {"name": OPERATION_NAME, "done": True, "response": {"trafficStatuses": []}},
    ]
    adapter = _adapter(platform, clock)

    finished = adapter.wait_for_operation(
        OperationResult(name=OPERATION_NAME, done=False),
        access_token="tok1",
        timeout_s=30,
        poll_interval_s=2,
    )

    assert finished.done is True
    assert finished.response == {"trafficStatuses": []}
    assert clock.sleeps == [2, 2]
    assert platform.calls() == [("GET", f"/v2/{OPERATION_NAME}")] * 2


def test_wait_for_operation_times_out(platform) -> None:
    clock = FakeClock()
    adapter = _adapter(platform, clock)

    with pytest.raises(RevisionTimeoutError) as exc_info:
        adapter.wait_for_operation(
            OperationResult(name=OPERATION_NAME, done=False),
            access_token="tok1",
            timeout_s=10,
            poll_interval_s=3,
        )

    assert exc_info.value.operation == OPERATION_NAME
    assert exc_info.value.timeout_s == 10
    assert clock.now >= 10
    assert len(platform.requests) == 4


def test_wait_for_operation_never_sleeps_past_deadline(platform) -> None:
    clock = FakeClock()
    platform.operation_polls = [{"name": OPERATION_NAME, "done": True}]

    finished = _adapter(platform, clock).wait_for_operation(
        OperationResult(name=OPERATION_NAME, done=False),
        access_token="tok1",
        timeout_s=1,
        poll_interval_s=5,
    )

    assert finished.done is True
    assert clock.sleeps == [1]
    assert clock.now == 1


def test_wait_for_operation_completion_seen_after_deadline_times_out(platform) -> None:
    clock = FakeClock()
    platform.operation_polls = [{"name": OPERATION_NAME, "done": True}]

    def slow_handler(request: httpx.Request) -> httpx.Response:
        clock.now += 5
        return platform.handle(request)

    adapter = CloudRunAdapter(
        client=httpx.Client(transport=httpx.MockTransport(slow_handler)),
        sleep=clock.sleep,
        clock=clock.monotonic,
    )

    with pytest.raises(RevisionTimeoutError):
        adapter.wait_for_operation(
            OperationResult(name=OPERATION_NAME, done=False),
            access_token="tok1",
            timeout_s=3,
            poll_interval_s=1,
        )
    assert clock.sleeps == [1]
    assert len(platform.requests) == 1


def test_wait_for_operation_skips_finished_operations(platform) -> None:
    done = OperationResult(name=OPERATION_NAME, done=True)
    assert _adapter(platform).wait_for_operation(done, access_token="tok1", timeout_s=1, poll_interval_s=1) is done
    assert platform.requests == []


def test_failed_operation_raises(platform) -> None:
    platform.operation_polls = [
        {"name": OPERATION_NAME, "done": True, "error": {"code": 9, "message": "Revision failed to start"}},
    ]
    with pytest.raises(OperationFailedError) as exc_info:
        _adapter(platform).wait_for_operation(
            OperationResult(name=OPERATION_NAME, done=False),
            access_token="tok1",
            timeout_s=30,
            poll_interval_s=1,
        )
    assert exc_info.value.code == 9
    assert "Revision failed to start" in str(exc_info.value)
