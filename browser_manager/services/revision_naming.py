from __future__ import annotations

import re
import secrets
from typing import Any

from browser_manager.services.errors import InvalidRevisionIdError

REVISION_TAG_PREFIX = "b"
RANDOM_SUFFIX_LEN = 6
SUFFIX_RE = re.compile(r"^[0-9a-z]{6}$")
TAG_RE = re.compile(rf"^{REVISION_TAG_PREFIX}[0-9a-z]{{{RANDOM_SUFFIX_LEN}}}$")

TRAFFIC_TYPE_REVISION = "TRAFFIC_TARGET_ALLOCATION_TYPE_REVISION"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_suffix6() -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(RANDOM_SUFFIX_LEN))


def normalize_suffix(suffix: str) -> str:
    if not SUFFIX_RE.fullmatch(suffix):
        raise InvalidRevisionIdError("suffix must match [0-9a-z]{6}")
    return suffix


def generate_revision_tag(*, suffix: str | None = None) -> str:
    """Return ``b`` followed by six base36 characters. Uniqueness is not checked."""
    candidate = normalize_suffix(suffix) if suffix is not None else generate_suffix6()
    return f"{REVISION_TAG_PREFIX}{candidate}"


def is_valid_revision_tag(value: str) -> bool:
    return bool(TAG_RE.fullmatch(value))


def revision_name_for_tag(service_id: str, tag: str) -> str:
    return f"{service_id}-{tag}"


def revision_url(*, tag: str, service_id: str, project_number: str, region: str) -> str:
    return f"https://{tag}---{service_id}-{project_number}.{region}.run.app"


def traffic_target(*, tag: str, revision_name: str) -> dict[str, Any]:
    return {
        "tag": tag,
        "revision": revision_name,
        "type": TRAFFIC_TYPE_REVISION,
    }


def reported_url_for_tag(service: dict[str, Any] | None, tag: str) -> str | None:
    """Return the URI Cloud Run reports for ``tag`` in ``trafficStatuses``, if any."""
    if not service:
        return None
    statuses = service.get("trafficStatuses")
    if not isinstance(statuses, list):
        return None
    for status in statuses:
        if isinstance(status, dict) and status.get("tag") == tag:
            uri = status.get("uri")
            if isinstance(uri, str) and uri:
                return uri
    return None
