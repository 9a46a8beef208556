from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_METADATA_URL = "http://metadata.google.internal/computeMetadata/v1"
DEFAULT_RUN_API_URL = "https://run.googleapis.com/v2"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    service_id: str = "browser"
    host: str = "0.0.0.0"
    port: int = 8080

    metadata_url: str = DEFAULT_METADATA_URL
    run_api_url: str = DEFAULT_RUN_API_URL
    http_timeout_s: float = 30.0

    # Waiting for the update operation to finish
    operation_timeout_s: float = 300.0
    poll_interval_s: float = 2.0

    # Respond 200 with a JSON null on failure, like the first version of the service did.
    legacy_null_on_error: bool = False

    log_level: str = "INFO"
    access_log: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            service_id=os.getenv("BROWSER_SERVICE_ID", "browser"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8080),
            metadata_url=os.getenv("BROWSER_MANAGER_METADATA_URL", DEFAULT_METADATA_URL).rstrip("/"),
            run_api_url=os.getenv("BROWSER_MANAGER_RUN_API_URL", DEFAULT_RUN_API_URL).rstrip("/"),
            http_timeout_s=_env_float("BROWSER_MANAGER_HTTP_TIMEOUT_S", 30.0),
            operation_timeout_s=_env_float("BROWSER_MANAGER_OPERATION_TIMEOUT_S", 300.0),
            poll_interval_s=_env_float("BROWSER_MANAGER_POLL_INTERVAL_S", 2.0),
            legacy_null_on_error=_env_bool("BROWSER_MANAGER_LEGACY_NULL_ON_ERROR", False),
            log_level=os.getenv("BROWSER_MANAGER_LOG_LEVEL", "INFO").strip().upper(),
            access_log=_env_bool("BROWSER_MANAGER_ACCESS_LOG", True),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
