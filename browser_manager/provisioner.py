from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Iterator

import httpx
from fastapi import Depends

from browser_manager.services.metadata_adapter import MetadataAdapter
from browser_manager.services.revisions import RevisionProvisioner
from browser_manager.services.run_adapter import CloudRunAdapter
from browser_manager.settings import Settings, get_settings
from browser_manager.transport import build_client


@contextmanager
def provisioner_scope(
    settings: Settings,
    *,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[RevisionProvisioner]:
    """Yield a provisioner whose adapters share one HTTP client, closed on exit."""
    with build_client(timeout_s=settings.http_timeout_s, transport=transport) as client:
        yield RevisionProvisioner(
            settings=settings,
            metadata=MetadataAdapter(client=client, base_url=settings.metadata_url),
            run=CloudRunAdapter(client=client, base_url=settings.run_api_url),
        )


def get_provisioner(settings: Settings = Depends(get_settings)) -> Generator[RevisionProvisioner, None, None]:
    with provisioner_scope(settings) as provisioner:
        yield provisioner
