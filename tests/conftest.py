from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator

import pytest
from starlette.testclient import TestClient

from browser_manager.main import app
from browser_manager.provisioner import get_provisioner, provisioner_scope
from browser_manager.settings import Settings, get_settings
from tests.platform_fakes import FakePlatform


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def settings() -> Settings:
    return Settings(service_id="browser", operation_timeout_s=30.0, poll_interval_s=1.0)


@contextmanager
def _client_for(platform: FakePlatform, settings: Settings) -> Iterator[TestClient]:
    def override_get_provisioner():
        with provisioner_scope(settings, transport=platform.transport()) as provisioner:
            yield provisioner

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_provisioner] = override_get_provisioner
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(platform, settings):
    with _client_for(platform, settings) as client:
        yield client


@pytest.fixture
def legacy_client(platform, settings):
    with _client_for(platform, replace(settings, legacy_null_on_error=True)) as client:
        yield client


@pytest.fixture()
def cli_runner(platform, monkeypatch):
    from typer.testing import CliRunner

    import browser_manager.cli as cli

    @contextmanager
    def fake_scope(settings: Settings, *, transport=None):
        with provisioner_scope(settings, transport=platform.transport()) as provisioner:
            yield provisioner

    monkeypatch.setenv("BROWSER_SERVICE_ID", "browser")
    get_settings.cache_clear()
    monkeypatch.setattr(cli, "provisioner_scope", fake_scope)
    yield CliRunner(), cli.app
    get_settings.cache_clear()
