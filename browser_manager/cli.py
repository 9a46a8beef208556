from __future__ import annotations

import logging
from dataclasses import replace

import typer
import yaml
from fastapi.encoders import jsonable_encoder

from browser_manager.logging_config import configure_logging
from browser_manager.provisioner import provisioner_scope
from browser_manager.services.errors import BrowserManagerException
from browser_manager.settings import Settings, get_settings

configure_logging()
logger = logging.getLogger(__name__)
app = typer.Typer(help="Browser Manager CLI", pretty_exceptions_show_locals=False)


def _exit_for_domain_error(exc: BrowserManagerException) -> None:
    logger.warning("CLI command failed with domain error: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _echo_yaml_entity(entity: object) -> None:
    encoded = jsonable_encoder(entity)
    typer.echo(yaml.safe_dump(encoded, sort_keys=False), nl=False)


def _settings(service_id: str | None = None) -> Settings:
    settings = get_settings()
    if service_id:
        settings = replace(settings, service_id=service_id)
    return settings


@app.command("create-revision")
def create_revision(
    service_id: str | None = typer.Option(None, "--service-id", help="Cloud Run service to add the revision to."),
    suffix: str | None = typer.Option(None, "--suffix", help="Six character [0-9a-z] revision suffix."),
) -> None:
    with provisioner_scope(_settings(service_id)) as provisioner:
        outcome = provisioner.provision(suffix=suffix)
    if outcome.error is not None:
        _exit_for_domain_error(outcome.error)
    _echo_yaml_entity(outcome.revision)


@app.command("identity")
def identity() -> None:
    with provisioner_scope(_settings()) as provisioner:
        try:
            resolved = provisioner.resolve_identity()
        except BrowserManagerException as e:
            _exit_for_domain_error(e)
    _echo_yaml_entity(resolved)


@app.command("describe-service")
def describe_service(
    service_id: str | None = typer.Option(None, "--service-id", help="Cloud Run service to describe."),
) -> None:
    with provisioner_scope(_settings(service_id)) as provisioner:
        try:
            service = provisioner.describe_service()
        except BrowserManagerException as e:
            _exit_for_domain_error(e)
    _echo_yaml_entity(service)


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    from browser_manager.main import run

    run(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
