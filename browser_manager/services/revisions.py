from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
import logging
from typing import Any

from browser_manager.services import revision_naming
from browser_manager.services.errors import BrowserManagerException, ServiceDefinitionError
from browser_manager.services.metadata_adapter import MetadataAdapter, ProjectIdentity
from browser_manager.services.run_adapter import CloudRunAdapter
from browser_manager.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Revision:
    tag: str
    name: str
    url: str
    url_reported: bool


@dataclass(frozen=True)
class RevisionOutcome:
    revision: Revision | None
    error: BrowserManagerException | None

    @property
    def ok(self) -> bool:
        return self.error is None


class RevisionProvisioner:
    """Create a tagged revision of a Cloud Run service and report where it is served."""

    def __init__(self, *, settings: Settings, metadata: MetadataAdapter, run: CloudRunAdapter) -> None:
        self._settings = settings
        self._metadata = metadata
        self._run = run

    def provision(self, *, suffix: str | None = None, service_id: str | None = None) -> RevisionOutcome:
        service_id = service_id or self._settings.service_id
        try:
            revision = self._provision(service_id=service_id, suffix=suffix)
        except BrowserManagerException as exc:
            logger.exception("Error creating new revision for service=%s", service_id)
            return RevisionOutcome(revision=None, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error creating new revision for service=%s", service_id)
            wrapped = BrowserManagerException(f"Unexpected error creating revision: {exc}")
            wrapped.__cause__ = exc
            return RevisionOutcome(revision=None, error=wrapped)
        return RevisionOutcome(revision=revision, error=None)

    def resolve_identity(self) -> ProjectIdentity:
        return self._metadata.resolve_identity()

    def describe_service(self, *, service_id: str | None = None) -> dict[str, Any]:
        credentials = self._metadata.resolve_credentials()
        url = self._run.service_url(
            project_id=credentials.identity.project_id,
            region=credentials.identity.region,
            service_id=service_id or self._settings.service_id,
        )
        return self._run.get_service(url, access_token=credentials.access_token)

    def _provision(self, *, service_id: str, suffix: str | None) -> Revision:
        tag = revision_naming.generate_revision_tag(suffix=suffix)
        revision_name = revision_naming.revision_name_for_tag(service_id, tag)

        credentials = self._metadata.resolve_credentials()
        identity = credentials.identity
        url = self._run.service_url(
            project_id=identity.project_id,
            region=identity.region,
            service_id=service_id,
        )

        service = self._run.get_service(url, access_token=credentials.access_token)
        updated = apply_revision(service, tag=tag, revision_name=revision_name)

        logger.info(
            "Creating new revision named %s with traffic tag %s for service: %s",
            revision_name,
            tag,
            url,
        )
        operation = self._run.update_service(url, access_token=credentials.access_token, service=updated)
        finished = self._run.wait_for_operation(
            operation,
            access_token=credentials.access_token,
            timeout_s=self._settings.operation_timeout_s,
            poll_interval_s=self._settings.poll_interval_s,
        )

        reported = revision_naming.reported_url_for_tag(finished.response, tag)
        revision_url = reported or revision_naming.revision_url(
            tag=tag,
            service_id=service_id,
            project_number=identity.project_number,
            region=identity.region,
        )
        logger.info("Revision %s ready at %s (reported=%s)", revision_name, revision_url, reported is not None)
        return Revision(tag=tag, name=revision_name, url=revision_url, url_reported=reported is not None)


def apply_revision(service: dict[str, Any], *, tag: str, revision_name: str) -> dict[str, Any]:
    """Return a copy of ``service`` routing ``tag`` to a new revision called ``revision_name``."""
    template = service.get("template")
    if not isinstance(template, dict):
        raise ServiceDefinitionError("Service definition has no template object")
    traffic = service.get("traffic", [])
    if not isinstance(traffic, list):
        raise ServiceDefinitionError("Service definition traffic is not a list")

    updated = deepcopy(service)
    updated["traffic"] = [*deepcopy(traffic), revision_naming.traffic_target(tag=tag, revision_name=revision_name)]
    updated["template"]["revision"] = revision_name
    return updated
