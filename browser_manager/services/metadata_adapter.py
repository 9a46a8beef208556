from __future__ import annotations

from dataclasses import dataclass
import logging

import httpx

from browser_manager.services.errors import MetadataResolutionError, UpstreamApiError
from browser_manager.settings import DEFAULT_METADATA_URL
from browser_manager.transport import send_request

logger = logging.getLogger(__name__)

METADATA_HEADERS = {"Metadata-Flavor": "Google"}


@dataclass(frozen=True)
class ProjectIdentity:
    project_id: str
    project_number: str
    region: str


@dataclass(frozen=True)
class Credentials:
    access_token: str
    identity: ProjectIdentity


class MetadataAdapter:
    """Reads the access token and project placement from the instance metadata service."""

    def __init__(self, *, client: httpx.Client, base_url: str = DEFAULT_METADATA_URL) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    def fetch_access_token(self) -> str:
        response = self._get("instance/service-accounts/default/token", item="access token")
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Metadata token response is not JSON")
            raise MetadataResolutionError("Metadata token response is not JSON", item="access token") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("Metadata token response has no access_token field")
            raise MetadataResolutionError("Metadata token response has no access_token", item="access token")
        return token

    def fetch_project_id(self) -> str:
        project_id = self._get("project/project-id", item="project id").text.strip()
        if not project_id:
            logger.error("Metadata service returned an empty project id")
            raise MetadataResolutionError("Metadata service returned an empty project id", item="project id")
        return project_id

    def fetch_project_number_and_region(self) -> tuple[str, str]:
        """Parse ``projects/{number}/regions/{region}`` into ``(number, region)``."""
        raw = self._get("instance/region", item="region").text.strip()
        parts = raw.split("/")
        if len(parts) < 3 or not parts[-1] or not parts[-3]:
            logger.error("Unexpected region format from metadata service: %r", raw)
            raise MetadataResolutionError(f"Unexpected region format: {raw!r}", item="region")
        return parts[-3], parts[-1]

    def resolve_identity(self) -> ProjectIdentity:
        project_id = self.fetch_project_id()
        project_number, region = self.fetch_project_number_and_region()
        logger.debug(
            "Resolved identity project_id=%s project_number=%s region=%s",
            project_id,
            project_number,
            region,
        )
        return ProjectIdentity(project_id=project_id, project_number=project_number, region=region)

    def resolve_credentials(self) -> Credentials:
        identity = self.resolve_identity()
        return Credentials(access_token=self.fetch_access_token(), identity=identity)

    def _get(self, path: str, *, item: str) -> httpx.Response:
        url = f"{self._base_url}/{path}"
        try:
            return send_request(
                self._client,
                "GET",
                url,
                headers=METADATA_HEADERS,
                error_message=f"Failed to fetch {item} from metadata service",
            )
        except UpstreamApiError as exc:
            logger.error("Error fetching %s: %s", item, exc)
            raise MetadataResolutionError(str(exc), item=item) from exc
