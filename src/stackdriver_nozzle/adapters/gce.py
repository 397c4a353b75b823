"""Monitored resource detection via the GCE metadata server."""

import logging

import httpx

from stackdriver_nozzle.core.models import MonitoredResource

logger = logging.getLogger(__name__)

METADATA_URL = "http://metadata.google.internal/computeMetadata/v1/"


class GceMetadataClient:
    """Minimal client for the instance metadata server.

    Args:
        client: HTTP client; a short timeout keeps detection fast off GCE.
        base_url: Metadata server root.
    """

    def __init__(self, client: httpx.Client, base_url: str = METADATA_URL) -> None:
        self._client = client
        self._base_url = base_url

    def _get(self, path: str) -> str:
        response = self._client.get(
            f"{self._base_url}{path}", headers={"Metadata-Flavor": "Google"}
        )
        response.raise_for_status()
        return response.text.strip()

    def on_gce(self) -> bool:
        try:
            response = self._client.get(
                self._base_url, headers={"Metadata-Flavor": "Google"}
            )
        except httpx.HTTPError:
            return False
        return response.headers.get("Metadata-Flavor") == "Google"

    def project_id(self) -> str:
        return self._get("project/project-id")

    def instance_id(self) -> str:
        return self._get("instance/id")

    def zone(self) -> str:
        # "projects/<number>/zones/<zone>"
        return self._get("instance/zone").rsplit("/", 1)[-1]


def detect_monitored_resource(metadata: GceMetadataClient) -> MonitoredResource:
    """Return a gce_instance resource on GCE, else the global resource."""
    if not metadata.on_gce():
        return MonitoredResource(type="global")
    try:
        labels = {
            "project_id": metadata.project_id(),
            "instance_id": metadata.instance_id(),
            "zone": metadata.zone(),
        }
    except httpx.HTTPError as e:
        logger.warning("falling back to global resource", extra={"error": str(e)})
        return MonitoredResource(type="global")
    return MonitoredResource(type="gce_instance", labels=labels)
