"""Cloud Controller client for application metadata lookups."""

from typing import Any

import httpx

from stackdriver_nozzle.core.errors import MetadataLookupError
from stackdriver_nozzle.core.models import AppMetadata


class CloudControllerClient:
    """AppMetadataSourcePort backed by the Cloud Controller v2 API.

    A single request with ``inline-relations-depth=2`` returns the app
    together with its space and organization.

    Args:
        client: HTTP client whose base URL is the Cloud Controller API and
            which carries the UAA bearer token.
    """

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def app_by_guid(self, guid: str) -> AppMetadata:
        """Resolve an app GUID to its name, space and org.

        Raises:
            MetadataLookupError: On transport errors, non-2xx responses or
                a response body missing the expected relations.
        """
        try:
            response = self._client.get(
                f"/v2/apps/{guid}", params={"inline-relations-depth": "2"}
            )
            response.raise_for_status()
            body: dict[str, Any] = response.json()
        except httpx.HTTPError as e:
            raise MetadataLookupError(f"app {guid}: {e}") from e
        except ValueError as e:
            raise MetadataLookupError(f"app {guid}: invalid JSON response") from e

        try:
            app = body["entity"]
            space = app["space"]
            org = space["entity"]["organization"]
            return AppMetadata(
                name=app["name"],
                space_guid=space["metadata"]["guid"],
                space_name=space["entity"]["name"],
                org_guid=org["metadata"]["guid"],
                org_name=org["entity"]["name"],
            )
        except (KeyError, TypeError) as e:
            raise MetadataLookupError(f"app {guid}: unexpected response shape") from e
