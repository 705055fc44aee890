# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.CloudInit.datasources",
#   "purpose": "Candidate user-data sources probed during early boot.",
#   "sections": [
#     {
#       "id": "datasource",
#       "name": "Datasource",
#       "anchor": "class-datasource",
#       "kind": "class"
#     },
#     {
#       "id": "ec2metadatadatasource",
#       "name": "EC2MetadataDatasource",
#       "anchor": "class-ec2metadatadatasource",
#       "kind": "class"
#     },
#     {
#       "id": "gcemetadatadatasource",
#       "name": "GCEMetadataDatasource",
#       "anchor": "class-gcemetadatadatasource",
#       "kind": "class"
#     },
#     {
#       "id": "waagentdatasource",
#       "name": "WAAgentDatasource",
#       "anchor": "class-waagentdatasource",
#       "kind": "class"
#     },
#     {
#       "id": "default-datasources",
#       "name": "default_datasources",
#       "anchor": "function-default-datasources",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
User-data Datasources

Each datasource wraps one candidate origin of bootstrap configuration and
exposes three capabilities to the race:

- ``is_available()``: can the source be used right now
- ``availability_changes()``: is it worth probing again later
- ``fetch_userdata()``: raw user-data bytes (possibly gzip-wrapped)

Probes never raise for network problems; an unreachable endpoint simply means
"not available yet". Fetches retry transient failures and then let the last
error propagate so the resolution layer can report a transport failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

import httpx
from tenacity import Retrying

from ItzoLauncher.core.retry import create_http_retry_policy
from ItzoLauncher.core.settings import LauncherSettings

LOGGER = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT_S = 10.0


@runtime_checkable
class Datasource(Protocol):
    """Capability set the race needs from a candidate source."""

    type: str

    def is_available(self) -> bool: ...

    def availability_changes(self) -> bool: ...

    def fetch_userdata(self) -> bytes: ...


class _MetadataDatasource:
    """Shared plumbing for HTTP metadata services."""

    type = "metadata"

    def __init__(
        self,
        address: str,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_S,
        retry_policy: Optional[Retrying] = None,
    ) -> None:
        self.address = address.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._retry_policy = retry_policy or create_http_retry_policy()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address!r})"

    def close(self) -> None:
        """Close the HTTP client if this datasource created it."""
        if self._owns_client:
            self._client.close()

    def availability_changes(self) -> bool:
        return True

    def _headers(self) -> Dict[str, str]:
        return {}

    def _probe(self, url: str) -> bool:
        try:
            response = self._client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            LOGGER.debug("probing %s: %s", url, exc)
            return False
        return response.status_code == 200

    def _fetch(self, url: str) -> bytes:
        response = self._retry_policy(self._client.get, url, headers=self._headers())
        if response.status_code == 404:
            LOGGER.info("no user-data at %s", url)
            return b""
        response.raise_for_status()
        return response.content


class EC2MetadataDatasource(_MetadataDatasource):
    """EC2 instance metadata service (IMDSv2 when offered, IMDSv1 otherwise)."""

    type = "ec2-metadata-service"

    API_VERSION = "2009-04-04"
    TOKEN_TTL_SECONDS = 21600

    DEFAULT_ADDRESS = "http://169.254.169.254"

    def __init__(self, address: str = DEFAULT_ADDRESS, **kwargs) -> None:
        super().__init__(address, **kwargs)
        self._token: Optional[str] = None

    def _session_token(self) -> Optional[str]:
        try:
            response = self._client.put(
                f"{self.address}/latest/api/token",
                headers={"X-aws-ec2-metadata-token-ttl-seconds": str(self.TOKEN_TTL_SECONDS)},
            )
        except httpx.HTTPError as exc:
            LOGGER.debug("requesting IMDSv2 token: %s", exc)
            return None
        if response.status_code != 200:
            return None
        return response.text.strip() or None

    def _headers(self) -> Dict[str, str]:
        if self._token is None:
            return {}
        return {"X-aws-ec2-metadata-token": self._token}

    def is_available(self) -> bool:
        if self._token is None:
            self._token = self._session_token()
        return self._probe(f"{self.address}/{self.API_VERSION}")

    def fetch_userdata(self) -> bytes:
        return self._fetch(f"{self.address}/{self.API_VERSION}/user-data")


class GCEMetadataDatasource(_MetadataDatasource):
    """Google Compute Engine metadata server."""

    type = "gce-metadata-service"

    DEFAULT_ADDRESS = "http://metadata.google.internal"

    def __init__(self, address: str = DEFAULT_ADDRESS, **kwargs) -> None:
        super().__init__(address, **kwargs)

    def _headers(self) -> Dict[str, str]:
        return {"Metadata-Flavor": "Google"}

    def is_available(self) -> bool:
        return self._probe(f"{self.address}/computeMetadata/v1/")

    def fetch_userdata(self) -> bytes:
        return self._fetch(f"{self.address}/computeMetadata/v1/instance/attributes/user-data")


class WAAgentDatasource:
    """Azure WA agent provisioning directory on the local filesystem."""

    type = "waagent"

    DEFAULT_ROOT = Path("/var/lib/waagent")

    def __init__(self, root: Path | str = DEFAULT_ROOT) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"WAAgentDatasource({str(self.root)!r})"

    def is_available(self) -> bool:
        return (self.root / "provisioned").exists()

    def availability_changes(self) -> bool:
        return True

    def fetch_userdata(self) -> bytes:
        path = self.root / "CustomData"
        try:
            return path.read_bytes()
        except FileNotFoundError:
            LOGGER.info("no user-data at %s", path)
            return b""


def default_datasources(settings: LauncherSettings, *, client: httpx.Client) -> List[Datasource]:
    """Build the candidate sources in probing order (EC2, GCE, Azure).

    The metadata sources share ``client``; its owner closes it.
    """
    return [
        EC2MetadataDatasource(settings.ec2_metadata_url, client=client),
        GCEMetadataDatasource(settings.gce_metadata_url, client=client),
        WAAgentDatasource(settings.waagent_root),
    ]


__all__ = [
    "Datasource",
    "EC2MetadataDatasource",
    "GCEMetadataDatasource",
    "WAAgentDatasource",
    "default_datasources",
]
