"""Read instance identity facts from the EC2 instance metadata service.

Region, instance id and the attached IAM role are looked up on demand.
Every lookup degrades to ``""`` when the metadata service cannot answer, so
callers decide whether a missing value is fatal.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_IDENTITY_TIMEOUT_S = 1.0
TOKEN_TTL_SECONDS = 60


class InstanceIdentity:
    """Minimal IMDS reader (IMDSv2 token when offered).

    Closes the HTTP client on exit only when it created that client.
    """

    def __init__(
        self,
        address: str,
        client: Optional[httpx.Client] = None,
        *,
        timeout: float = DEFAULT_IDENTITY_TIMEOUT_S,
    ) -> None:
        self.address = address.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "InstanceIdentity":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get(self, path: str) -> httpx.Response:
        headers: Dict[str, str] = {}
        try:
            token = self.client.put(
                f"{self.address}/latest/api/token",
                headers={"X-aws-ec2-metadata-token-ttl-seconds": str(TOKEN_TTL_SECONDS)},
            )
            if token.status_code == 200:
                headers["X-aws-ec2-metadata-token"] = token.text.strip()
        except httpx.HTTPError as exc:
            LOGGER.debug("requesting IMDSv2 token: %s", exc)
        response = self.client.get(f"{self.address}{path}", headers=headers)
        response.raise_for_status()
        return response

    def region(self) -> str:
        try:
            document = self._get("/latest/dynamic/instance-identity/document").json()
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.warning("trying to autodetect AWS region: %s", exc)
            return ""
        region = document.get("region", "") if isinstance(document, dict) else ""
        LOGGER.debug("detected AWS region: %r", region)
        return region

    def instance_id(self) -> str:
        try:
            instance_id = self._get("/latest/meta-data/instance-id").text.strip()
        except httpx.HTTPError as exc:
            LOGGER.warning("trying to autodetect AWS instance ID: %s", exc)
            return ""
        LOGGER.debug("detected AWS instance ID: %r", instance_id)
        return instance_id

    def iam_role(self) -> str:
        """Return the name of the attached IAM role, or ``""`` if none is attached yet."""
        try:
            role = self._get("/latest/meta-data/iam/security-credentials/").text.strip()
        except httpx.HTTPError as exc:
            LOGGER.debug("checking for an IAM role: %s", exc)
            return ""
        return role


__all__ = ["DEFAULT_IDENTITY_TIMEOUT_S", "InstanceIdentity"]
