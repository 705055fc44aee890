"""AWS Systems Manager Parameter Store backend for chunked configuration.

The launcher's configuration lives under ``<prefix>/<instance-id>/`` as
either a single ``config`` parameter or a run of ``config-N`` chunks.  This
module reads those parameters and hands them to the chunk assembler and
config decoder.

Design Notes
------------
- A missing parameter is a normal answer (it ends the chunk scan), so
  ``ParameterNotFound`` maps to ``None``.
- Throttling is retried with Tenacity; every other AWS failure surfaces as
  :class:`~ItzoLauncher.core.errors.TransportError`.
- Region and instance id come from the environment or the EC2 instance
  identity document, read with a short HTTPX timeout.
"""

from __future__ import annotations

import logging
import os
import posixpath
from typing import Any, Dict, Optional

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

from ItzoLauncher.CloudInit.compression import decompress_if_gzip
from ItzoLauncher.CloudInit.instance_identity import InstanceIdentity
from ItzoLauncher.core.errors import TransportError
from ItzoLauncher.core.settings import LauncherSettings

from .chunks import DEFAULT_BASE_NAME, assemble_chunks, chunk_key
from .decoder import decode_config

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CHUNKS = 10
AWS_DETECTION_TIMEOUT_S = 1.0
AWS_TIMEOUT_S = 10.0

_THROTTLING_CODES = {"ThrottlingException", "TooManyUpdates", "RequestLimitExceeded"}


def _error_code(exc: BaseException) -> Optional[str]:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code")


def is_throttling_error(exc: BaseException) -> bool:
    return _error_code(exc) in _THROTTLING_CODES


class SSMParameterStore:
    """Read configuration parameters below ``base_path``.

    Attributes:
        base_path: Parameter hierarchy holding this instance's configuration
        client: boto3 SSM client (or any object with ``get_parameter``)
    """

    def __init__(
        self,
        base_path: str,
        client: Any,
        *,
        retry_policy: Optional[Retrying] = None,
    ) -> None:
        self.base_path = base_path.rstrip("/") or "/"
        self.client = client
        self._retry_policy = retry_policy or Retrying(
            stop=stop_after_attempt(5),
            wait=wait_random_exponential(multiplier=0.5, max=8),
            retry=retry_if_exception(is_throttling_error),
            before_sleep=before_sleep_log(LOGGER, logging.WARNING),
            reraise=True,
        )

    @classmethod
    def from_instance(
        cls,
        settings: LauncherSettings,
        *,
        http_client: Optional[httpx.Client] = None,
    ) -> "SSMParameterStore":
        """Build a store scoped to the running EC2 instance.

        Raises:
            TransportError: If region or instance id cannot be determined.
        """
        with InstanceIdentity(
            settings.ec2_metadata_url, http_client, timeout=AWS_DETECTION_TIMEOUT_S
        ) as identity:
            region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
            if not region:
                region = identity.region()
            if not region:
                raise TransportError("failed to detect AWS region", source="ssm")
            instance_id = identity.instance_id()

        if not instance_id:
            raise TransportError(
                "failed to detect AWS instance ID, not running on AWS?", source="ssm"
            )

        client = boto3.client(
            "ssm",
            region_name=region,
            config=Config(connect_timeout=AWS_TIMEOUT_S, read_timeout=AWS_TIMEOUT_S),
        )
        LOGGER.info("reading parameters for instance %s in %s", instance_id, region)
        return cls(posixpath.join(settings.ssm_prefix, instance_id), client)

    def get_parameter(self, name: str) -> Optional[str]:
        """Return the decrypted value of ``name``, or ``None`` if it does not exist."""
        path = posixpath.join(self.base_path, name)
        try:
            response = self._retry_policy(
                self.client.get_parameter, Name=path, WithDecryption=True
            )
        except (ClientError, BotoCoreError) as exc:
            if _error_code(exc) == "ParameterNotFound":
                LOGGER.debug("SSM parameter %s not found", path)
                return None
            raise TransportError(f"getting SSM parameter {path}: {exc}", source="ssm") from exc

        value = (response.get("Parameter") or {}).get("Value")
        if value is None:
            LOGGER.debug("got nil SSM parameter value for %s", path)
        return value

    def get_all_parameters(
        self, base: str = DEFAULT_BASE_NAME, max_chunks: int = DEFAULT_MAX_CHUNKS
    ) -> Dict[str, str]:
        """Fetch the bare parameter and the ``base-N`` run up to the first gap."""
        params: Dict[str, str] = {}
        value = self.get_parameter(base)
        if value:
            params[base] = value

        for index in range(max_chunks):
            name = chunk_key(base, index)
            value = self.get_parameter(name)
            if not value:
                break
            params[name] = value
        LOGGER.debug("fetched %d SSM parameter(s) for %r", len(params), base)
        return params


def resolve_parameters(
    store: SSMParameterStore,
    *,
    base: str = DEFAULT_BASE_NAME,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
) -> Dict[str, str]:
    """Fetch, reassemble and decode the configuration held in ``store``."""
    params = store.get_all_parameters(base, max_chunks)
    document = decompress_if_gzip(assemble_chunks(params, base=base))
    LOGGER.info(
        "unmarshaling %d SSM parameter chunk(s), %d bytes", len(params), len(document)
    )
    return decode_config(document)


def resolve_instance_parameters(
    settings: LauncherSettings,
    *,
    http_client: Optional[httpx.Client] = None,
) -> Dict[str, str]:
    """Resolve the configuration stored for the running instance.

    The base name and chunk limit come from ``settings``.
    """
    store = SSMParameterStore.from_instance(settings, http_client=http_client)
    return resolve_parameters(
        store, base=settings.ssm_parameter_base, max_chunks=settings.ssm_max_chunks
    )


__all__ = [
    "DEFAULT_MAX_CHUNKS",
    "SSMParameterStore",
    "is_throttling_error",
    "resolve_instance_parameters",
    "resolve_parameters",
]
