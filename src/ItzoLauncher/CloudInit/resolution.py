# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.CloudInit.resolution",
#   "purpose": "End-to-end user-data resolution: race, fetch, decompress, materialise.",
#   "sections": [
#     {
#       "id": "fetch-userdata",
#       "name": "fetch_userdata",
#       "anchor": "function-fetch-userdata",
#       "kind": "function"
#     },
#     {
#       "id": "process-user-data",
#       "name": "process_user_data",
#       "anchor": "function-process-user-data",
#       "kind": "function"
#     },
#     {
#       "id": "read-cell-config",
#       "name": "read_cell_config",
#       "anchor": "function-read-cell-config",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
User-data Resolution

Wires the datasource race to the payload pipeline:

1. Race the candidate datasources; nothing available is reported as
   :class:`NoSourceAvailable` (expected outside a recognised cloud)
2. Fetch the winner's user-data; failures become :class:`TransportError`
3. Unwrap a gzip envelope if present
4. Parse the cloud-config and write the launcher files it carries

Decode and decompression failures abort resolution; a partially decoded
document is never passed on.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import httpx

from ItzoLauncher.core.errors import NoSourceAvailable, TransportError
from ItzoLauncher.core.settings import LauncherSettings
from ItzoLauncher.Parameters.decoder import decode_config

from .cloud_config import parse_cloud_config, write_files
from .compression import decompress_if_gzip
from .datasources import Datasource, default_datasources
from .race import (
    DATASOURCE_INTERVAL_S,
    DATASOURCE_MAX_INTERVAL_S,
    DATASOURCE_TIMEOUT_S,
    select_datasource,
)

LOGGER = logging.getLogger(__name__)


def fetch_userdata(
    sources: Sequence[Datasource],
    *,
    initial_interval: float = DATASOURCE_INTERVAL_S,
    max_interval: float = DATASOURCE_MAX_INTERVAL_S,
    timeout: float = DATASOURCE_TIMEOUT_S,
) -> bytes:
    """Select a datasource and return its (decompressed) user-data.

    Raises:
        NoSourceAvailable: If no datasource became available in time.
        TransportError: If the selected datasource failed to deliver.
        DecompressionError: If the payload has a corrupt gzip envelope.
    """
    if not sources:
        raise NoSourceAvailable("no datasources configured")

    source = select_datasource(
        sources,
        initial_interval=initial_interval,
        max_interval=max_interval,
        timeout=timeout,
    )
    if source is None:
        raise NoSourceAvailable(
            "no datasources available in time", tried=[s.type for s in sources]
        )

    LOGGER.info("fetching user-data from datasource of type %r", source.type)
    try:
        payload = source.fetch_userdata()
    except (httpx.HTTPError, OSError) as exc:
        raise TransportError(
            f"fetching user-data from datasource {source.type!r}: {exc}", source=source.type
        ) from exc
    return decompress_if_gzip(payload)


def process_user_data(
    settings: LauncherSettings,
    sources: Optional[Sequence[Datasource]] = None,
) -> List[Path]:
    """Fetch user-data and write the launcher files it provides.

    Returns:
        Paths of the launcher files that were written.
    """
    if sources is None:
        with httpx.Client(timeout=settings.metadata_timeout_s) as client:
            return _process_user_data(
                settings, default_datasources(settings, client=client)
            )
    return _process_user_data(settings, sources)


def _process_user_data(
    settings: LauncherSettings, sources: Sequence[Datasource]
) -> List[Path]:
    userdata = fetch_userdata(
        sources,
        initial_interval=settings.datasource_interval_s,
        max_interval=settings.datasource_max_interval_s,
        timeout=settings.datasource_timeout_s,
    )
    cloud_config = parse_cloud_config(userdata)
    settings.itzo_dir.mkdir(parents=True, exist_ok=True)
    written = write_files(cloud_config, settings.launcher_files)
    LOGGER.info("wrote %d launcher file(s) from user-data", len(written))
    return written


def read_cell_config(path: Path) -> Dict[str, str]:
    """Decode the cell config written from user-data; a missing file is empty."""
    try:
        contents = Path(path).read_bytes()
    except FileNotFoundError:
        LOGGER.warning("reading %s: file not found", path)
        return {}
    return decode_config(contents)


__all__ = ["fetch_userdata", "process_user_data", "read_cell_config"]
