"""Bootstrap orchestrator for the launcher.

**Purpose**
-----------
Coordinates the post-boot configuration steps:
1. Resolve user-data and write the launcher files it carries
2. Decode the cell config into a flat key/value mapping
3. Run every addon against that mapping
4. Derive the itzo command-line flags

**Design**
----------
- "No datasource available" is not fatal: the launcher continues with an
  empty configuration (e.g. when booted outside any recognised cloud)
- Addon failures are aggregated and reported, never fatal to the boot
- Transport and malformed-data errors propagate to the caller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ItzoLauncher.Addons import AddonRegistry, default_registry, run_addons
from ItzoLauncher.CloudInit import Datasource, process_user_data, read_cell_config
from ItzoLauncher.core.errors import AddonRunError, NoSourceAvailable
from ItzoLauncher.core.flags import get_itzo_flags
from ItzoLauncher.core.settings import LauncherSettings

LOGGER = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    """Outcome of one bootstrap pass."""

    config: Dict[str, str] = field(default_factory=dict)
    written_files: List[Path] = field(default_factory=list)
    itzo_flags: List[str] = field(default_factory=list)
    addon_failures: Dict[str, BaseException] = field(default_factory=dict)
    source_found: bool = True


def bootstrap(
    settings: LauncherSettings,
    *,
    sources: Optional[Sequence[Datasource]] = None,
    registry: Optional[AddonRegistry] = None,
) -> BootstrapResult:
    """Resolve configuration and run addons.

    Raises:
        TransportError: If the selected datasource failed to deliver.
        DecompressionError, SchemaError: If user-data or the cell config is malformed.
    """
    result = BootstrapResult()
    LOGGER.debug("getting itzo files from cloud-init")
    try:
        result.written_files = process_user_data(settings, sources)
    except NoSourceAvailable as exc:
        LOGGER.warning("%s; continuing with an empty configuration", exc)
        result.source_found = False
    else:
        LOGGER.debug("wrote itzo files from cloud-init")

    result.config = read_cell_config(settings.cell_config_file)

    registry = registry if registry is not None else default_registry(settings)
    try:
        run_addons(registry, result.config)
    except AddonRunError as exc:
        LOGGER.warning("running addons: %s", exc)
        result.addon_failures = exc.failures

    result.itzo_flags = get_itzo_flags(result.config)
    return result


__all__ = ["BootstrapResult", "bootstrap"]
