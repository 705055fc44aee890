"""Run every registered addon and aggregate their failures."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Mapping

from ItzoLauncher.core.errors import AddonRunError

from .registry import AddonRegistry

LOGGER = logging.getLogger(__name__)


def run_addons(registry: AddonRegistry, config: Mapping[str, str]) -> None:
    """Run each addon with the full configuration.

    Addons are independent, so one failure does not stop the others.

    Raises:
        AddonRunError: After all addons ran, if at least one of them failed.
    """
    view = MappingProxyType(dict(config))
    failures: Dict[str, BaseException] = {}
    LOGGER.info("found %d addon(s)", len(registry))
    for name, addon in registry:
        LOGGER.info("running addon %s", name)
        try:
            addon.run(view)
        except Exception as exc:
            LOGGER.error("running %s: %s", name, exc)
            failures[name] = exc
        else:
            LOGGER.debug("running %s: success", name)
    if failures:
        raise AddonRunError(failures)


__all__ = ["run_addons"]
