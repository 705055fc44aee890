"""Start, stop or restart systemd units."""

from __future__ import annotations

import logging
import subprocess
from enum import Enum

from ItzoLauncher.core.errors import UnitError

LOGGER = logging.getLogger(__name__)


class UnitAction(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"


def manage_unit(action: UnitAction | str, unit: str) -> None:
    """Run ``systemctl <action> <unit>``.

    Raises:
        UnitError: If systemctl exits non-zero or cannot be executed.
    """
    action = UnitAction(action)
    LOGGER.debug("systemctl %s %s", action.value, unit)
    try:
        result = subprocess.run(
            ["systemctl", action.value, unit],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise UnitError(
            f"{action.value} {unit}: {exc}", action=action.value, unit=unit, returncode=-1
        ) from exc
    if result.returncode != 0:
        raise UnitError(
            f"{action.value} {unit}: exit status {result.returncode}; output:\n{result.stdout}",
            action=action.value,
            unit=unit,
            returncode=result.returncode,
            output=result.stdout or "",
        )


__all__ = ["UnitAction", "manage_unit"]
