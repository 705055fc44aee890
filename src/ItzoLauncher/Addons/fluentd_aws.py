"""Configure fluentd on AWS to ship logs to CloudWatch.

``fluentdAWSClusterName`` and ``fluentdAWSRegion`` are written to the
td-agent variables file and td-agent is restarted. Without a region the
instance identity document supplies one.

The cloudwatch plugin only reads IAM credentials at startup, and the
instance role is attached after pod dispatch. A background watcher
restarts td-agent once more when a role shows up.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Mapping, Optional

from ItzoLauncher.CloudInit.instance_identity import InstanceIdentity
from ItzoLauncher.core.cancellation import CancellationToken
from ItzoLauncher.core.errors import AddonError, UnitError

from .systemd import UnitAction, manage_unit

LOGGER = logging.getLogger(__name__)

FLUENTD_CLUSTER_NAME_KEY = "fluentdAWSClusterName"
FLUENTD_REGION_KEY = "fluentdAWSRegion"
FLUENTD_UNIT = "td-agent"
FLUENTD_VARIABLES_FILE = Path("/etc/default/td-agent")

IAM_ROLE_POLL_S = 3.0
IAM_ROLE_TIMEOUT_S = 600.0


class FluentdAWSAddon:
    """Write td-agent's cluster and region variables, then restart it."""

    name = "fluentd-aws"

    def __init__(
        self,
        variables_file: Path = FLUENTD_VARIABLES_FILE,
        metadata_url: str = "http://169.254.169.254",
        *,
        identity_factory: Optional[Callable[[], InstanceIdentity]] = None,
        restart: Callable[[UnitAction, str], None] = manage_unit,
        iam_role_poll_s: float = IAM_ROLE_POLL_S,
        iam_role_timeout_s: float = IAM_ROLE_TIMEOUT_S,
    ) -> None:
        self.variables_file = Path(variables_file)
        self._identity_factory = identity_factory or (lambda: InstanceIdentity(metadata_url))
        self._restart = restart
        self._iam_role_poll_s = iam_role_poll_s
        self._iam_role_timeout_s = iam_role_timeout_s
        self._stop = CancellationToken()
        self.watcher: Optional[threading.Thread] = None

    def detect_region(self) -> str:
        with self._identity_factory() as identity:
            return identity.region()

    def write_variables(self, cluster_name: str, region: str) -> None:
        try:
            self.variables_file.write_text(
                f"CLUSTER_NAME={cluster_name}\nREGION={region}\n", encoding="utf-8"
            )
        except OSError as exc:
            raise AddonError(f"writing {self.variables_file}: {exc}", addon=self.name) from exc

    def run(self, config: Mapping[str, str]) -> None:
        cluster_name = config.get(FLUENTD_CLUSTER_NAME_KEY, "")
        if not cluster_name:
            LOGGER.debug("no fluentd cluster name configured")
            return
        region = config.get(FLUENTD_REGION_KEY, "") or self.detect_region()
        if not region:
            LOGGER.warning("no AWS region for fluentd; leaving td-agent unconfigured")
            return

        self.write_variables(cluster_name, region)
        try:
            self._restart(UnitAction.RESTART, FLUENTD_UNIT)
        except UnitError as exc:
            raise AddonError(f"restarting fluentd: {exc}", addon=self.name) from exc
        LOGGER.info("configured fluentd for cluster %r in %s", cluster_name, region)

        self.watcher = threading.Thread(
            target=self._wait_for_iam_role, name="fluentd-iam-role", daemon=True
        )
        self.watcher.start()

    def stop(self) -> None:
        """Stop a running IAM role watcher."""
        self._stop.cancel()

    def _wait_for_iam_role(self) -> None:
        waited = 0.0
        while waited < self._iam_role_timeout_s:
            if self._stop.wait(self._iam_role_poll_s):
                return
            waited += self._iam_role_poll_s
            LOGGER.debug("checking if IAM role for fluentd is now available")
            with self._identity_factory() as identity:
                role = identity.iam_role()
            if not role:
                continue
            LOGGER.info("found IAM role for fluentd %r", role)
            try:
                self._restart(UnitAction.RESTART, FLUENTD_UNIT)
            except UnitError as exc:
                LOGGER.error("restarting fluentd after IAM role attach: %s", exc)
            return
        LOGGER.warning("no IAM role for fluentd after %.0fs", self._iam_role_timeout_s)


__all__ = ["FLUENTD_UNIT", "FLUENTD_VARIABLES_FILE", "FluentdAWSAddon"]
