"""Configure the Amazon CloudWatch agent from resolved configuration.

Keys of the form ``awsCWAgent<name>`` become template variables; every
``{{<name>}}`` placeholder in the agent's JSON config is replaced with the
value, the file is rewritten and the agent restarted.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Mapping

from ItzoLauncher.core.errors import AddonError, UnitError

from .systemd import UnitAction, manage_unit

LOGGER = logging.getLogger(__name__)

AWS_CW_AGENT_PREFIX = "awsCWAgent"
AWS_CW_AGENT_UNIT = "amazon-cloudwatch-agent.service"
AWS_CW_AGENT_CONFIG = Path("/opt/aws/amazon-cloudwatch-agent/etc/amazon-cloudwatch-agent.json")


def template_variables(config: Mapping[str, str]) -> Dict[str, str]:
    """Select ``awsCWAgent*`` keys, stripped of their prefix."""
    return {
        key[len(AWS_CW_AGENT_PREFIX) :]: value
        for key, value in config.items()
        if key.startswith(AWS_CW_AGENT_PREFIX) and len(key) > len(AWS_CW_AGENT_PREFIX)
    }


class AWSCWAgentAddon:
    """Template the CloudWatch agent config and restart the agent."""

    name = "aws-cw-agent"

    def __init__(
        self,
        config_path: Path = AWS_CW_AGENT_CONFIG,
        restart: Callable[[UnitAction, str], None] = manage_unit,
    ) -> None:
        self.config_path = Path(config_path)
        self._restart = restart

    def replace_variables(self, variables: Mapping[str, str]) -> None:
        try:
            contents = self.config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AddonError(f"reading {self.config_path}: {exc}", addon=self.name) from exc
        for key, value in variables.items():
            contents = contents.replace("{{" + key + "}}", value)
        try:
            self.config_path.write_text(contents, encoding="utf-8")
        except OSError as exc:
            raise AddonError(f"writing {self.config_path}: {exc}", addon=self.name) from exc

    def run(self, config: Mapping[str, str]) -> None:
        variables = template_variables(config)
        if not variables:
            LOGGER.debug("no AWS CW agent configuration found")
            return
        self.replace_variables(variables)
        try:
            self._restart(UnitAction.RESTART, AWS_CW_AGENT_UNIT)
        except UnitError as exc:
            raise AddonError(f"restarting amazon-cloudwatch-agent: {exc}", addon=self.name) from exc
        LOGGER.info("configured AWS CW agent with %d variable(s)", len(variables))


__all__ = ["AWSCWAgentAddon", "AWS_CW_AGENT_UNIT", "template_variables"]
