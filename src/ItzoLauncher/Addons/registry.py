"""Explicit addon table built at startup and passed to the runner."""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterator, List, Mapping, Protocol, Tuple, runtime_checkable

from ItzoLauncher.core.settings import LauncherSettings


@runtime_checkable
class Addon(Protocol):
    """Independent post-boot action driven by the resolved configuration."""

    def run(self, config: Mapping[str, str]) -> None: ...


class AddonRegistry:
    """Ordered table of named addons.

    Examples:
        >>> registry = AddonRegistry()
        >>> registry.register("noop", type("Noop", (), {"run": lambda self, cfg: None})())
        >>> registry.names()
        ['noop']
    """

    def __init__(self) -> None:
        self._addons: "OrderedDict[str, Addon]" = OrderedDict()

    def register(self, name: str, addon: Addon) -> None:
        """Add ``addon`` under ``name``.

        Raises:
            ValueError: If ``name`` is already registered.
        """
        if name in self._addons:
            raise ValueError(f"addon {name!r} is already registered")
        self._addons[name] = addon

    def names(self) -> List[str]:
        return list(self._addons)

    def __iter__(self) -> Iterator[Tuple[str, Addon]]:
        return iter(list(self._addons.items()))

    def __len__(self) -> int:
        return len(self._addons)

    def __contains__(self, name: object) -> bool:
        return name in self._addons


def default_registry(settings: LauncherSettings) -> AddonRegistry:
    """Build the addon table used at boot."""
    from .aws_cw_agent import AWSCWAgentAddon
    from .fluentd_aws import FluentdAWSAddon

    registry = AddonRegistry()
    registry.register("aws-cw-agent", AWSCWAgentAddon(settings.cw_agent_config))
    registry.register(
        "fluentd-aws",
        FluentdAWSAddon(settings.fluentd_variables_file, settings.ec2_metadata_url),
    )
    return registry


__all__ = ["Addon", "AddonRegistry", "default_registry"]
