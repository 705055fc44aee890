"""Translate resolved configuration into itzo command-line flags."""

from __future__ import annotations

from typing import List, Mapping

ITZO_FLAG_PREFIX = "itzoFlag"

DEFAULT_ITZO_FLAGS: tuple[str, ...] = ("--v", "5")


def get_itzo_flags(config: Mapping[str, str]) -> List[str]:
    """Collect ``itzoFlag<name>: <value>`` entries as ``[<name>, <value>, ...]``.

    Keys are processed in sorted order. Default flags are appended unless the
    configuration already sets them.

    Examples:
        >>> get_itzo_flags({"itzoFlag-use-podman": "true", "other": "x"})
        ['-use-podman', 'true', '--v', '5']
    """
    flags: List[str] = []
    seen = set()
    for key in sorted(config):
        if not key.startswith(ITZO_FLAG_PREFIX):
            continue
        name = key[len(ITZO_FLAG_PREFIX) :]
        if not name:
            continue
        flags.extend((name, config[key]))
        seen.add(name)

    defaults = list(DEFAULT_ITZO_FLAGS)
    for index in range(0, len(defaults), 2):
        name, value = defaults[index], defaults[index + 1]
        if name not in seen:
            flags.extend((name, value))
    return flags


__all__ = ["DEFAULT_ITZO_FLAGS", "ITZO_FLAG_PREFIX", "get_itzo_flags"]
