"""Decode an assembled configuration document into a flat string mapping.

Values keep their source text: ``1.10``, ``0644``, ``yes`` and ``0x1F`` are
handed to addons and flags exactly as written. Only YAML null (``~``,
``null`` or an empty value) is interpreted, and it reads as ``""``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict

import yaml

from ItzoLauncher.core.errors import SchemaError

LOGGER = logging.getLogger(__name__)


class StringLoader(yaml.SafeLoader):
    """SafeLoader whose plain scalars resolve to strings, except null."""

    yaml_implicit_resolvers: Dict[Any, Any] = {}


StringLoader.add_implicit_resolver(
    "tag:yaml.org,2002:null",
    re.compile(r"^(?:~|null|Null|NULL|)$"),
    ["~", "n", "N", ""],
)


def load_strings(text: str) -> Any:
    """Parse ``text`` with :class:`StringLoader`.

    Examples:
        >>> load_strings("version: 1.10\\nmode: 0644\\n")
        {'version': '1.10', 'mode': '0644'}
    """
    return yaml.load(text, Loader=StringLoader)


def _scalar_to_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def decode_config(data: bytes) -> Dict[str, str]:
    """Parse ``data`` as a flat ``key: value`` YAML document.

    Nested mappings and sequences are rejected rather than flattened.
    Duplicate keys resolve to the last occurrence.

    Examples:
        >>> decode_config(b"a: 1.10\\nb: yes\\nc: ~\\n")
        {'a': '1.10', 'b': 'yes', 'c': ''}

    Raises:
        SchemaError: If the document is not UTF-8, not valid YAML, or not a
            flat string-to-string mapping.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SchemaError(f"config is not valid UTF-8: {exc}") from exc

    try:
        document = load_strings(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"parsing config: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise SchemaError(f"config must be a mapping, got {type(document).__name__}")

    config: Dict[str, str] = {}
    for key, value in document.items():
        if isinstance(key, (dict, list, tuple)):
            raise SchemaError(f"config key {key!r} is not a scalar")
        if isinstance(value, (dict, list)):
            raise SchemaError(
                f"config value of {key!r} is a {type(value).__name__}, expected a scalar"
            )
        config[_scalar_to_str(key)] = _scalar_to_str(value)
    LOGGER.debug("decoded %d config keys", len(config))
    return config


__all__ = ["StringLoader", "decode_config", "load_strings"]
