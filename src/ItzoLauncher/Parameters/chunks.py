# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.Parameters.chunks",
#   "purpose": "Reassemble configuration documents split across size-limited parameters.",
#   "sections": [
#     {
#       "id": "chunk-key",
#       "name": "chunk_key",
#       "anchor": "function-chunk-key",
#       "kind": "function"
#     },
#     {
#       "id": "split-document",
#       "name": "split_document",
#       "anchor": "function-split-document",
#       "kind": "function"
#     },
#     {
#       "id": "assemble-chunks",
#       "name": "assemble_chunks",
#       "anchor": "function-assemble-chunks",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Chunked Configuration Documents

A parameter store caps the size of a single value (4096 bytes for standard
SSM parameters), so a serialized configuration is stored either as one
parameter named after the base (``config``), or as an ordered sequence of
fragments named ``<base>-<index>`` (``config-0``, ``config-1``, ...).

Reassembly orders fragments by their numeric index, never by key string
order, and rejects inconsistent sets:

- a bare base key alongside indexed keys
- keys not shaped like ``<base>-<N>``
- gaps in the index range, or two keys resolving to the same index
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Mapping, Optional, Union

from ItzoLauncher.core.errors import InvalidChunkKey, NoFragments

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "config"
STANDARD_PARAMETER_MAX_BYTES = 4096

Fragment = Union[str, bytes]


def chunk_key(base: str, index: int) -> str:
    """Return the parameter name of fragment ``index``."""
    if index < 0:
        raise ValueError(f"chunk index must be non-negative, got {index}")
    return f"{base}-{index}"


def _to_bytes(value: Fragment) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def split_document(
    document: Fragment,
    *,
    base: str = DEFAULT_BASE_NAME,
    max_size: int = STANDARD_PARAMETER_MAX_BYTES,
) -> Dict[str, str]:
    """Split ``document`` into parameter-sized fragments.

    A document that fits one parameter is stored under the bare base name.
    Fragments never split a multi-byte UTF-8 character.
    """
    if max_size < 4:
        raise ValueError(f"max_size must be at least 4 bytes, got {max_size}")
    text = document.decode("utf-8") if isinstance(document, bytes) else document
    if len(text.encode("utf-8")) <= max_size:
        return {base: text}

    fragments: Dict[str, str] = {}
    current: List[str] = []
    size = 0
    for char in text:
        width = len(char.encode("utf-8"))
        if size + width > max_size:
            fragments[chunk_key(base, len(fragments))] = "".join(current)
            current, size = [], 0
        current.append(char)
        size += width
    if current:
        fragments[chunk_key(base, len(fragments))] = "".join(current)
    return fragments


def assemble_chunks(
    fragments: Mapping[str, Fragment], *, base: str = DEFAULT_BASE_NAME
) -> bytes:
    """Reassemble fragments keyed by parameter name into one document.

    Args:
        fragments: Mapping of parameter name to value.
        base: Bare base name of the document.

    Returns:
        The concatenated document.

    Raises:
        NoFragments: If ``fragments`` is empty.
        InvalidChunkKey: If the key set is malformed or inconsistent.
    """
    if not fragments:
        raise NoFragments(f"no parameters found for {base!r}")

    if len(fragments) == 1 and base in fragments:
        LOGGER.debug("using single parameter %r", base)
        return _to_bytes(fragments[base])

    if base in fragments:
        raise InvalidChunkKey(
            f"parameter {base!r} cannot be combined with indexed chunks", key=base
        )

    pattern = re.compile(rf"{re.escape(base)}-([0-9]+)")
    ordered: List[Optional[bytes]] = [None] * len(fragments)
    for key, value in fragments.items():
        match = pattern.fullmatch(key)
        if match is None:
            raise InvalidChunkKey(f"invalid chunk key: {key}", key=key)
        index = int(match.group(1))
        if index >= len(ordered):
            raise InvalidChunkKey(
                f"invalid chunk key: {key} (index out of range for {len(ordered)} chunks)",
                key=key,
            )
        if ordered[index] is not None:
            raise InvalidChunkKey(f"duplicate chunk index {index}: {key}", key=key)
        ordered[index] = _to_bytes(value)

    # Dense by construction: len(fragments) distinct indices all below len(fragments).
    document = b"".join(chunk for chunk in ordered if chunk is not None)
    LOGGER.debug("assembled %d chunks, %d bytes", len(ordered), len(document))
    return document


__all__ = [
    "DEFAULT_BASE_NAME",
    "STANDARD_PARAMETER_MAX_BYTES",
    "assemble_chunks",
    "chunk_key",
    "split_document",
]
