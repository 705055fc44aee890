"""Transparent gzip unwrapping for user-data payloads."""

from __future__ import annotations

import gzip
import zlib

from ItzoLauncher.core.errors import DecompressionError

GZIP_MAGIC = b"\x1f\x8b"


def is_gzip(data: bytes) -> bool:
    return data[:2] == GZIP_MAGIC


def decompress_if_gzip(data: bytes) -> bytes:
    """Return ``data`` decompressed when it carries a gzip envelope.

    Input without the gzip magic bytes is returned unchanged, which makes the
    function idempotent on plain payloads.

    Raises:
        DecompressionError: If the magic bytes are present but the stream is
            truncated or corrupt.
    """
    if not is_gzip(data):
        return data
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as exc:
        raise DecompressionError(f"decompressing gzip payload ({len(data)} bytes): {exc}") from exc


__all__ = ["GZIP_MAGIC", "decompress_if_gzip", "is_gzip"]
