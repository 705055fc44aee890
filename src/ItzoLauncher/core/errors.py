"""Exception hierarchy shared across configuration resolution and addons.

Bootstrapping spans datasource selection, user-data retrieval, chunk
reassembly, document decoding and post-boot addons.  This module groups the
failure modes so callers can react to high-level categories (an expected
"nothing to resolve" outcome vs. malformed upstream data vs. transport
failures) while still having access to the specialised subclasses.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

__all__ = [
    "ConfigResolutionError",
    "NoSourceAvailable",
    "TransportError",
    "DecompressionError",
    "InvalidChunkKey",
    "NoFragments",
    "SchemaError",
    "AddonError",
    "AddonRunError",
    "UnitError",
]


class ConfigResolutionError(RuntimeError):
    """Base exception for configuration resolution failures."""


class NoSourceAvailable(ConfigResolutionError):
    """Raised when no datasource became available before the deadline.

    This is an expected outcome when running outside any recognised cloud
    environment; callers usually fall back to an empty configuration.
    """

    def __init__(self, message: str, *, tried: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.tried = tuple(tried or ())


class TransportError(ConfigResolutionError):
    """Raised when a selected source fails while its payload is fetched."""

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class DecompressionError(ConfigResolutionError):
    """Raised when a gzip envelope is present but truncated or corrupt."""


class InvalidChunkKey(ConfigResolutionError):
    """Raised when a fragment key is malformed or the chunk set is inconsistent."""

    def __init__(self, message: str, *, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class NoFragments(ConfigResolutionError):
    """Raised when chunk assembly is attempted on an empty fragment set."""


class SchemaError(ConfigResolutionError):
    """Raised when a document does not match the expected structure."""


class AddonError(RuntimeError):
    """Raised by a single addon when its post-boot action fails."""

    def __init__(self, message: str, *, addon: Optional[str] = None) -> None:
        super().__init__(message)
        self.addon = addon


class AddonRunError(RuntimeError):
    """Aggregate of independent addon failures collected by the runner."""

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures = dict(failures)
        details = "; ".join(f"{name}: {exc}" for name, exc in self.failures.items())
        super().__init__(f"{len(self.failures)} addon(s) failed: {details}")


class UnitError(RuntimeError):
    """Raised when a systemd unit action exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        action: str,
        unit: str,
        returncode: int,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.action = action
        self.unit = unit
        self.returncode = returncode
        self.output = output


# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.core.errors",
#   "purpose": "Define the exception hierarchy used across configuration resolution and addons",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "resolution", "name": "Source & Transport Errors", "anchor": "RES", "kind": "api"},
#     {"id": "data", "name": "Malformed Data Errors", "anchor": "DAT", "kind": "api"},
#     {"id": "addons", "name": "Addon & Unit Errors", "anchor": "ADD", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
