# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.core.__init__",
#   "purpose": "Shared launcher infrastructure.",
#   "sections": []
# }
# === /NAVMAP ===

"""
Shared launcher infrastructure: error taxonomy, cooperative cancellation,
settings, logging and retry policies used by the CloudInit, Parameters and
Addons packages.
"""

from .cancellation import CancellationToken
from .errors import (
    AddonError,
    AddonRunError,
    ConfigResolutionError,
    DecompressionError,
    InvalidChunkKey,
    NoFragments,
    NoSourceAvailable,
    SchemaError,
    TransportError,
    UnitError,
)
from .settings import LauncherSettings, get_settings

__all__ = [
    "AddonError",
    "AddonRunError",
    "CancellationToken",
    "ConfigResolutionError",
    "DecompressionError",
    "InvalidChunkKey",
    "LauncherSettings",
    "NoFragments",
    "NoSourceAvailable",
    "SchemaError",
    "TransportError",
    "UnitError",
    "get_settings",
]
