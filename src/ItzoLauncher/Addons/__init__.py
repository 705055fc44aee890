# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.Addons.__init__",
#   "purpose": "Independent post-boot actions driven by resolved configuration.",
#   "sections": []
# }
# === /NAVMAP ===

"""
Post-boot Addons

Addons receive the full resolved configuration and act on the keys they
recognise. The table of addons is built explicitly at startup and handed to
the runner, which collects failures instead of stopping at the first one.
"""

from .aws_cw_agent import AWSCWAgentAddon
from .fluentd_aws import FluentdAWSAddon
from .registry import Addon, AddonRegistry, default_registry
from .runner import run_addons
from .systemd import UnitAction, manage_unit

__all__ = [
    "AWSCWAgentAddon",
    "Addon",
    "AddonRegistry",
    "FluentdAWSAddon",
    "UnitAction",
    "default_registry",
    "manage_unit",
    "run_addons",
]
