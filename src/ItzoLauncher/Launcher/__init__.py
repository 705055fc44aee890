"""Launcher entry points wiring resolution, addons and flags together."""

from .bootstrap import BootstrapResult, bootstrap

__all__ = ["BootstrapResult", "bootstrap"]
