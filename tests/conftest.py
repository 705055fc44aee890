# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "fakedatasource",
#       "name": "FakeDatasource",
#       "anchor": "class-fakedatasource",
#       "kind": "class"
#     },
#     {
#       "id": "launcher-settings",
#       "name": "launcher_settings",
#       "anchor": "function-launcher-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Puts ``src`` on ``sys.path`` so the suite runs against the working tree, and
provides the scripted datasource and settings fixtures shared by the
CloudInit and Launcher tests.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Optional

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from ItzoLauncher.core.settings import LauncherSettings  # noqa: E402


class FakeDatasource:
    """Scripted datasource that counts probes and fetches.

    ``available_after`` is the number of probes answering "not available"
    before the source turns available; ``None`` means never.
    """

    def __init__(
        self,
        type: str,
        *,
        available_after: Optional[int] = 0,
        changes: bool = True,
        payload: bytes = b"",
        error: Optional[BaseException] = None,
    ) -> None:
        self.type = type
        self.available_after = available_after
        self.changes = changes
        self.payload = payload
        self.error = error
        self._lock = threading.Lock()
        self.probes = 0
        self.fetches = 0

    def is_available(self) -> bool:
        with self._lock:
            self.probes += 1
            count = self.probes
        return self.available_after is not None and count > self.available_after

    def availability_changes(self) -> bool:
        return self.changes

    def fetch_userdata(self) -> bytes:
        with self._lock:
            self.fetches += 1
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def fake_datasource():
    """Factory fixture for :class:`FakeDatasource`."""
    return FakeDatasource


@pytest.fixture
def launcher_settings(tmp_path: Path) -> LauncherSettings:
    """Settings confined to ``tmp_path`` with a fast race cadence."""
    return LauncherSettings(
        itzo_dir=tmp_path / "itzo",
        log_dir=None,
        waagent_root=tmp_path / "waagent",
        cw_agent_config=tmp_path / "amazon-cloudwatch-agent.json",
        fluentd_variables_file=tmp_path / "td-agent",
        datasource_interval_s=0.01,
        datasource_max_interval_s=0.05,
        datasource_timeout_s=2.0,
    )
