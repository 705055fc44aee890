"""Cooperative cancellation primitive shared by concurrent pollers.

The datasource race runs one poller per candidate source.  This module
offers the light-weight :class:`CancellationToken` used to stop those
pollers once a winner is recorded or the deadline fires.  Pollers never get
interrupted; they check the token between probes and sleep on it, so a
cancelled poller wakes immediately instead of finishing its backoff.
"""

from __future__ import annotations

import threading
from typing import Optional


class CancellationToken:
    """Thread-safe cancellation token for cooperative task cancellation.

    Examples:
        >>> token = CancellationToken()
        >>> token.wait(0.0)
        False
        >>> token.cancel()
        >>> token.is_cancelled()
        True
        >>> token.wait(10.0)
        True
    """

    def __init__(self) -> None:
        """Initialize a new cancellation token."""
        self._is_cancelled = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        with self._lock:
            self._is_cancelled.set()

    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested.

        Returns:
            True if cancellation has been requested, False otherwise.
        """
        return self._is_cancelled.is_set()

    def wait(self, timeout: Optional[float]) -> bool:
        """Sleep for up to ``timeout`` seconds, waking early on cancellation.

        Args:
            timeout: Maximum number of seconds to wait; ``None`` waits until
                cancellation is requested.

        Returns:
            True if cancellation was requested, False if the timeout elapsed.
        """
        return self._is_cancelled.wait(timeout)


__all__ = ["CancellationToken"]

# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.core.cancellation",
#   "purpose": "Provide the cooperative cancellation token shared by datasource pollers",
#   "sections": [
#     {"id": "token", "name": "CancellationToken", "anchor": "TOK", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
