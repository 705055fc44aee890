# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.CloudInit.race",
#   "purpose": "Concurrent datasource selection with per-source backoff and a global deadline.",
#   "sections": [
#     {
#       "id": "exp-backoff",
#       "name": "exp_backoff",
#       "anchor": "function-exp-backoff",
#       "kind": "function"
#     },
#     {
#       "id": "backoff-intervals",
#       "name": "backoff_intervals",
#       "anchor": "function-backoff-intervals",
#       "kind": "function"
#     },
#     {
#       "id": "winnerslot",
#       "name": "WinnerSlot",
#       "anchor": "class-winnerslot",
#       "kind": "class"
#     },
#     {
#       "id": "select-datasource",
#       "name": "select_datasource",
#       "anchor": "function-select-datasource",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Datasource Race

Selects the first datasource that reports itself available:

- One poller thread per source, none blocking another's cadence
- Independent exponential backoff per source, capped at a ceiling
- A lock-protected winner slot: the first source to claim it wins
- A single global deadline bounding the whole selection
- Cooperative cancellation: once the race is decided every poller is told
  to stop and the winner slot is closed, so a poller still blocked in an
  availability check can never change the outcome; the call returns without waiting
  for such stragglers

When several sources become available at the same instant, whichever poller
claims the slot first wins. Scheduler order decides; callers must not rely on
a particular source winning in that case.

Finding nothing (deadline elapsed, or every source permanently unavailable)
is a normal outcome reported as ``None``.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Iterator, Optional, Sequence

from ItzoLauncher.core.cancellation import CancellationToken

from .datasources import Datasource

LOGGER = logging.getLogger(__name__)

DATASOURCE_INTERVAL_S = 0.1
DATASOURCE_MAX_INTERVAL_S = 1.0
DATASOURCE_TIMEOUT_S = 300.0


def exp_backoff(interval: float, maximum: float) -> float:
    """Double ``interval``, capped at ``maximum``."""
    return min(interval * 2, maximum)


def backoff_intervals(initial: float, maximum: float) -> Iterator[float]:
    """Yield the (infinite, non-decreasing) sleep schedule of one poller.

    Examples:
        >>> from itertools import islice
        >>> list(islice(backoff_intervals(0.1, 0.5), 5))
        [0.1, 0.2, 0.4, 0.5, 0.5]
    """
    interval = min(initial, maximum)
    while True:
        yield interval
        interval = exp_backoff(interval, maximum)


class WinnerSlot:
    """Single-assignment slot shared by all pollers of one race.

    Once closed, the slot rejects every further claim.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._winner: Optional[Datasource] = None
        self._closed = False

    def claim(self, source: Datasource) -> bool:
        """Record ``source`` as the winner unless another source got there first.

        Returns:
            True if this call recorded the winner, False otherwise.
        """
        with self._lock:
            if self._closed or self._winner is not None:
                return False
            self._winner = source
            return True

    def close(self) -> None:
        with self._lock:
            self._closed = True

    @property
    def winner(self) -> Optional[Datasource]:
        with self._lock:
            return self._winner


def _poll(
    source: Datasource,
    slot: WinnerSlot,
    token: CancellationToken,
    initial_interval: float,
    max_interval: float,
) -> None:
    for interval in backoff_intervals(initial_interval, max_interval):
        if token.is_cancelled():
            return
        LOGGER.debug("checking availability of %r", source.type)
        try:
            available = source.is_available()
        except Exception as exc:
            if token.is_cancelled():
                return
            LOGGER.warning("checking availability of %r: %s", source.type, exc)
            available = False

        if available:
            if token.is_cancelled():
                return
            if slot.claim(source):
                LOGGER.info("datasource %r is available", source.type)
                token.cancel()
            return
        if not source.availability_changes():
            LOGGER.debug("datasource %r is permanently unavailable", source.type)
            return
        if token.wait(interval):
            return


def select_datasource(
    sources: Sequence[Datasource],
    *,
    initial_interval: float = DATASOURCE_INTERVAL_S,
    max_interval: float = DATASOURCE_MAX_INTERVAL_S,
    timeout: float = DATASOURCE_TIMEOUT_S,
) -> Optional[Datasource]:
    """Return the first datasource that becomes available, or ``None``.

    Args:
        sources: Candidate datasources; each is polled by its own thread.
        initial_interval: First backoff sleep of every poller (seconds).
        max_interval: Backoff ceiling (seconds).
        timeout: Global deadline for the whole selection (seconds).

    Returns:
        The winning datasource, or ``None`` when the deadline elapsed or
        every source reported itself permanently unavailable.
    """
    if not sources:
        return None

    slot = WinnerSlot()
    token = CancellationToken()
    deadline = time.monotonic() + timeout

    executor = ThreadPoolExecutor(
        max_workers=len(sources), thread_name_prefix="datasource-race"
    )
    pending = {
        executor.submit(_poll, source, slot, token, initial_interval, max_interval)
        for source in sources
    }
    try:
        while pending and slot.winner is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                LOGGER.warning("no datasource became available within %.1fs", timeout)
                break
            _, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
    finally:
        # The closed slot ignores late claims, so stragglers are not joined.
        slot.close()
        token.cancel()
        executor.shutdown(wait=False, cancel_futures=True)

    winner = slot.winner
    if winner is None and not pending:
        LOGGER.info("all datasources are permanently unavailable")
    return winner


__all__ = [
    "DATASOURCE_INTERVAL_S",
    "DATASOURCE_MAX_INTERVAL_S",
    "DATASOURCE_TIMEOUT_S",
    "WinnerSlot",
    "backoff_intervals",
    "exp_backoff",
    "select_datasource",
]
