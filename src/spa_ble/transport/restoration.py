"""Connection restoration snapshots.

Mirrors the mobile state-restoration flow: a manager created with a
restore identifier saves the records of its connected devices after every
connection change, and a later manager created with the same identifier
receives that snapshot shortly after construction.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from ..models.device import DiscoverableDevice

_LOGGER = logging.getLogger(__name__)


@dataclass
class RestoredState:
    """Devices that were connected when the snapshot was taken."""

    connected_peripherals: list[DiscoverableDevice] = field(default_factory=list)


class RestorationStore:
    """Snapshot store keyed by restore identifier.

    Safe to share between managers and threads; concurrent writers to the
    same identifier resolve last-writer-wins.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, RestoredState] = {}

    def set(self, identifier: str, state: RestoredState) -> None:
        snapshot = RestoredState([device.copy() for device in state.connected_peripherals])
        with self._lock:
            self._states[identifier] = snapshot
        _LOGGER.debug(
            "Saved restoration state %s (%d connected)",
            identifier,
            len(snapshot.connected_peripherals),
        )

    def get(self, identifier: str) -> RestoredState | None:
        with self._lock:
            state = self._states.get(identifier)
        if state is None:
            return None
        return RestoredState([device.copy() for device in state.connected_peripherals])

    def discard(self, identifier: str) -> None:
        with self._lock:
            self._states.pop(identifier, None)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._states
