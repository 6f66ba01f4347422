"""Per-device connection state, fault overrides, MTU bookkeeping and listeners."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..exceptions import NotConnectedError
from ..listeners import ListenerSet, Subscription
from ..models.events import ConnectionEvent

_LOGGER = logging.getLogger(__name__)

ConnectionListener = Callable[[ConnectionEvent], None]
MtuListener = Callable[[int], None]


class ConnectionManager:
    """Tracks which devices are connected and who wants to hear about it.

    Connection and MTU listener sets are keyed by device id and pruned when
    their last subscription goes away.
    """

    def __init__(self, default_max_mtu: int):
        self._default_max_mtu = default_max_mtu
        # dict keeps connection order, so mass disconnects are deterministic
        self._connected: dict[str, None] = {}
        self._delays: dict[str, float] = {}
        self._connection_errors: dict[str, BaseException] = {}
        self._disconnection_errors: dict[str, BaseException] = {}
        self._max_mtus: dict[str, int] = {}
        self._listeners: dict[str, ListenerSet[ConnectionListener]] = {}
        self._mtu_listeners: dict[str, ListenerSet[MtuListener]] = {}

    # Connection set

    def is_connected(self, device_id: str) -> bool:
        return device_id in self._connected

    def require_connected(self, device_id: str) -> None:
        if device_id not in self._connected:
            raise NotConnectedError(f"Device {device_id} is not connected")

    def mark_connected(self, device_id: str) -> None:
        self._connected[device_id] = None
        _LOGGER.debug("Marked %s connected", device_id)

    def mark_disconnected(self, device_id: str) -> bool:
        """Remove device_id from the connected set.

        Returns:
            True if the device was connected
        """
        if device_id not in self._connected:
            return False
        del self._connected[device_id]
        _LOGGER.debug("Marked %s disconnected", device_id)
        return True

    def connected_ids(self) -> list[str]:
        return list(self._connected)

    # Fault and latency overrides

    def set_delay(self, device_id: str, delay: float) -> None:
        if delay < 0:
            raise ValueError(f"delay must not be negative, got {delay}")
        self._delays[device_id] = delay

    def clear_delay(self, device_id: str) -> None:
        self._delays.pop(device_id, None)

    def delay(self, device_id: str) -> float:
        return self._delays.get(device_id, 0.0)

    def set_connection_error(self, device_id: str, error: BaseException) -> None:
        self._connection_errors[device_id] = error

    def clear_connection_error(self, device_id: str) -> None:
        self._connection_errors.pop(device_id, None)

    def connection_error(self, device_id: str) -> BaseException | None:
        return self._connection_errors.get(device_id)

    def set_disconnection_error(self, device_id: str, error: BaseException) -> None:
        self._disconnection_errors[device_id] = error

    def clear_disconnection_error(self, device_id: str) -> None:
        self._disconnection_errors.pop(device_id, None)

    def disconnection_error(self, device_id: str) -> BaseException | None:
        return self._disconnection_errors.get(device_id)

    # MTU

    def set_max_mtu(self, device_id: str, max_mtu: int) -> None:
        if max_mtu <= 0:
            raise ValueError(f"max_mtu must be positive, got {max_mtu}")
        self._max_mtus[device_id] = max_mtu

    def max_mtu(self, device_id: str) -> int:
        return self._max_mtus.get(device_id, self._default_max_mtu)

    def negotiate_mtu(self, device_id: str, requested: int) -> int:
        """Accepted MTU for a request: the smaller of requested and the device max."""
        if requested <= 0:
            raise ValueError(f"requested MTU must be positive, got {requested}")
        return min(requested, self.max_mtu(device_id))

    def on_mtu_changed(self, device_id: str, listener: MtuListener) -> Subscription:
        return self._listener_set(self._mtu_listeners, device_id).add(listener)

    def notify_mtu(self, device_id: str, mtu: int) -> int:
        listeners = self._mtu_listeners.get(device_id)
        return listeners.emit(mtu) if listeners else 0

    # Connection listeners

    def on_connection_event(self, device_id: str, listener: ConnectionListener) -> Subscription:
        return self._listener_set(self._listeners, device_id).add(listener)

    def notify(self, device_id: str, event: ConnectionEvent) -> int:
        listeners = self._listeners.get(device_id)
        return listeners.emit(event) if listeners else 0

    @staticmethod
    def _listener_set(registry: dict[str, ListenerSet], device_id: str) -> ListenerSet:
        listeners = registry.get(device_id)
        if listeners is None:
            def prune() -> None:
                if registry.get(device_id) is listeners:
                    del registry[device_id]

            listeners = ListenerSet(on_empty=prune)
            registry[device_id] = listeners
        return listeners
