"""Characteristic value table, monitors, write observers and fault overrides."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..listeners import ListenerSet, Subscription
from ..models.enums import OperationKind
from ..models.gatt import Characteristic, CharacteristicKey, CharacteristicMetadata
from ..models.results import Failure, Result, Success
from ..scheduler import Scheduler, TimerHandle

_LOGGER = logging.getLogger(__name__)

MonitorListener = Callable[[Result[Characteristic]], None]
WriteListener = Callable[[str], None]
MetadataLookup = Callable[[CharacteristicKey], "CharacteristicMetadata | None"]


class CharacteristicStore:
    """Per-characteristic state for one emulated adapter.

    Every entry is addressed by a CharacteristicKey. Monitor listener sets
    are pruned as soon as their last subscription is removed, which also
    cancels any periodic notification timer for that key.
    """

    def __init__(self, scheduler: Scheduler, metadata_lookup: MetadataLookup | None = None):
        self._scheduler = scheduler
        self._metadata_lookup = metadata_lookup
        self._values: dict[CharacteristicKey, str] = {}
        self._monitors: dict[CharacteristicKey, ListenerSet[MonitorListener]] = {}
        self._write_listeners: dict[CharacteristicKey, tuple[WriteListener, object]] = {}
        self._delays: dict[tuple[OperationKind, CharacteristicKey], float] = {}
        self._errors: dict[tuple[OperationKind, CharacteristicKey], BaseException] = {}
        self._timers: dict[CharacteristicKey, TimerHandle] = {}

    # Values

    def value(self, key: CharacteristicKey) -> str | None:
        return self._values.get(key)

    def snapshot(self, key: CharacteristicKey, value: str | None = None) -> Characteristic:
        """Characteristic record for key carrying value (default: stored value)."""
        if value is None:
            value = self._values.get(key)
        metadata = self._metadata_lookup(key) if self._metadata_lookup is not None else None
        return Characteristic.from_key(key, value, metadata)

    def set_value(self, key: CharacteristicKey, value: str, notify: bool = False) -> int:
        """Store value for key, optionally fanning it out to monitors.

        Returns:
            Number of monitors notified
        """
        self._values[key] = value
        if notify:
            return self.notify(key)
        return 0

    # Fault and latency overrides

    def set_delay(self, kind: OperationKind, key: CharacteristicKey, delay: float) -> None:
        if delay < 0:
            raise ValueError(f"delay must not be negative, got {delay}")
        self._delays[(kind, key)] = delay

    def clear_delay(self, kind: OperationKind, key: CharacteristicKey) -> None:
        self._delays.pop((kind, key), None)

    def delay(self, kind: OperationKind, key: CharacteristicKey) -> float:
        return self._delays.get((kind, key), 0.0)

    def set_error(self, kind: OperationKind, key: CharacteristicKey, error: BaseException) -> None:
        self._errors[(kind, key)] = error

    def clear_error(self, kind: OperationKind, key: CharacteristicKey) -> None:
        self._errors.pop((kind, key), None)

    def error(self, kind: OperationKind, key: CharacteristicKey) -> BaseException | None:
        return self._errors.get((kind, key))

    # Monitors

    def add_monitor(self, key: CharacteristicKey, listener: MonitorListener) -> Subscription:
        """Register listener for value updates on key.

        The current value, if any, is delivered on the next scheduler turn
        rather than from inside this call.
        """
        listeners = self._monitors.get(key)
        if listeners is None:
            listeners = ListenerSet(on_empty=lambda: self._prune_monitors(key, listeners))
            self._monitors[key] = listeners

        subscription = listeners.add(listener)

        current = self._values.get(key)
        if current:
            self._scheduler.call_soon(self._deliver_initial, subscription, listener, key, current)

        return subscription

    def _deliver_initial(
            self,
            subscription: Subscription,
            listener: MonitorListener,
            key: CharacteristicKey,
            value: str,
    ) -> None:
        if subscription.active:
            listener(Success(self.snapshot(key, value)))

    def _prune_monitors(self, key: CharacteristicKey, listeners: ListenerSet[MonitorListener]) -> None:
        if self._monitors.get(key) is listeners:
            del self._monitors[key]
            self.stop_notifications(key)
            _LOGGER.debug("Last monitor removed for %s", key)

    def notify(self, key: CharacteristicKey) -> int:
        """Fan the stored value out to every monitor of key.

        No-op when there is no value or no monitor.
        """
        value = self._values.get(key)
        listeners = self._monitors.get(key)
        if not value or not listeners:
            return 0
        return listeners.emit(Success(self.snapshot(key, value)))

    def notify_error(self, key: CharacteristicKey, error: BaseException) -> int:
        listeners = self._monitors.get(key)
        if not listeners:
            return 0
        return listeners.emit(Failure(error))

    # Write observers

    def on_write(self, key: CharacteristicKey, listener: WriteListener) -> Subscription:
        """Observe successful writes to key.

        One observer per key: a new registration replaces the previous one,
        and removing a replaced registration leaves the newer one in place.
        """
        token = object()
        self._write_listeners[key] = (listener, token)

        def remove() -> None:
            current = self._write_listeners.get(key)
            if current is not None and current[1] is token:
                del self._write_listeners[key]

        return Subscription(remove)

    def fire_write(self, key: CharacteristicKey, value: str) -> bool:
        entry = self._write_listeners.get(key)
        if entry is None:
            return False
        entry[0](value)
        return True

    # Periodic notifications

    def start_notifications(self, key: CharacteristicKey, interval: float) -> None:
        """Re-deliver the value of key every interval seconds.

        Replaces any timer already running for key.
        """
        self.stop_notifications(key)
        self._timers[key] = self._scheduler.call_repeating(interval, self.notify, key)
        _LOGGER.debug("Started notifications for %s every %.3fs", key, interval)

    def stop_notifications(self, key: CharacteristicKey) -> None:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
            _LOGGER.debug("Stopped notifications for %s", key)

    def close(self) -> None:
        """Cancel every timer and drop every monitor."""
        for key in list(self._timers):
            self.stop_notifications(key)
        for listeners in self._monitors.values():
            listeners.clear()
        self._monitors.clear()
