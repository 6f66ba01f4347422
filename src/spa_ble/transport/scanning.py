"""Discoverable device catalog and the simulated discovery loop."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import Any

from ..exceptions import ScanInProgressError, SimulatedScanError, UnknownDeviceError
from ..models.device import DiscoverableDevice, ScanOptions
from ..models.results import Failure, Result, Success
from ..scheduler import Scheduler, TimerHandle
from ..settings import SimulationSettings

_LOGGER = logging.getLogger(__name__)

ScanListener = Callable[[Result[DiscoverableDevice]], None]


class ScanEngine:
    """Owns the discoverable devices and emits them while a scan runs.

    A scan first reports every device matching the UUID filter, then on each
    tick reports one randomly chosen registered device. Without
    allow_duplicates a tick's device is only reported with the configured
    duplicate admission probability; independently, a tick may report a
    SimulatedScanError.
    """

    def __init__(self, scheduler: Scheduler, settings: SimulationSettings):
        self._scheduler = scheduler
        self._settings = settings
        self._random = random.Random(settings.seed)
        self._devices: dict[str, DiscoverableDevice] = {}
        self._listener: ScanListener | None = None
        self._options = ScanOptions()
        self._uuids: list[str] | None = None
        self._timer: TimerHandle | None = None

    # Catalog

    def add(self, device: DiscoverableDevice) -> None:
        self._devices[device.id] = device
        _LOGGER.debug("Registered device %s (%s)", device.id, device.name)

    def remove(self, device_id: str) -> DiscoverableDevice:
        try:
            device = self._devices.pop(device_id)
        except KeyError:
            raise UnknownDeviceError(f"Device {device_id} not found") from None
        _LOGGER.debug("Removed device %s", device_id)
        return device

    def update(self, device_id: str, **changes: Any) -> DiscoverableDevice:
        """Apply a partial update to a registered device.

        The record is replaced, so earlier references keep the old values.
        """
        device = self._devices.get(device_id)
        if device is None:
            raise UnknownDeviceError(f"Device {device_id} not found")
        updated = device.updated(**changes)
        if updated.id != device_id:
            raise ValueError("A device update cannot change the device id")
        self._devices[device_id] = updated
        return updated

    def clear(self) -> None:
        self._devices.clear()

    def get(self, device_id: str) -> DiscoverableDevice | None:
        return self._devices.get(device_id)

    def devices(self) -> list[DiscoverableDevice]:
        return list(self._devices.values())

    # Scanning

    @property
    def is_scanning(self) -> bool:
        return self._listener is not None

    def start(
            self,
            uuids: list[str] | None,
            options: ScanOptions | None,
            listener: ScanListener,
    ) -> None:
        if self._listener is not None:
            raise ScanInProgressError("Scan already in progress")

        self._listener = listener
        self._options = options or ScanOptions()
        self._uuids = list(uuids) if uuids else None
        _LOGGER.debug(
            "Scan started (filter=%s, allow_duplicates=%s)",
            self._uuids,
            self._options.allow_duplicates,
        )

        for device in [d for d in self._devices.values() if d.advertises_any(self._uuids)]:
            # The listener may stop the scan from inside its callback
            if self._listener is None:
                return
            self._listener(Success(device))

        if self._listener is not None:
            self._timer = self._scheduler.call_repeating(self._settings.scan_interval, self._tick)

    def stop(self) -> None:
        was_scanning = self._listener is not None
        self._listener = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if was_scanning:
            _LOGGER.debug("Scan stopped")

    def _tick(self) -> None:
        if self._listener is None:
            return

        if self._devices:
            device = self._random.choice(list(self._devices.values()))
            admitted = (
                self._options.allow_duplicates
                or self._random.random() < self._settings.duplicate_admission_probability
            )
            if admitted:
                self._listener(Success(device))

        if self._listener is not None and self._random.random() < self._settings.scan_error_probability:
            self._listener(Failure(SimulatedScanError("Simulated scan error")))
