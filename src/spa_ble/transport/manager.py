"""Emulated BLE adapter facade."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from ..exceptions import (
    CommandRejectedError,
    DeviceNotFoundError,
    NotConnectableError,
    NotPoweredOnError,
    PoweredOffError,
    ServiceNotFoundError,
    ServicesNotDiscoveredError,
    SimulatedDisconnectionError,
)
from ..listeners import ListenerSet, Subscription
from ..models.device import DiscoverableDevice, ScanOptions
from ..models.enums import ConnectionEventKind, OperationKind, PowerState
from ..models.events import ConnectionEvent
from ..models.gatt import (
    Characteristic,
    CharacteristicKey,
    CharacteristicMetadata,
    Service,
    ServiceMetadata,
    normalize_uuid,
)
from ..models.outcomes import Accepted, Rejected, WriteOutcome
from ..scheduler import AsyncioScheduler, Scheduler
from ..settings import SimulationSettings
from .characteristics import CharacteristicStore, MonitorListener, WriteListener
from .connections import ConnectionListener, ConnectionManager, MtuListener
from .restoration import RestorationStore, RestoredState
from .scanning import ScanEngine, ScanListener

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[PowerState], None]
RestoreFunction = Callable[["RestoredState | None"], None]


class Peripheral(Protocol):
    """Simulated device logic bound to one device id.

    Writes to characteristics the peripheral handles are routed through it,
    and its values() are mirrored into the characteristic store.
    """

    @property
    def device_id(self) -> str: ...

    def handles(self, service_uuid: str, characteristic_uuid: str) -> bool: ...

    def handle_write(self, service_uuid: str, characteristic_uuid: str, value: str) -> WriteOutcome: ...

    def values(self) -> dict[tuple[str, str], str]: ...

    def on_connect(self) -> None: ...

    def on_disconnect(self) -> None: ...


class EmulatedBleManager:
    """In-process stand-in for a BLE central adapter.

    Exposes the surface of a mobile BLE manager (power state, scanning,
    connections, MTU, discovery, characteristic I/O) over simulated devices,
    with fault and latency injection for every operation.

    Usage:
        manager = EmulatedBleManager(SimulationSettings.deterministic())
        manager.add_device(DiscoverableDevice(id="AA:BB", name="Spa"))
        await manager.connect_to_device("AA:BB", request_mtu=247)
    """

    def __init__(
            self,
            settings: SimulationSettings | None = None,
            *,
            scheduler: Scheduler | None = None,
            restoration_store: RestorationStore | None = None,
            restore_state_identifier: str | None = None,
            restore_state_function: RestoreFunction | None = None,
    ):
        """Initialize the emulated adapter.

        Args:
            settings: Emulator tunables (default: SimulationSettings())
            scheduler: Clock and timers (default: AsyncioScheduler())
            restoration_store: Store shared between managers for state
                restoration (default: a private store)
            restore_state_identifier: Key under which connected devices are
                saved after every connection change
            restore_state_function: Called with the stored RestoredState (or
                None) settings.restoration_delay seconds after construction;
                requires restore_state_identifier
        """
        self.settings = settings or SimulationSettings()
        self._scheduler = scheduler or AsyncioScheduler()
        self._state = self.settings.initial_state
        self._state_listeners: ListenerSet[StateListener] = ListenerSet()

        self._scanner = ScanEngine(self._scheduler, self.settings)
        self._connections = ConnectionManager(self.settings.default_max_mtu)
        self._characteristics = CharacteristicStore(self._scheduler, self._characteristic_metadata)

        self._service_metadata: dict[str, list[ServiceMetadata]] = {}
        self._discovered: dict[str, list[Service]] = {}
        self._peripherals: dict[str, Peripheral] = {}

        self._restoration_store = restoration_store or RestorationStore()
        self._restore_identifier = restore_state_identifier
        if restore_state_identifier and restore_state_function is not None:
            self._scheduler.call_later(
                self.settings.restoration_delay,
                self._restore,
                restore_state_function,
            )

    async def __aenter__(self) -> EmulatedBleManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    # Power state

    @property
    def current_state(self) -> PowerState:
        return self._state

    async def state(self) -> PowerState:
        return self._state

    def set_state(self, new_state: PowerState | str) -> None:
        """Change the adapter power state.

        Leaving PoweredOn stops a running scan; entering PoweredOff drops
        every connection with a PoweredOffError.
        """
        new_state = PowerState(new_state)
        previous, self._state = self._state, new_state
        _LOGGER.debug("Adapter state %s -> %s", previous.value, new_state.value)
        self._state_listeners.emit(new_state)

        if new_state is not PowerState.POWERED_ON:
            self._scanner.stop()
        if new_state is PowerState.POWERED_OFF:
            for device_id in self._connections.connected_ids():
                self.simulate_device_disconnection(device_id, PoweredOffError("Bluetooth powered off"))

    def on_state_change(self, listener: StateListener, emit_current_state: bool = False) -> Subscription:
        """Observe power state changes.

        Args:
            listener: Called with each new PowerState
            emit_current_state: Also deliver the current state on the next
                scheduler turn, unless the subscription is removed first
        """
        subscription = self._state_listeners.add(listener)
        if emit_current_state:
            self._scheduler.call_soon(self._replay_state, subscription, listener)
        return subscription

    def _replay_state(self, subscription: Subscription, listener: StateListener) -> None:
        if subscription.active:
            listener(self._state)

    def _require_powered_on(self) -> None:
        if self._state is not PowerState.POWERED_ON:
            raise NotPoweredOnError(f"Bluetooth is {self._state.value}")

    # Device catalog

    def add_device(self, device: DiscoverableDevice) -> None:
        self._scanner.add(device)

    def remove_device(self, device_id: str) -> DiscoverableDevice:
        """Remove a device from the catalog.

        Raises:
            UnknownDeviceError: If device_id is not registered
        """
        return self._scanner.remove(device_id)

    def update_device(self, device_id: str, **changes: Any) -> DiscoverableDevice:
        """Apply a partial update to a registered device.

        Raises:
            UnknownDeviceError: If device_id is not registered
        """
        return self._scanner.update(device_id, **changes)

    def clear_devices(self) -> None:
        self._scanner.clear()

    def get_device(self, device_id: str) -> DiscoverableDevice | None:
        return self._scanner.get(device_id)

    def devices(self) -> list[DiscoverableDevice]:
        return self._scanner.devices()

    def _require_device(self, device_id: str) -> DiscoverableDevice:
        device = self._scanner.get(device_id)
        if device is None:
            raise DeviceNotFoundError(f"Device {device_id} not found")
        return device

    # Scanning

    @property
    def is_scanning(self) -> bool:
        return self._scanner.is_scanning

    def start_device_scan(
            self,
            uuids: list[str] | None,
            options: ScanOptions | None,
            listener: ScanListener,
    ) -> None:
        """Start reporting discoverable devices to listener.

        Raises:
            ScanInProgressError: If a scan is already running
            NotPoweredOnError: If the adapter is not powered on
        """
        if not self._scanner.is_scanning:
            self._require_powered_on()
        self._scanner.start(uuids, options, listener)

    def stop_device_scan(self) -> None:
        self._scanner.stop()

    # Connections

    async def connect_to_device(
            self,
            device_id: str,
            *,
            request_mtu: int | None = None,
            auto_connect: bool = False,
    ) -> DiscoverableDevice:
        """Connect to a registered device.

        Args:
            device_id: Device to connect
            request_mtu: MTU to negotiate during the connection
            auto_connect: Accepted for API compatibility; emulated links only
                drop when told to

        Returns:
            The connected device record

        Raises:
            NotPoweredOnError: If the adapter is not powered on
            DeviceNotFoundError: If device_id is not registered
            NotConnectableError: If the device is not connectable
        """
        self._require_powered_on()
        device = self._require_device(device_id)
        if not device.is_connectable:
            raise NotConnectableError(f"Device {device_id} is not connectable")
        error = self._connections.connection_error(device_id)
        if error is not None:
            raise error.with_traceback(None)

        _LOGGER.debug("Connecting to %s (request_mtu=%s, auto_connect=%s)", device_id, request_mtu, auto_connect)
        delay = self._connections.delay(device_id)
        if delay > 0:
            await self._scheduler.sleep(delay)
            # Power or catalog may have changed while waiting
            self._require_powered_on()
            device = self._require_device(device_id)

        if request_mtu is not None:
            self._apply_mtu(device, request_mtu)

        self._connections.mark_connected(device_id)
        peripheral = self._peripherals.get(device_id)
        if peripheral is not None:
            peripheral.on_connect()
            self._sync_peripheral(peripheral, notify=True)

        self._connections.notify(device_id, ConnectionEvent(ConnectionEventKind.CONNECTED, device))
        self._save_restoration_state()
        _LOGGER.info("Connected to %s (mtu=%d)", device_id, device.mtu)
        return device

    async def cancel_device_connection(self, device_id: str) -> DiscoverableDevice:
        """Disconnect a connected device.

        Listeners receive the armed disconnection error, if any.

        Raises:
            DeviceNotFoundError: If device_id is not registered
            NotConnectedError: If the device is not connected
        """
        device = self._require_device(device_id)
        self._connections.require_connected(device_id)
        self._drop_link(device_id, self._connections.disconnection_error(device_id))
        return device

    def simulate_device_disconnection(self, device_id: str, error: BaseException | None = None) -> None:
        """Drop the link as if the device went away; no-op if not connected."""
        if not self._connections.is_connected(device_id):
            return
        if error is None:
            error = SimulatedDisconnectionError("Simulated disconnection")
        self._drop_link(device_id, error)

    def _drop_link(self, device_id: str, error: BaseException | None) -> None:
        self._connections.mark_disconnected(device_id)
        self._discovered.pop(device_id, None)
        peripheral = self._peripherals.get(device_id)
        if peripheral is not None:
            peripheral.on_disconnect()
            self._sync_peripheral(peripheral, notify=True)

        event = ConnectionEvent(ConnectionEventKind.DISCONNECTED, self._scanner.get(device_id), error)
        self._connections.notify(device_id, event)
        self._save_restoration_state()
        if error is None:
            _LOGGER.info("Disconnected from %s", device_id)
        else:
            _LOGGER.info("Disconnected from %s: %s", device_id, error)

    def is_device_connected(self, device_id: str) -> bool:
        return self._connections.is_connected(device_id)

    def connected_devices(self) -> list[DiscoverableDevice]:
        devices = []
        for device_id in self._connections.connected_ids():
            device = self._scanner.get(device_id)
            if device is not None:
                devices.append(device)
        return devices

    def on_device_disconnected(self, device_id: str, listener: ConnectionListener) -> Subscription:
        """Observe connects and disconnects of device_id as ConnectionEvents."""
        return self._connections.on_connection_event(device_id, listener)

    # Connection faults

    def simulate_connection_error(self, device_id: str, error: BaseException) -> None:
        self._connections.set_connection_error(device_id, error)

    def clear_connection_error(self, device_id: str) -> None:
        self._connections.clear_connection_error(device_id)

    def simulate_disconnection_error(self, device_id: str, error: BaseException) -> None:
        self._connections.set_disconnection_error(device_id, error)

    def clear_disconnection_error(self, device_id: str) -> None:
        self._connections.clear_disconnection_error(device_id)

    def set_connection_delay(self, device_id: str, delay: float) -> None:
        self._connections.set_delay(device_id, delay)

    def clear_connection_delay(self, device_id: str) -> None:
        self._connections.clear_delay(device_id)

    # MTU

    def set_device_max_mtu(self, device_id: str, max_mtu: int) -> None:
        self._connections.set_max_mtu(device_id, max_mtu)

    async def request_mtu_for_device(self, device_id: str, mtu: int) -> DiscoverableDevice:
        """Negotiate the MTU of a connected device.

        Returns:
            The device record with mtu set to min(mtu, device max)

        Raises:
            NotConnectedError: If the device is not connected
            DeviceNotFoundError: If device_id is not registered
        """
        self._connections.require_connected(device_id)
        device = self._require_device(device_id)
        self._apply_mtu(device, mtu)
        return device

    def on_mtu_changed(self, device_id: str, listener: MtuListener) -> Subscription:
        return self._connections.on_mtu_changed(device_id, listener)

    def _apply_mtu(self, device: DiscoverableDevice, requested: int) -> None:
        device.mtu = self._connections.negotiate_mtu(device.id, requested)
        _LOGGER.debug("MTU for %s negotiated to %d (requested %d)", device.id, device.mtu, requested)
        self._connections.notify_mtu(device.id, device.mtu)

    # Service discovery

    def set_device_services(self, device_id: str, services: Iterable[ServiceMetadata]) -> None:
        self._service_metadata[device_id] = list(services)

    async def discover_all_services_and_characteristics_for_device(self, device_id: str) -> DiscoverableDevice:
        """Populate the discovered services of a connected device.

        Raises:
            NotConnectedError: If the device is not connected
            DeviceNotFoundError: If device_id is not registered
        """
        self._connections.require_connected(device_id)
        device = self._require_device(device_id)
        services = [Service(uuid=s.uuid, device_id=device_id) for s in self._service_metadata.get(device_id, [])]
        self._discovered[device_id] = services
        _LOGGER.debug("Discovered %d service(s) on %s", len(services), device_id)
        return device

    async def services_for_device(self, device_id: str) -> list[Service]:
        """Services found by the last discovery on the current connection.

        Raises:
            ServicesNotDiscoveredError: If discovery has not run
        """
        services = self._discovered.get(device_id)
        if services is None:
            raise ServicesNotDiscoveredError(f"Services not discovered for device {device_id}")
        return list(services)

    async def characteristics_for_service(self, service_uuid: str, device_id: str) -> list[CharacteristicMetadata]:
        """Characteristic metadata of one service.

        Raises:
            ServiceNotFoundError: If the service is not part of the device metadata
        """
        service = self._find_service(device_id, service_uuid)
        if service is None:
            raise ServiceNotFoundError(f"Service {service_uuid} not found on device {device_id}")
        return list(service.characteristics)

    def _find_service(self, device_id: str, service_uuid: str) -> ServiceMetadata | None:
        wanted = normalize_uuid(service_uuid)
        for service in self._service_metadata.get(device_id, []):
            if service.uuid == wanted:
                return service
        return None

    def _characteristic_metadata(self, key: CharacteristicKey) -> CharacteristicMetadata | None:
        service = self._find_service(key.device_id, key.service_uuid)
        return service.find(key.characteristic_uuid) if service is not None else None

    # Characteristic I/O

    async def read_characteristic_for_device(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
    ) -> Characteristic:
        """Read the stored value of a characteristic.

        The value and any armed read error are captured when the read starts
        and delivered after the configured read delay.

        Raises:
            NotConnectedError: If the device is not connected
        """
        self._connections.require_connected(device_id)
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        error = self._characteristics.error(OperationKind.READ, key)
        snapshot = self._characteristics.snapshot(key) if error is None else None

        await self._operation_delay(OperationKind.READ, key)
        if error is not None:
            raise error.with_traceback(None)
        return snapshot

    async def write_characteristic_with_response_for_device(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            value: str,
    ) -> Characteristic:
        """Write a base64 value and wait for the device's response.

        Raises:
            NotConnectedError: If the device is not connected
            CommandRejectedError: If an attached peripheral refuses the write
            InvalidValueError: If a peripheral cannot decode value
        """
        return await self._write(
            OperationKind.WRITE_WITH_RESPONSE, device_id, service_uuid, characteristic_uuid, value
        )

    async def write_characteristic_without_response_for_device(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            value: str,
    ) -> Characteristic:
        """Write a base64 value without a response; refused writes are dropped."""
        return await self._write(
            OperationKind.WRITE_WITHOUT_RESPONSE, device_id, service_uuid, characteristic_uuid, value
        )

    async def _write(
            self,
            kind: OperationKind,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            value: str,
    ) -> Characteristic:
        self._connections.require_connected(device_id)
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        error = self._characteristics.error(kind, key)
        if error is not None:
            await self._operation_delay(kind, key)
            raise error.with_traceback(None)

        peripheral = self._peripherals.get(device_id)
        if peripheral is None or not peripheral.handles(key.service_uuid, key.characteristic_uuid):
            self._characteristics.set_value(key, value)
            self._characteristics.fire_write(key, value)
            await self._operation_delay(kind, key)
            return self._characteristics.snapshot(key, value)

        outcome = peripheral.handle_write(key.service_uuid, key.characteristic_uuid, value)
        if isinstance(outcome, Rejected):
            await self._operation_delay(kind, key)
            if kind is OperationKind.WRITE_WITH_RESPONSE:
                raise CommandRejectedError(
                    f"{outcome.characteristic.value} write rejected: {outcome.reason}"
                )
            _LOGGER.warning(
                "Dropped write without response to %s on %s: %s",
                outcome.characteristic.value,
                device_id,
                outcome.reason,
            )
            return self._characteristics.snapshot(key)

        self._characteristics.fire_write(key, value)
        self._sync_peripheral(peripheral, notify=True)
        if isinstance(outcome, Accepted) and outcome.disconnect:
            self.simulate_device_disconnection(
                device_id, SimulatedDisconnectionError("Disconnect requested by device")
            )
        await self._operation_delay(kind, key)
        return self._characteristics.snapshot(key, value)

    async def _operation_delay(self, kind: OperationKind, key: CharacteristicKey) -> None:
        delay = self._characteristics.delay(kind, key)
        if delay > 0:
            await self._scheduler.sleep(delay)

    def monitor_characteristic_for_device(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            listener: MonitorListener,
    ) -> Subscription:
        """Subscribe to value updates of a characteristic.

        The current value, if any, is delivered on the next scheduler turn.

        Raises:
            NotConnectedError: If the device is not connected
        """
        self._connections.require_connected(device_id)
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        return self._characteristics.add_monitor(key, listener)

    def set_characteristic_value(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            value: str,
            notify: bool = True,
    ) -> int:
        """Set a characteristic value from the device side.

        Returns:
            Number of monitors notified
        """
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        return self._characteristics.set_value(key, value, notify=notify)

    def set_characteristic_value_for_reading(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            value: str,
    ) -> None:
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        self._characteristics.set_value(key, value)

    def start_simulated_notifications(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            interval: float = 1.0,
    ) -> None:
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        self._characteristics.start_notifications(key, interval)

    def stop_simulated_notifications(self, device_id: str, service_uuid: str, characteristic_uuid: str) -> None:
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        self._characteristics.stop_notifications(key)

    def simulate_characteristic_error(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            error: BaseException,
    ) -> int:
        """Deliver Failure(error) to every monitor; the stored value is kept."""
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        return self._characteristics.notify_error(key, error)

    def on_characteristic_write(
            self,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            listener: WriteListener,
    ) -> Subscription:
        """Observe successful writes; replaces any earlier observer for the key."""
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        return self._characteristics.on_write(key, listener)

    # Characteristic faults

    def _set_fault(
            self,
            kind: OperationKind,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            error: BaseException | None,
    ) -> None:
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        if error is None:
            self._characteristics.clear_error(kind, key)
        else:
            self._characteristics.set_error(kind, key, error)

    def _set_latency(
            self,
            kind: OperationKind,
            device_id: str,
            service_uuid: str,
            characteristic_uuid: str,
            delay: float | None,
    ) -> None:
        key = CharacteristicKey.of(device_id, service_uuid, characteristic_uuid)
        if delay is None:
            self._characteristics.clear_delay(kind, key)
        else:
            self._characteristics.set_delay(kind, key, delay)

    def simulate_characteristic_read_error(
            self, device_id: str, service_uuid: str, characteristic_uuid: str, error: BaseException
    ) -> None:
        self._set_fault(OperationKind.READ, device_id, service_uuid, characteristic_uuid, error)

    def clear_characteristic_read_error(self, device_id: str, service_uuid: str, characteristic_uuid: str) -> None:
        self._set_fault(OperationKind.READ, device_id, service_uuid, characteristic_uuid, None)

    def set_characteristic_read_delay(
            self, device_id: str, service_uuid: str, characteristic_uuid: str, delay: float
    ) -> None:
        self._set_latency(OperationKind.READ, device_id, service_uuid, characteristic_uuid, delay)

    def clear_characteristic_read_delay(self, device_id: str, service_uuid: str, characteristic_uuid: str) -> None:
        self._set_latency(OperationKind.READ, device_id, service_uuid, characteristic_uuid, None)

    def simulate_write_with_response_error(
            self, device_id: str, service_uuid: str, characteristic_uuid: str, error: BaseException
    ) -> None:
        self._set_fault(OperationKind.WRITE_WITH_RESPONSE, device_id, service_uuid, characteristic_uuid, error)

    def clear_write_with_response_error(self, device_id: str, service_uuid: str, characteristic_uuid: str) -> None:
        self._set_fault(OperationKind.WRITE_WITH_RESPONSE, device_id, service_uuid, characteristic_uuid, None)

    def simulate_write_without_response_error(
            self, device_id: str, service_uuid: str, characteristic_uuid: str, error: BaseException
    ) -> None:
        self._set_fault(OperationKind.WRITE_WITHOUT_RESPONSE, device_id, service_uuid, characteristic_uuid, error)

    def clear_write_without_response_error(
            self, device_id: str, service_uuid: str, characteristic_uuid: str
    ) -> None:
        self._set_fault(OperationKind.WRITE_WITHOUT_RESPONSE, device_id, service_uuid, characteristic_uuid, None)

    def set_write_with_response_delay(
            self, device_id: str, service_uuid: str, characteristic_uuid: str, delay: float
    ) -> None:
        self._set_latency(OperationKind.WRITE_WITH_RESPONSE, device_id, service_uuid, characteristic_uuid, delay)

    def clear_write_with_response_delay(self, device_id: str, service_uuid: str, characteristic_uuid: str) -> None:
        self._set_latency(OperationKind.WRITE_WITH_RESPONSE, device_id, service_uuid, characteristic_uuid, None)

    def set_write_without_response_delay(
            self, device_id: str, service_uuid: str, characteristic_uuid: str, delay: float
    ) -> None:
        self._set_latency(OperationKind.WRITE_WITHOUT_RESPONSE, device_id, service_uuid, characteristic_uuid, delay)

    def clear_write_without_response_delay(
            self, device_id: str, service_uuid: str, characteristic_uuid: str
    ) -> None:
        self._set_latency(OperationKind.WRITE_WITHOUT_RESPONSE, device_id, service_uuid, characteristic_uuid, None)

    # Peripherals

    def attach_peripheral(self, peripheral: Peripheral) -> None:
        """Route writes for peripheral.device_id through peripheral.

        The peripheral's current values are copied into the store without
        notifying monitors.
        """
        self._peripherals[peripheral.device_id] = peripheral
        self._sync_peripheral(peripheral, notify=False)
        _LOGGER.debug("Attached peripheral for %s", peripheral.device_id)

    def detach_peripheral(self, device_id: str) -> Peripheral | None:
        return self._peripherals.pop(device_id, None)

    def _sync_peripheral(self, peripheral: Peripheral, notify: bool) -> int:
        """Mirror changed peripheral values into the store.

        Returns:
            Number of characteristics whose value changed
        """
        changed = 0
        for (service_uuid, characteristic_uuid), value in peripheral.values().items():
            key = CharacteristicKey.of(peripheral.device_id, service_uuid, characteristic_uuid)
            if self._characteristics.value(key) != value:
                self._characteristics.set_value(key, value, notify=notify)
                changed += 1
        return changed

    # Restoration

    def _save_restoration_state(self) -> None:
        if not self._restore_identifier:
            return
        self._restoration_store.set(self._restore_identifier, RestoredState(self.connected_devices()))

    def _restore(self, restore_state_function: RestoreFunction) -> None:
        state = self._restoration_store.get(self._restore_identifier)
        _LOGGER.debug("Restoring state %s: %s", self._restore_identifier, "found" if state else "none")
        restore_state_function(state)

    def close(self) -> None:
        """Stop the scan and every notification timer."""
        self._scanner.stop()
        self._characteristics.close()
