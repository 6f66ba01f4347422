"""Registry of simulated spa controllers sharing one emulated adapter."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Union

from .exceptions import InvalidValueError, UnknownDeviceError
from .listeners import ListenerSet, Subscription
from .models.enums import SpaCharacteristic
from .models.events import (
    COMMAND_EVENT,
    CONNECT_COMMAND,
    DISCONNECT_COMMAND,
    STATE_CHANGE_EVENT,
    ControlCommand,
    DeviceEvent,
)
from .protocol.codec import encode_value
from .protocol.constants import DEFAULT_AREA, DEFAULT_RSSI
from .protocol.device import SpaDevice
from .protocol.peripheral import SpaPeripheral
from .transport.manager import EmulatedBleManager

_LOGGER = logging.getLogger(__name__)

EventListener = Callable[[DeviceEvent], None]
RelayMessage = Union[Mapping[str, Any], str, bytes]


class SpaSimulator:
    """Hosts SpaDevices on an EmulatedBleManager and executes relay commands.

    Every registered device is advertised by the manager, exposes the spa
    GATT service and receives writes through a SpaPeripheral.

    Usage:
        simulator = SpaSimulator()
        simulator.add_device("AA:BB:CC:DD:EE:FF", area="garden")
        await simulator.handle_message(
            {"event": "command", "device": "AA:BB:CC:DD:EE:FF", "characteristic": "CONNECT"}
        )
    """

    def __init__(self, manager: EmulatedBleManager | None = None):
        self.manager = manager or EmulatedBleManager()
        self._peripherals: dict[str, SpaPeripheral] = {}
        self._listeners: ListenerSet[EventListener] = ListenerSet()

    # Registry

    def add_device(self, mac: str, area: str = DEFAULT_AREA, rssi: int = DEFAULT_RSSI) -> SpaDevice:
        """Create a factory-fresh device and make it discoverable.

        A device already registered under mac is replaced.
        """
        if mac in self._peripherals:
            self._unregister(mac)
        device = SpaDevice(mac, area, rssi)
        self._register(device)
        _LOGGER.debug("Added spa device %s in area %s", mac, area)
        return device

    def find(self, mac: str) -> SpaDevice | None:
        peripheral = self._peripherals.get(mac)
        return peripheral.device if peripheral is not None else None

    def all(self) -> list[SpaDevice]:
        return [peripheral.device for peripheral in self._peripherals.values()]

    def remove(self, mac: str) -> SpaDevice:
        """Drop a device; an open link is disconnected first.

        Raises:
            UnknownDeviceError: If mac is not registered
        """
        device = self._require(mac).device
        self._unregister(mac)
        _LOGGER.debug("Removed spa device %s", mac)
        return device

    def reset(self, mac: str) -> SpaDevice:
        """Replace a device with a factory-fresh one at the same area and rssi.

        Raises:
            UnknownDeviceError: If mac is not registered
        """
        old = self._require(mac).device
        return self.add_device(mac, old.area, old.rssi)

    def _require(self, mac: str) -> SpaPeripheral:
        peripheral = self._peripherals.get(mac)
        if peripheral is None:
            raise UnknownDeviceError(f"Spa device {mac} not found")
        return peripheral

    def _register(self, device: SpaDevice) -> None:
        peripheral = SpaPeripheral(device, mtu=self.manager.settings.default_mtu)
        self.manager.add_device(peripheral.advertisement())
        self.manager.set_device_services(device.mac, peripheral.services())
        self.manager.attach_peripheral(peripheral)
        self._peripherals[device.mac] = peripheral

    def _unregister(self, mac: str) -> None:
        self.manager.simulate_device_disconnection(mac)
        self.manager.detach_peripheral(mac)
        if self.manager.get_device(mac) is not None:
            self.manager.remove_device(mac)
        del self._peripherals[mac]

    # Relay

    def on_event(self, listener: EventListener) -> Subscription:
        return self._listeners.add(listener)

    async def execute(self, command: ControlCommand) -> SpaDevice:
        """Run one relay command against the manager.

        CONNECT and DISCONNECT drive the link; anything else is a
        write-with-response of command.value to the named characteristic.
        Listeners then get a state_change event carrying the stored value of
        that characteristic, or the connection phase for CONNECT and
        DISCONNECT.

        Returns:
            The device the command targeted

        Raises:
            UnknownDeviceError: If the device is not registered
            InvalidValueError: If the characteristic name is unknown
            SpaBleError: Whatever the manager raises for the operation
        """
        peripheral = self._require(command.device)
        device = peripheral.device
        mac = command.device

        if command.characteristic == CONNECT_COMMAND:
            await self.manager.connect_to_device(mac)
            value = device.state.connection_phase.value
        elif command.characteristic == DISCONNECT_COMMAND:
            await self.manager.cancel_device_connection(mac)
            value = device.state.connection_phase.value
        else:
            try:
                characteristic = SpaCharacteristic(command.characteristic)
            except ValueError:
                raise InvalidValueError(f"Unknown characteristic {command.characteristic!r}") from None
            service_uuid, characteristic_uuid = peripheral.uuid_for(characteristic)
            await self.manager.write_characteristic_with_response_for_device(
                mac, service_uuid, characteristic_uuid, encode_value(command.value)
            )
            value = device.value(characteristic)

        self._listeners.emit(DeviceEvent(
            event=STATE_CHANGE_EVENT,
            device=mac,
            characteristic=command.characteristic,
            value=value,
        ))
        return device

    async def handle_message(self, message: RelayMessage) -> SpaDevice | None:
        """Parse and execute one inbound relay message.

        Only "command" events are executed; other events, such as echoed
        state changes, are ignored. Malformed messages are logged and dropped.

        Args:
            message: Decoded mapping, or JSON text

        Returns:
            The targeted device, or None if the message was dropped
        """
        try:
            if isinstance(message, (str, bytes)):
                message = json.loads(message)
            if not isinstance(message, Mapping):
                raise ValueError("relay message must be a JSON object")
            event = message.get("event")
            if event != COMMAND_EVENT:
                _LOGGER.debug("Ignored relay %r event for %s", event, message.get("device"))
                return None
            command = ControlCommand.from_mapping(message)
        except ValueError as e:
            _LOGGER.warning("Dropped malformed relay message: %s", e)
            return None
        return await self.execute(command)
