"""BleakClient-shaped adapter over an EmulatedBleManager."""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from typing import Union

from ..exceptions import CharacteristicNotFoundError, NotConnectedError
from ..listeners import Subscription
from ..models.device import DiscoverableDevice
from ..models.events import ConnectionEvent
from ..models.gatt import Characteristic, normalize_uuid
from ..models.results import Result, Success
from .manager import EmulatedBleManager

_LOGGER = logging.getLogger(__name__)

NotifyCallback = Callable[[str, bytearray], None]
ErrorCallback = Callable[[BaseException], None]
DisconnectedCallback = Callable[["EmulatedBleakClient"], None]
Payload = Union[bytes, bytearray, memoryview]


def _decode(value: str | None) -> bytearray:
    if not value:
        return bytearray()
    return bytearray(base64.b64decode(value))


class EmulatedBleakClient:
    """Drop-in for the parts of bleak.BleakClient that application code uses.

    Data crosses this adapter as bytes and is stored base64-encoded in the
    manager. Characteristics are addressed by UUID and resolved to their
    service through the metadata discovered at connect time.

    Usage:
        async with EmulatedBleakClient(mac, manager) as client:
            await client.write_gatt_char(TEMPERATURE_UUID, b"38")
            data = await client.read_gatt_char(TEMPERATURE_UUID)
    """

    def __init__(
            self,
            address_or_device: str | DiscoverableDevice,
            manager: EmulatedBleManager,
            *,
            disconnected_callback: DisconnectedCallback | None = None,
            request_mtu: int | None = None,
    ):
        """Initialize client.

        Args:
            address_or_device: Device id or a device record from a scan
            manager: Emulated adapter that owns the device
            disconnected_callback: Called with this client when the link drops
            request_mtu: MTU to negotiate on connect (default: none)
        """
        if isinstance(address_or_device, DiscoverableDevice):
            self._address = address_or_device.id
        else:
            self._address = address_or_device
        self._manager = manager
        self._disconnected_callback = disconnected_callback
        self._request_mtu = request_mtu

        self._connection_subscription: Subscription | None = None
        self._notifications: dict[str, Subscription] = {}
        self._services: dict[str, str] = {}

    async def __aenter__(self) -> EmulatedBleakClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    @property
    def address(self) -> str:
        return self._address

    @property
    def is_connected(self) -> bool:
        return self._manager.is_device_connected(self._address)

    @property
    def mtu_size(self) -> int:
        device = self._manager.get_device(self._address)
        return device.mtu if device is not None else 0

    def set_disconnected_callback(self, callback: DisconnectedCallback | None) -> None:
        self._disconnected_callback = callback

    async def connect(self) -> bool:
        """Connect and discover services.

        Raises:
            SpaBleError: Any precondition or injected connection failure
        """
        if self.is_connected and self._connection_subscription is not None:
            return True

        await self._manager.connect_to_device(self._address, request_mtu=self._request_mtu)
        self._connection_subscription = self._manager.on_device_disconnected(
            self._address, self._on_connection_event
        )
        await self._manager.discover_all_services_and_characteristics_for_device(self._address)
        await self._resolve_services()
        _LOGGER.debug("Client connected to %s (%d characteristics)", self._address, len(self._services))
        return True

    async def disconnect(self) -> bool:
        if not self.is_connected:
            self._release()
            return True
        await self._manager.cancel_device_connection(self._address)
        return True

    async def _resolve_services(self) -> None:
        self._services.clear()
        for service in await self._manager.services_for_device(self._address):
            characteristics = await self._manager.characteristics_for_service(service.uuid, self._address)
            for characteristic in characteristics:
                self._services[characteristic.uuid] = service.uuid

    def _on_connection_event(self, event: ConnectionEvent) -> None:
        if event.connected:
            return
        self._release()
        if self._disconnected_callback is not None:
            self._disconnected_callback(self)

    def _release(self) -> None:
        for subscription in self._notifications.values():
            subscription.remove()
        self._notifications.clear()
        self._services.clear()
        if self._connection_subscription is not None:
            self._connection_subscription.remove()
            self._connection_subscription = None

    def _service_for(self, char_specifier: str) -> tuple[str, str]:
        if not self.is_connected:
            raise NotConnectedError(f"Device {self._address} is not connected")
        uuid = normalize_uuid(char_specifier)
        service_uuid = self._services.get(uuid)
        if service_uuid is None:
            raise CharacteristicNotFoundError(f"Characteristic {char_specifier} was not found")
        return service_uuid, uuid

    async def read_gatt_char(self, char_specifier: str) -> bytearray:
        service_uuid, uuid = self._service_for(char_specifier)
        characteristic = await self._manager.read_characteristic_for_device(self._address, service_uuid, uuid)
        return _decode(characteristic.value)

    async def write_gatt_char(self, char_specifier: str, data: Payload, response: bool = True) -> None:
        """Write data to a characteristic.

        Args:
            char_specifier: Characteristic UUID
            data: Raw bytes to write
            response: Wait for a write response (refused writes raise
                CommandRejectedError) or fire and forget
        """
        service_uuid, uuid = self._service_for(char_specifier)
        value = base64.b64encode(bytes(data)).decode("ascii")
        if response:
            await self._manager.write_characteristic_with_response_for_device(
                self._address, service_uuid, uuid, value
            )
        else:
            await self._manager.write_characteristic_without_response_for_device(
                self._address, service_uuid, uuid, value
            )

    async def start_notify(
            self,
            char_specifier: str,
            callback: NotifyCallback,
            error_callback: ErrorCallback | None = None,
    ) -> None:
        """Subscribe to notifications from a characteristic.

        Args:
            char_specifier: Characteristic UUID
            callback: Called as callback(uuid, data) for every update
            error_callback: Called with monitor errors; logged when omitted
        """
        service_uuid, uuid = self._service_for(char_specifier)

        def on_result(result: Result[Characteristic]) -> None:
            if isinstance(result, Success):
                callback(uuid, _decode(result.value.value))
            elif error_callback is not None:
                error_callback(result.error)
            else:
                _LOGGER.warning("Notification error on %s/%s: %s", self._address, uuid, result.error)

        await self.stop_notify(uuid)
        self._notifications[uuid] = self._manager.monitor_characteristic_for_device(
            self._address, service_uuid, uuid, on_result
        )

    async def stop_notify(self, char_specifier: str) -> None:
        subscription = self._notifications.pop(normalize_uuid(char_specifier), None)
        if subscription is not None:
            subscription.remove()
