"""Binds a SpaDevice to the emulated transport."""

from __future__ import annotations

from ..models.device import DEFAULT_MTU, DiscoverableDevice
from ..models.enums import SpaCharacteristic
from ..models.gatt import CharacteristicMetadata, ServiceMetadata, normalize_uuid
from ..models.outcomes import WriteOutcome
from .codec import decode_value, encode_value
from .constants import CHARACTERISTIC_UUIDS, SERVICE_UUID_OPERATION
from .device import SpaDevice

# (readable, write with response, write without response, notifiable)
_CAPABILITIES: dict[SpaCharacteristic, tuple[bool, bool, bool, bool]] = {
    SpaCharacteristic.MMODE: (True, True, True, True),
    SpaCharacteristic.MCODE: (False, True, True, False),
    SpaCharacteristic.BTNAME: (True, True, False, False),
    SpaCharacteristic.TEMPERATURE: (True, True, True, True),
    SpaCharacteristic.TIME: (True, True, False, False),
    SpaCharacteristic.SESSION: (True, True, True, True),
    SpaCharacteristic.WIFICREDS: (False, True, False, False),
    SpaCharacteristic.VERSION: (True, False, False, False),
    SpaCharacteristic.WIFIMAC: (True, False, False, False),
}


def spa_service_metadata() -> ServiceMetadata:
    """GATT layout of the spa operation service."""
    characteristics = []
    for characteristic, uuid in CHARACTERISTIC_UUIDS.items():
        readable, with_response, without_response, notifiable = _CAPABILITIES[characteristic]
        characteristics.append(CharacteristicMetadata(
            uuid=uuid,
            is_readable=readable,
            is_writable_with_response=with_response,
            is_writable_without_response=without_response,
            is_notifiable=notifiable,
        ))
    return ServiceMetadata(uuid=SERVICE_UUID_OPERATION, characteristics=tuple(characteristics))


class SpaPeripheral:
    """Transport-side view of a SpaDevice.

    Values cross the transport base64-encoded and keyed by normalized
    (service UUID, characteristic UUID).
    """

    def __init__(self, device: SpaDevice, mtu: int = DEFAULT_MTU):
        self.device = device
        self._mtu = mtu
        self._service_uuid = normalize_uuid(SERVICE_UUID_OPERATION)
        self._by_uuid = {normalize_uuid(uuid): c for c, uuid in CHARACTERISTIC_UUIDS.items()}
        self._uuid_of = {c: uuid for uuid, c in self._by_uuid.items()}

    @property
    def device_id(self) -> str:
        return self.device.mac

    def advertisement(self) -> DiscoverableDevice:
        return DiscoverableDevice(
            id=self.device.mac,
            name=self.device.value(SpaCharacteristic.BTNAME),
            rssi=self.device.rssi,
            mtu=self._mtu,
            service_uuids=[self._service_uuid],
        )

    def services(self) -> list[ServiceMetadata]:
        return [spa_service_metadata()]

    def uuid_for(self, characteristic: SpaCharacteristic | str) -> tuple[str, str]:
        """Return (service UUID, characteristic UUID) for a named characteristic."""
        return self._service_uuid, self._uuid_of[SpaCharacteristic(characteristic)]

    def characteristic_for(self, service_uuid: str, characteristic_uuid: str) -> SpaCharacteristic | None:
        if normalize_uuid(service_uuid) != self._service_uuid:
            return None
        return self._by_uuid.get(normalize_uuid(characteristic_uuid))

    def handles(self, service_uuid: str, characteristic_uuid: str) -> bool:
        return self.characteristic_for(service_uuid, characteristic_uuid) is not None

    def handle_write(self, service_uuid: str, characteristic_uuid: str, value: str) -> WriteOutcome:
        """Decode a base64 transport value and apply it to the device.

        Raises:
            InvalidValueError: If value is not valid base64 text
            KeyError: If the characteristic is not part of the spa service
        """
        characteristic = self.characteristic_for(service_uuid, characteristic_uuid)
        if characteristic is None:
            raise KeyError(f"{service_uuid}/{characteristic_uuid} is not a spa characteristic")
        return self.device.handle_write(characteristic, decode_value(value))

    def values(self) -> dict[tuple[str, str], str]:
        return {
            self.uuid_for(characteristic): encode_value(value)
            for characteristic, value in self.device.values().items()
        }

    def on_connect(self) -> None:
        self.device.connect()

    def on_disconnect(self) -> None:
        self.device.disconnect()
