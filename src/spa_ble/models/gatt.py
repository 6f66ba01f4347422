"""GATT service and characteristic records."""

from __future__ import annotations

from dataclasses import dataclass, field

from bleak.uuids import normalize_uuid_str


def normalize_uuid(uuid: str) -> str:
    """Expand 16/32-bit short forms and lowercase a UUID string.

    Raises:
        ValueError: If uuid is not a valid UUID
    """
    return normalize_uuid_str(uuid)


@dataclass(frozen=True, slots=True)
class CharacteristicKey:
    """Address of one characteristic slot: (device, service, characteristic).

    Build with CharacteristicKey.of() so both UUIDs are normalized.
    """

    device_id: str
    service_uuid: str
    characteristic_uuid: str

    @classmethod
    def of(cls, device_id: str, service_uuid: str, characteristic_uuid: str) -> CharacteristicKey:
        return cls(
            device_id=device_id,
            service_uuid=normalize_uuid(service_uuid),
            characteristic_uuid=normalize_uuid(characteristic_uuid),
        )

    def __str__(self) -> str:
        return f"{self.device_id}|{self.service_uuid}|{self.characteristic_uuid}"


@dataclass(frozen=True, slots=True)
class CharacteristicMetadata:
    """Static description of a characteristic's capabilities."""

    uuid: str
    is_readable: bool = True
    is_writable_with_response: bool = False
    is_writable_without_response: bool = False
    is_notifiable: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "uuid", normalize_uuid(self.uuid))


@dataclass(frozen=True, slots=True)
class ServiceMetadata:
    """Static description of a service and its characteristics."""

    uuid: str
    characteristics: tuple[CharacteristicMetadata, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "uuid", normalize_uuid(self.uuid))
        object.__setattr__(self, "characteristics", tuple(self.characteristics))

    def find(self, characteristic_uuid: str) -> CharacteristicMetadata | None:
        """Return metadata for characteristic_uuid, or None."""
        wanted = normalize_uuid(characteristic_uuid)
        for characteristic in self.characteristics:
            if characteristic.uuid == wanted:
                return characteristic
        return None


@dataclass(frozen=True, slots=True)
class Service:
    """Service entry produced by discovery."""

    uuid: str
    device_id: str


@dataclass(frozen=True, slots=True)
class Characteristic:
    """Characteristic snapshot returned by read, write and monitor."""

    uuid: str
    service_uuid: str
    device_id: str
    value: str | None
    is_notifiable: bool = True
    is_indicatable: bool = False

    @classmethod
    def from_key(
            cls,
            key: CharacteristicKey,
            value: str | None,
            metadata: CharacteristicMetadata | None = None,
    ) -> Characteristic:
        return cls(
            uuid=key.characteristic_uuid,
            service_uuid=key.service_uuid,
            device_id=key.device_id,
            value=value,
            is_notifiable=metadata.is_notifiable if metadata is not None else True,
        )
