"""Data models for the spa BLE emulator."""

from .device import DEFAULT_MTU, DiscoverableDevice, ScanOptions
from .enums import (
    ConnectionEventKind,
    ConnectionPhase,
    DeviceMode,
    ModeCommand,
    OperationalPhase,
    OperationKind,
    PowerState,
    SpaCharacteristic,
    get_mode_command,
)
from .events import ConnectionEvent, ControlCommand, DeviceEvent
from .gatt import (
    Characteristic,
    CharacteristicKey,
    CharacteristicMetadata,
    Service,
    ServiceMetadata,
    normalize_uuid,
)
from .outcomes import Accepted, Buffered, Rejected, WriteOutcome
from .results import Failure, Result, Success

__all__ = [
    "Accepted",
    "Buffered",
    "Rejected",
    "WriteOutcome",
    "Characteristic",
    "CharacteristicKey",
    "CharacteristicMetadata",
    "ConnectionEvent",
    "ConnectionEventKind",
    "ConnectionPhase",
    "ControlCommand",
    "DEFAULT_MTU",
    "DeviceEvent",
    "DeviceMode",
    "DiscoverableDevice",
    "Failure",
    "ModeCommand",
    "OperationKind",
    "OperationalPhase",
    "PowerState",
    "Result",
    "ScanOptions",
    "Service",
    "ServiceMetadata",
    "SpaCharacteristic",
    "Success",
    "get_mode_command",
    "normalize_uuid",
]
