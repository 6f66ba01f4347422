"""Emulated BLE transport layer."""

from .characteristics import CharacteristicStore
from .client import EmulatedBleakClient
from .connections import ConnectionManager
from .manager import EmulatedBleManager, Peripheral
from .restoration import RestorationStore, RestoredState
from .scanning import ScanEngine

__all__ = [
    "EmulatedBleManager",
    "EmulatedBleakClient",
    "Peripheral",
    "CharacteristicStore",
    "ConnectionManager",
    "ScanEngine",
    "RestorationStore",
    "RestoredState",
]
