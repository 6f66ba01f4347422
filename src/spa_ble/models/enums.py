from __future__ import annotations

from enum import Enum, IntEnum
from typing import Final


class PowerState(str, Enum):
    """Bluetooth adapter power states.

    Only POWERED_ON permits scanning and connecting.
    """
    UNKNOWN = "Unknown"
    RESETTING = "Resetting"
    UNSUPPORTED = "Unsupported"
    UNAUTHORIZED = "Unauthorized"
    POWERED_OFF = "PoweredOff"
    POWERED_ON = "PoweredOn"


class OperationKind(IntEnum):
    """Characteristic operations that accept latency and fault overrides."""
    READ = 0
    WRITE_WITH_RESPONSE = 1
    WRITE_WITHOUT_RESPONSE = 2


class ConnectionEventKind(str, Enum):
    """Kinds of events on the per-device connection channel."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class DeviceMode(str, Enum):
    """Authentication mode reported by the device on MMODE (device to phone)."""
    FREE = "F"          # No code defined
    MASTER = "M"        # Code (and password) matched
    NON_MASTER = "N"    # Only the password matched
    BLOCKED = "B"       # Nothing matched


class ModeCommand(str, Enum):
    """Commands written to MMODE/MCODE (phone to device)."""
    SET = "S"           # Set code and password
    CLEAR = "C"         # Clear stored code, Master only
    WIFI_STATUS = "W"   # Report Wi-Fi connectivity, Master only
    WIFI_SCAN = "Z"     # Start Wi-Fi scan, Master only
    DISCONNECT = "D"    # Force BLE disconnect


class ConnectionPhase(str, Enum):
    """Device-side link phase."""
    ADVERTISING = "advertising"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class OperationalPhase(str, Enum):
    """Last operational action applied by the device."""
    IDLE = "idle"
    TEMPERATURE_SET = "temperature_set"
    TIME_SET = "time_set"
    SESSION_SET = "session_set"
    WIFI_CONFIG = "wifi_config"


class SpaCharacteristic(str, Enum):
    """Named characteristics of the spa controller."""
    MMODE = "MMODE"
    MCODE = "MCODE"
    BTNAME = "BTNAME"
    TEMPERATURE = "TEMPERATURE"
    TIME = "TIME"
    SESSION = "SESSION"
    WIFICREDS = "WIFICREDS"
    VERSION = "VERSION"
    WIFIMAC = "WIFIMAC"


READ_ONLY_CHARACTERISTICS: Final[frozenset[SpaCharacteristic]] = frozenset({
    SpaCharacteristic.VERSION,
    SpaCharacteristic.WIFIMAC,
})

OPERATIONAL_PHASES: Final[dict[SpaCharacteristic, OperationalPhase]] = {
    SpaCharacteristic.TEMPERATURE: OperationalPhase.TEMPERATURE_SET,
    SpaCharacteristic.TIME: OperationalPhase.TIME_SET,
    SpaCharacteristic.SESSION: OperationalPhase.SESSION_SET,
    SpaCharacteristic.WIFICREDS: OperationalPhase.WIFI_CONFIG,
}


def get_mode_command(value: str) -> ModeCommand | None:
    """Return the command encoded by the first character of value, if any."""
    if not value:
        return None
    try:
        return ModeCommand(value[0])
    except ValueError:
        return None
