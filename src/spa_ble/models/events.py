"""Connection events and relay message shapes."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final

from .device import DiscoverableDevice
from .enums import ConnectionEventKind

STATE_CHANGE_EVENT: Final = "state_change"
COMMAND_EVENT: Final = "command"
NOTIFICATION_EVENT: Final = "notification"
RELAY_EVENTS: Final[frozenset[str]] = frozenset({STATE_CHANGE_EVENT, COMMAND_EVENT, NOTIFICATION_EVENT})

# Pseudo characteristics accepted by the relay in place of a real one
CONNECT_COMMAND: Final = "CONNECT"
DISCONNECT_COMMAND: Final = "DISCONNECT"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class ConnectionEvent:
    """Event on the per-device connection channel.

    error is None for connects and for clean disconnects.
    """

    kind: ConnectionEventKind
    device: DiscoverableDevice | None
    error: BaseException | None = None

    @property
    def connected(self) -> bool:
        return self.kind is ConnectionEventKind.CONNECTED


@dataclass(frozen=True, slots=True)
class ControlCommand:
    """Inbound relay command: write value to characteristic on device."""

    device: str
    characteristic: str
    value: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ControlCommand:
        """Build a command from a decoded relay message.

        Raises:
            ValueError: If device or characteristic is missing, or a write
                command carries no value
        """
        device = data.get("device")
        characteristic = data.get("characteristic")
        value = data.get("value")

        if not isinstance(device, str) or not device:
            raise ValueError("command message needs a 'device' string")
        if not isinstance(characteristic, str) or not characteristic:
            raise ValueError("command message needs a 'characteristic' string")
        if characteristic in (CONNECT_COMMAND, DISCONNECT_COMMAND):
            return cls(device=device, characteristic=characteristic, value=value or "")
        if not isinstance(value, str):
            raise ValueError(f"write to {characteristic} needs a 'value' string")
        return cls(device=device, characteristic=characteristic, value=value)


@dataclass(frozen=True, slots=True)
class DeviceEvent:
    """Outbound relay event carrying one characteristic value."""

    event: str
    device: str
    characteristic: str | None = None
    value: str | None = None
    timestamp: int = field(default_factory=_now_ms)

    def __post_init__(self) -> None:
        if self.event not in RELAY_EVENTS:
            raise ValueError(
                f"Unknown relay event {self.event!r} (expected one of {sorted(RELAY_EVENTS)})"
            )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "event": self.event,
            "device": self.device,
            "timestamp": self.timestamp,
        }
        if self.characteristic is not None:
            data["characteristic"] = self.characteristic
        if self.value is not None:
            data["value"] = self.value
        return data
