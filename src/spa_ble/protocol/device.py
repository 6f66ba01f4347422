"""Spa controller state machine: modes, authentication and characteristic writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..models.enums import (
    OPERATIONAL_PHASES,
    READ_ONLY_CHARACTERISTICS,
    ConnectionPhase,
    DeviceMode,
    ModeCommand,
    OperationalPhase,
    SpaCharacteristic,
    get_mode_command,
)
from ..models.outcomes import Accepted, Buffered, Rejected, WriteOutcome
from .chunking import ChunkReassembler, PartialWrite
from .constants import CODE_LENGTH, DEFAULT_AREA, DEFAULT_RSSI, FIRMWARE_VERSION, PASSWORD_MAX_LENGTH

_LOGGER = logging.getLogger(__name__)

# Writable only while the device is in Master or Free mode
_PRIVILEGED_CHARACTERISTICS = frozenset({
    SpaCharacteristic.BTNAME,
    SpaCharacteristic.WIFICREDS,
})
_COMMAND_CHARACTERISTICS = frozenset({
    SpaCharacteristic.MMODE,
    SpaCharacteristic.MCODE,
})


def _split_code(value: str) -> tuple[str, str]:
    """Split an MCODE value into (code, password)."""
    return value[:CODE_LENGTH], value[CODE_LENGTH:]


def default_characteristics(mac: str) -> dict[SpaCharacteristic, str]:
    """Factory values for a device with the given MAC address."""
    return {
        SpaCharacteristic.MMODE: DeviceMode.FREE.value,
        SpaCharacteristic.MCODE: "",
        SpaCharacteristic.BTNAME: f"Spa_{mac[9:]}",
        SpaCharacteristic.TEMPERATURE: "20",
        SpaCharacteristic.TIME: "00:00",
        SpaCharacteristic.SESSION: "0",
        SpaCharacteristic.WIFICREDS: "",
        SpaCharacteristic.VERSION: FIRMWARE_VERSION,
        SpaCharacteristic.WIFIMAC: mac.replace(":", ""),
    }


@dataclass
class DeviceProtocolState:
    """Mutable protocol state of one spa controller."""

    characteristics: dict[SpaCharacteristic, str]
    mode: DeviceMode = DeviceMode.FREE
    connection_phase: ConnectionPhase = ConnectionPhase.ADVERTISING
    operational_phase: OperationalPhase = OperationalPhase.IDLE
    stored_code: str | None = None
    wifi_connected: bool = False
    wifi_scanning: bool = False
    partial_write: PartialWrite = field(default_factory=PartialWrite)


class SpaDevice:
    """Simulated spa controller.

    The device owns its characteristic table and applies every write through
    its mode rules. It knows nothing about the transport; SpaPeripheral binds
    it to an EmulatedBleManager.

    Usage:
        device = SpaDevice("AA:BB:CC:DD:EE:FF")
        device.connect()
        device.handle_write(SpaCharacteristic.MCODE, "S" + code)
        assert device.mode is DeviceMode.MASTER
    """

    def __init__(self, mac: str, area: str = DEFAULT_AREA, rssi: int = DEFAULT_RSSI):
        """Initialize a device in advertising phase and Free mode.

        Args:
            mac: MAC address, also used as the transport device id
            area: Free-form installation area label
            rssi: Advertised signal strength in dBm
        """
        self.mac = mac
        self.area = area
        self.rssi = rssi
        self.state = DeviceProtocolState(characteristics=default_characteristics(mac))
        self._reassembler = ChunkReassembler(self.state.partial_write)

    def __repr__(self) -> str:
        return f"SpaDevice(mac={self.mac!r}, mode={self.state.mode.value}, phase={self.state.connection_phase.value})"

    @property
    def mode(self) -> DeviceMode:
        return self.state.mode

    @property
    def is_connected(self) -> bool:
        return self.state.connection_phase is ConnectionPhase.CONNECTED

    # Link lifecycle

    def connect(self) -> None:
        """Move from advertising to connected; ignored in any other phase."""
        if self.state.connection_phase is not ConnectionPhase.ADVERTISING:
            return
        self.state.connection_phase = ConnectionPhase.CONNECTED
        self.state.stored_code = None
        self._set_mode(DeviceMode.FREE)
        self._reassembler.reset()
        _LOGGER.debug("%s connected", self.mac)

    def disconnect(self) -> None:
        self.state.connection_phase = ConnectionPhase.ADVERTISING
        self._set_mode(DeviceMode.FREE)
        self._reassembler.reset()
        _LOGGER.debug("%s disconnected, advertising again", self.mac)

    # Values

    def value(self, characteristic: SpaCharacteristic | str) -> str:
        return self.state.characteristics[SpaCharacteristic(characteristic)]

    def values(self) -> dict[SpaCharacteristic, str]:
        return dict(self.state.characteristics)

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly view of the device, as relayed in state_change events."""
        state = self.state
        return {
            "mac": self.mac,
            "area": self.area,
            "rssi": self.rssi,
            "mode": state.mode.value,
            "connection_phase": state.connection_phase.value,
            "operational_phase": state.operational_phase.value,
            "wifi_connected": state.wifi_connected,
            "wifi_scanning": state.wifi_scanning,
            "characteristics": {c.value: v for c, v in state.characteristics.items()},
        }

    # Writes

    def handle_write(self, characteristic: SpaCharacteristic | str, value: str) -> WriteOutcome:
        """Apply a phone-to-device write.

        Framed writes are reassembled first; a completed chunk sequence is
        applied as a single write of the full value.

        Args:
            characteristic: Target characteristic
            value: Written text value

        Returns:
            Accepted, Buffered or Rejected
        """
        characteristic = SpaCharacteristic(characteristic)
        outcome = self._offer_chunk(characteristic, value)
        if outcome is None:
            outcome = self._apply_write(characteristic, value)
        return outcome

    def handle_partial_write(self, characteristic: SpaCharacteristic | str, value: str) -> bool:
        """Offer value to the chunk reassembler.

        Returns:
            True if the write was consumed as part of a chunk sequence
        """
        return self._offer_chunk(SpaCharacteristic(characteristic), value) is not None

    def _offer_chunk(self, characteristic: SpaCharacteristic, value: str) -> WriteOutcome | None:
        consumed, completed = self._reassembler.feed(characteristic, value)
        if not consumed:
            return None
        if completed is None:
            return Buffered(characteristic)
        return self._apply_write(characteristic, completed)

    def _apply_write(self, characteristic: SpaCharacteristic, value: str) -> WriteOutcome:
        if characteristic in _COMMAND_CHARACTERISTICS:
            command = get_mode_command(value)
            if command is not None:
                return self._apply_command(characteristic, command, value[1:])
            if characteristic is SpaCharacteristic.MMODE:
                return self._reject(characteristic, f"unknown mode command {value!r}")
            return self._authenticate(value)

        if characteristic in READ_ONLY_CHARACTERISTICS:
            return self._reject(characteristic, "read-only characteristic")
        if self.state.mode is DeviceMode.BLOCKED:
            return self._reject(characteristic, "device is blocked")
        if characteristic in _PRIVILEGED_CHARACTERISTICS and self.state.mode not in (
                DeviceMode.MASTER,
                DeviceMode.FREE,
        ):
            return self._reject(characteristic, f"not allowed in mode {self.state.mode.value}")

        self.state.characteristics[characteristic] = value
        phase = OPERATIONAL_PHASES.get(characteristic)
        if phase is not None:
            self.state.operational_phase = phase
        _LOGGER.debug("%s: %s <- %r", self.mac, characteristic.value, value)
        return Accepted(characteristic)

    def _apply_command(
            self,
            characteristic: SpaCharacteristic,
            command: ModeCommand,
            payload: str,
    ) -> WriteOutcome:
        state = self.state
        _LOGGER.debug("%s: command %s in mode %s", self.mac, command.value, state.mode.value)

        if command is ModeCommand.DISCONNECT:
            self.disconnect()
            return Accepted(characteristic, disconnect=True)

        if command is ModeCommand.SET:
            if not payload or len(payload) > CODE_LENGTH + PASSWORD_MAX_LENGTH:
                return self._reject(characteristic, "malformed code")
            code_matches = (
                state.stored_code is not None
                and _split_code(payload)[0] == _split_code(state.stored_code)[0]
            )
            if state.mode is not DeviceMode.FREE and state.stored_code is not None and not code_matches:
                return self._reject(characteristic, "code does not match")
            state.stored_code = payload
            self._set_mode(DeviceMode.MASTER)
            return Accepted(characteristic)

        # Remaining commands need Master mode
        if state.mode is not DeviceMode.MASTER:
            return self._reject(characteristic, f"command {command.value} requires Master mode")

        if command is ModeCommand.CLEAR:
            state.stored_code = None
            self._set_mode(DeviceMode.FREE)
        elif command is ModeCommand.WIFI_STATUS:
            state.wifi_connected = payload == "1"
        elif command is ModeCommand.WIFI_SCAN:
            state.wifi_scanning = True
            state.operational_phase = OperationalPhase.WIFI_CONFIG
        return Accepted(characteristic)

    def _authenticate(self, value: str) -> WriteOutcome:
        stored = self.state.stored_code
        if stored is None:
            self._set_mode(DeviceMode.FREE)
            return Accepted(SpaCharacteristic.MCODE)

        code, password = _split_code(value)
        stored_code, stored_password = _split_code(stored)
        password_matches = bool(stored_password) and password == stored_password

        if code == stored_code and (password_matches or not stored_password):
            self._set_mode(DeviceMode.MASTER)
        elif password_matches:
            self._set_mode(DeviceMode.NON_MASTER)
        else:
            self._set_mode(DeviceMode.BLOCKED)
        return Accepted(SpaCharacteristic.MCODE)

    def _set_mode(self, mode: DeviceMode) -> None:
        if mode is not self.state.mode:
            _LOGGER.debug("%s: mode %s -> %s", self.mac, self.state.mode.value, mode.value)
        self.state.mode = mode
        self.state.characteristics[SpaCharacteristic.MMODE] = mode.value

    def _reject(self, characteristic: SpaCharacteristic, reason: str) -> Rejected:
        _LOGGER.debug("%s: rejected write to %s (%s)", self.mac, characteristic.value, reason)
        return Rejected(characteristic, reason)
