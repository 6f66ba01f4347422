"""Spa controller protocol implementation."""

from .chunking import ChunkReassembler, PartialWrite
from .codec import decode_value, encode_value
from .constants import (
    CHARACTERISTIC_UUIDS,
    CODE_LENGTH,
    FLAG_CONTINUE,
    FLAG_END,
    FLAG_START,
    PASSWORD_MAX_LENGTH,
    SERVICE_UUID_OPERATION,
)
from .device import DeviceProtocolState, SpaDevice, default_characteristics
from .peripheral import SpaPeripheral, spa_service_metadata

__all__ = [
    "SERVICE_UUID_OPERATION",
    "CHARACTERISTIC_UUIDS",
    "CODE_LENGTH",
    "PASSWORD_MAX_LENGTH",
    "FLAG_START",
    "FLAG_CONTINUE",
    "FLAG_END",
    "ChunkReassembler",
    "PartialWrite",
    "encode_value",
    "decode_value",
    "DeviceProtocolState",
    "SpaDevice",
    "default_characteristics",
    "SpaPeripheral",
    "spa_service_metadata",
]
