"""GATT layout and framing constants for the spa controller."""

from __future__ import annotations

from typing import Final

from ..models.enums import SpaCharacteristic

# GATT service
SERVICE_UUID_OPERATION: Final = "c5a092a5-2202-4ac6-8734-2e8ff796094d"

# GATT characteristics
CHARACTERISTIC_UUIDS: Final[dict[SpaCharacteristic, str]] = {
    SpaCharacteristic.MMODE: "984cdbfb-446b-43b2-a879-c857a9a0f638",
    SpaCharacteristic.MCODE: "6436e996-e573-4ff7-83fd-d0ea0bd09458",
    SpaCharacteristic.BTNAME: "f8733ee9-6e45-485a-a8a1-9e4e8bdb0536",
    SpaCharacteristic.TEMPERATURE: "0daecf8f-2352-4ae8-bdb8-4ae862f041e3",
    SpaCharacteristic.TIME: "8cea517c-2d76-4190-ae05-2e222a3caacb",
    SpaCharacteristic.SESSION: "c67c0b5f-0f50-44fc-a0f9-449ff1f476f1",
    SpaCharacteristic.WIFICREDS: "5eb76cac-ada4-43c2-9ed0-b80547542e9f",
    SpaCharacteristic.VERSION: "207da212-c2fd-43b5-9664-ac15166364d2",
    SpaCharacteristic.WIFIMAC: "aefc6b90-26f1-4842-b720-3d47f4a087cf",
}

# Chunk framing flags (first character of every framed write)
FLAG_START: Final = "0"
FLAG_CONTINUE: Final = "2"
FLAG_END: Final = "9"

# MCODE layout: <code (16)><password (up to 8)>
CODE_LENGTH: Final = 16
PASSWORD_MAX_LENGTH: Final = 8

DEFAULT_AREA: Final = "default"
DEFAULT_RSSI: Final = -70
FIRMWARE_VERSION: Final = '{"v":"1.0.0"}'
