"""Base64 text codec used for characteristic values on the transport side."""

from __future__ import annotations

import base64
import binascii

from ..exceptions import InvalidValueError


def encode_value(text: str) -> str:
    """Encode a device-side text value as base64."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_value(encoded: str) -> str:
    """Decode a base64 transport value into device-side text.

    Raises:
        InvalidValueError: If encoded is not valid base64 or not UTF-8 text
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise InvalidValueError(f"Invalid base64 value {encoded!r}: {e}") from e
