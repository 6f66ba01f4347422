"""Outcomes of a characteristic write applied by a simulated device."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .enums import SpaCharacteristic


@dataclass(frozen=True, slots=True)
class Accepted:
    """Write applied to device state.

    disconnect is set when the write asked the device to drop the link.
    """

    characteristic: SpaCharacteristic
    disconnect: bool = False


@dataclass(frozen=True, slots=True)
class Buffered:
    """Chunk stored in the partial-write buffer; nothing visible changed."""

    characteristic: SpaCharacteristic


@dataclass(frozen=True, slots=True)
class Rejected:
    """Write refused by the device's mode rules."""

    characteristic: SpaCharacteristic
    reason: str


WriteOutcome = Union[Accepted, Buffered, Rejected]
