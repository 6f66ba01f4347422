"""Reassembly of values split across several framed writes.

Each framed write starts with a one-character flag:

    '0' start     begin a new value for a characteristic
    '2' continue  append to the value in progress
    '9' end       append the last piece and apply the whole value

Writes that do not fit the sequence are not consumed; the device applies
them as ordinary writes of the literal value, flag included.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models.enums import SpaCharacteristic
from .constants import FLAG_CONTINUE, FLAG_END, FLAG_START

_LOGGER = logging.getLogger(__name__)


@dataclass
class PartialWrite:
    """In-flight chunked write; characteristic is None when idle."""

    characteristic: SpaCharacteristic | None = None
    buffer: str = ""
    length: int = 0

    @property
    def in_progress(self) -> bool:
        return self.characteristic is not None

    def reset(self) -> None:
        self.characteristic = None
        self.buffer = ""
        self.length = 0


class ChunkReassembler:
    """Feeds framed writes into a PartialWrite buffer."""

    def __init__(self, partial: PartialWrite | None = None):
        self.partial = partial if partial is not None else PartialWrite()

    def reset(self) -> None:
        self.partial.reset()

    def feed(self, characteristic: SpaCharacteristic, value: str) -> tuple[bool, str | None]:
        """Offer one write to the reassembler.

        Args:
            characteristic: Target of the write
            value: Raw written value, flag character first

        Returns:
            (consumed, completed): consumed is False when the write is not part
            of a chunk sequence; completed holds the reassembled value once an
            end frame arrives, None otherwise
        """
        if not value:
            return False, None

        flag, payload = value[0], value[1:]
        partial = self.partial

        if flag == FLAG_START and not partial.in_progress:
            partial.characteristic = characteristic
            partial.buffer = payload
            partial.length = len(payload)
            _LOGGER.debug("Chunked write to %s started", characteristic.value)
            return True, None

        if partial.characteristic is not characteristic:
            return False, None

        if flag == FLAG_CONTINUE:
            partial.buffer += payload
            partial.length = len(partial.buffer)
            return True, None

        if flag == FLAG_END:
            completed = partial.buffer + payload
            partial.reset()
            _LOGGER.debug("Chunked write to %s completed (%d chars)", characteristic.value, len(completed))
            return True, completed

        return False, None
