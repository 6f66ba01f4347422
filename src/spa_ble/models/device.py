"""Discoverable device records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from .gatt import normalize_uuid

DEFAULT_MTU = 23


@dataclass
class DiscoverableDevice:
    """A peripheral the emulated adapter can see while scanning.

    Attributes:
        id: Opaque device identifier (a MAC address for spa devices)
        name: Advertised local name
        rssi: Signal strength in dBm
        mtu: Current ATT MTU
        manufacturer_data: Encoded manufacturer data, if advertised
        service_data: Encoded service data keyed by service UUID
        service_uuids: Advertised service UUIDs (normalized)
        is_connectable: False makes every connect attempt fail
    """
    id: str
    name: str | None = None
    rssi: int | None = None
    mtu: int = DEFAULT_MTU
    manufacturer_data: str | None = None
    service_data: dict[str, str] | None = None
    service_uuids: list[str] = field(default_factory=list)
    is_connectable: bool = True

    def __post_init__(self) -> None:
        self.service_uuids = [normalize_uuid(uuid) for uuid in self.service_uuids]

    def advertises_any(self, uuids: list[str] | None) -> bool:
        """Check the advertisement against a scan filter.

        An empty or missing filter matches every device.
        """
        if not uuids:
            return True
        wanted = {normalize_uuid(uuid) for uuid in uuids}
        return any(uuid in wanted for uuid in self.service_uuids)

    def updated(self, **changes: Any) -> DiscoverableDevice:
        """Return a copy with changes applied.

        Raises:
            TypeError: If changes names a field the record does not have
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown device field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def copy(self) -> DiscoverableDevice:
        return replace(
            self,
            service_uuids=list(self.service_uuids),
            service_data=dict(self.service_data) if self.service_data is not None else None,
        )


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Options accepted by start_device_scan."""

    allow_duplicates: bool = False
