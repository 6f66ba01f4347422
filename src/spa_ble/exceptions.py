"""Exception hierarchy for the spa BLE emulator."""

from __future__ import annotations

from bleak.exc import BleakError


class SpaBleError(BleakError):
    """Base exception for all emulator errors.

    Derives from BleakError so callers written against bleak handle
    emulator failures with their existing except clauses.
    """


class PreconditionError(SpaBleError):
    """Operation attempted in a state that does not allow it."""


class NotPoweredOnError(PreconditionError):
    """Adapter is not in the PoweredOn state."""


class DeviceNotFoundError(PreconditionError):
    """Device is not in the discoverable catalog."""


class NotConnectableError(PreconditionError):
    """Device advertises itself as non-connectable."""


class NotConnectedError(PreconditionError):
    """Device is not connected."""


class ScanInProgressError(PreconditionError):
    """A device scan is already running."""


class ServiceNotFoundError(PreconditionError):
    """Service UUID is not part of the device metadata."""


class CharacteristicNotFoundError(PreconditionError):
    """Characteristic UUID is not part of any discovered service."""


class ServicesNotDiscoveredError(PreconditionError):
    """Service discovery has not run for the device."""


class InjectedFault(SpaBleError):
    """Synthetic failure produced by the emulator itself."""


class SimulatedDisconnectionError(InjectedFault):
    """Link dropped through the disconnection side channel."""


class PoweredOffError(InjectedFault):
    """Link dropped because the adapter was powered off."""


class SimulatedScanError(InjectedFault):
    """Random scan failure emitted by the discovery loop."""


class NotFoundError(SpaBleError):
    """Lookup of an unknown identifier."""


class UnknownDeviceError(NotFoundError):
    """Device id is not registered."""


class ProtocolError(SpaBleError):
    """Device protocol level failure."""


class CommandRejectedError(ProtocolError):
    """Device refused a write under its current mode rules."""


class InvalidValueError(ProtocolError):
    """Characteristic value could not be decoded."""
