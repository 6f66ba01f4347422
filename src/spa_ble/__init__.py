"""Spa BLE emulator package.

  In-process BLE central emulator with simulated spa controllers, for
  exercising BLE application code without hardware.
  """

from .exceptions import (
    CharacteristicNotFoundError,
    CommandRejectedError,
    DeviceNotFoundError,
    InjectedFault,
    InvalidValueError,
    NotConnectableError,
    NotConnectedError,
    NotFoundError,
    NotPoweredOnError,
    PoweredOffError,
    PreconditionError,
    ProtocolError,
    ScanInProgressError,
    ServiceNotFoundError,
    ServicesNotDiscoveredError,
    SimulatedDisconnectionError,
    SimulatedScanError,
    SpaBleError,
    UnknownDeviceError,
)
from .listeners import ListenerSet, Subscription
from .models import (
    Accepted,
    Buffered,
    Characteristic,
    CharacteristicKey,
    CharacteristicMetadata,
    ConnectionEvent,
    ConnectionEventKind,
    ControlCommand,
    DeviceEvent,
    DeviceMode,
    DiscoverableDevice,
    Failure,
    PowerState,
    Rejected,
    Result,
    ScanOptions,
    Service,
    ServiceMetadata,
    SpaCharacteristic,
    Success,
    WriteOutcome,
)
from .protocol import SERVICE_UUID_OPERATION, SpaDevice, SpaPeripheral
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from .settings import SimulationSettings
from .simulator import SpaSimulator
from .transport import EmulatedBleakClient, EmulatedBleManager, RestorationStore, RestoredState

__version__ = "0.1.0"

__all__ = [
    # Main API
    "EmulatedBleManager",
    "EmulatedBleakClient",
    "SpaSimulator",
    "SpaDevice",
    "SpaPeripheral",
    "SimulationSettings",
    "RestorationStore",
    "RestoredState",
    # Scheduling and listeners
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "ListenerSet",
    "Subscription",
    # Models
    "Characteristic",
    "CharacteristicKey",
    "CharacteristicMetadata",
    "ConnectionEvent",
    "ConnectionEventKind",
    "ControlCommand",
    "DeviceEvent",
    "DeviceMode",
    "DiscoverableDevice",
    "PowerState",
    "ScanOptions",
    "Service",
    "ServiceMetadata",
    "SpaCharacteristic",
    "Success",
    "Failure",
    "Result",
    "Accepted",
    "Buffered",
    "Rejected",
    "WriteOutcome",
    "SERVICE_UUID_OPERATION",
    # Exceptions
    "SpaBleError",
    "PreconditionError",
    "NotPoweredOnError",
    "DeviceNotFoundError",
    "NotConnectableError",
    "NotConnectedError",
    "ScanInProgressError",
    "ServiceNotFoundError",
    "CharacteristicNotFoundError",
    "ServicesNotDiscoveredError",
    "InjectedFault",
    "SimulatedDisconnectionError",
    "PoweredOffError",
    "SimulatedScanError",
    "NotFoundError",
    "UnknownDeviceError",
    "ProtocolError",
    "CommandRejectedError",
    "InvalidValueError",
]
