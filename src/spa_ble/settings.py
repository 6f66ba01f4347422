"""Tunable emulator behaviour."""

from __future__ import annotations

from dataclasses import dataclass

from .models.device import DEFAULT_MTU
from .models.enums import PowerState

DEFAULT_SCAN_INTERVAL = 0.8
DEFAULT_MAX_MTU = 512
# Largest ATT MTU a Bluetooth link allows
ATT_MTU_CEILING = 517


def _check_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} out of range: {value} (must be 0.0-1.0)")


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True, slots=True)
class SimulationSettings:
    """Emulator knobs shared by every component of one manager.

    Attributes:
        scan_interval: Seconds between scan ticks
        duplicate_admission_probability: Chance a tick re-emits a device when
            duplicates are not allowed
        scan_error_probability: Chance a tick emits a simulated scan error
        default_max_mtu: MTU ceiling for devices without an explicit maximum
        default_mtu: MTU assigned to devices before negotiation
        restoration_delay: Seconds before the restore-state callback fires
        initial_state: Adapter power state at construction
        seed: Seed for the scan randomness (None for nondeterministic)
    """
    scan_interval: float = DEFAULT_SCAN_INTERVAL
    duplicate_admission_probability: float = 0.3
    scan_error_probability: float = 0.1
    default_max_mtu: int = DEFAULT_MAX_MTU
    default_mtu: int = DEFAULT_MTU
    restoration_delay: float = 0.1
    initial_state: PowerState = PowerState.POWERED_ON
    seed: int | None = None

    def __post_init__(self) -> None:
        _check_positive("scan_interval", self.scan_interval)
        _check_probability("duplicate_admission_probability", self.duplicate_admission_probability)
        _check_probability("scan_error_probability", self.scan_error_probability)
        if not DEFAULT_MTU <= self.default_max_mtu <= ATT_MTU_CEILING:
            raise ValueError(
                f"default_max_mtu out of range: {self.default_max_mtu} "
                f"(must be {DEFAULT_MTU}-{ATT_MTU_CEILING})"
            )
        if not DEFAULT_MTU <= self.default_mtu <= self.default_max_mtu:
            raise ValueError(
                f"default_mtu out of range: {self.default_mtu} "
                f"(must be {DEFAULT_MTU}-{self.default_max_mtu})"
            )
        if self.restoration_delay < 0:
            raise ValueError(f"restoration_delay must not be negative, got {self.restoration_delay}")
        if not isinstance(self.initial_state, PowerState):
            raise ValueError(f"initial_state must be a PowerState, got {self.initial_state!r}")

    @classmethod
    def deterministic(cls, seed: int = 0, **overrides) -> SimulationSettings:
        """Settings with a fixed seed and no random scan errors."""
        overrides.setdefault("scan_error_probability", 0.0)
        return cls(seed=seed, **overrides)
