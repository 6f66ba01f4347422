"""Shared fixtures for emulator tests."""

from __future__ import annotations

import asyncio

import pytest

from spa_ble import (
    DiscoverableDevice,
    EmulatedBleManager,
    ManualScheduler,
    SimulationSettings,
)

HEART_RATE_SERVICE = "180D"


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def settings() -> SimulationSettings:
    return SimulationSettings.deterministic(seed=1234)


@pytest.fixture
def manager(settings, scheduler):
    manager = EmulatedBleManager(settings, scheduler=scheduler)
    yield manager
    manager.close()


@pytest.fixture
def heart_monitor() -> DiscoverableDevice:
    return DiscoverableDevice(
        id="heart-monitor-123",
        name="Heart Monitor",
        rssi=-55,
        mtu=128,
        service_uuids=[HEART_RATE_SERVICE, "180F"],
    )


@pytest.fixture
def settle(scheduler):
    """Let pending coroutines reach their next await, then advance the clock."""

    async def _settle(seconds: float = 0.0) -> None:
        await asyncio.sleep(0)
        scheduler.advance(seconds)
        await asyncio.sleep(0)

    return _settle
