"""Test adapter power state handling."""

import pytest

from spa_ble import (
    DiscoverableDevice,
    NotPoweredOnError,
    PowerState,
    PoweredOffError,
)


class TestPowerState:
    """Test state queries and listeners."""

    @pytest.mark.asyncio
    async def test_initial_state(self, manager):
        assert await manager.state() is PowerState.POWERED_ON
        assert manager.current_state is PowerState.POWERED_ON

    def test_listeners_receive_changes(self, manager):
        received = []
        manager.on_state_change(received.append)

        manager.set_state(PowerState.POWERED_OFF)
        manager.set_state("PoweredOn")

        assert received == [PowerState.POWERED_OFF, PowerState.POWERED_ON]

    def test_replay_happens_on_next_turn(self, manager, scheduler):
        """emit_current_state delivers asynchronously, never in the calling stack."""
        received = []
        manager.on_state_change(received.append, emit_current_state=True)
        assert received == []

        scheduler.run_pending()
        assert received == [PowerState.POWERED_ON]

    def test_replay_skipped_after_removal(self, manager, scheduler):
        received = []
        subscription = manager.on_state_change(received.append, emit_current_state=True)
        subscription.remove()

        scheduler.run_pending()
        assert received == []

    def test_unknown_state_rejected(self, manager):
        with pytest.raises(ValueError):
            manager.set_state("Exploded")


class TestPowerGating:
    """Test that only PoweredOn permits scanning and connecting."""

    @pytest.mark.parametrize(
        "state",
        [PowerState.UNKNOWN, PowerState.RESETTING, PowerState.UNSUPPORTED, PowerState.UNAUTHORIZED, PowerState.POWERED_OFF],
    )
    @pytest.mark.asyncio
    async def test_connect_requires_power(self, manager, heart_monitor, state):
        manager.add_device(heart_monitor)
        manager.set_state(state)

        with pytest.raises(NotPoweredOnError):
            await manager.connect_to_device(heart_monitor.id)
        assert not manager.is_device_connected(heart_monitor.id)

    def test_scan_requires_power(self, manager):
        manager.set_state(PowerState.POWERED_OFF)
        with pytest.raises(NotPoweredOnError):
            manager.start_device_scan(None, None, lambda result: None)
        assert not manager.is_scanning

    def test_leaving_powered_on_stops_scan(self, manager, scheduler, heart_monitor):
        manager.add_device(heart_monitor)
        results = []
        manager.start_device_scan(None, None, results.append)
        manager.set_state(PowerState.RESETTING)

        count = len(results)
        scheduler.advance(10.0)

        assert not manager.is_scanning
        assert len(results) == count

    @pytest.mark.asyncio
    async def test_power_off_disconnects_every_device(self, manager):
        """N connected devices yield exactly N powered-off disconnections."""
        events = []
        ids = [f"dev-{n}" for n in range(3)]
        for device_id in ids:
            manager.add_device(DiscoverableDevice(id=device_id))
            await manager.connect_to_device(device_id)
            manager.on_device_disconnected(device_id, events.append)

        manager.set_state(PowerState.POWERED_OFF)

        assert len(events) == 3
        assert all(not event.connected for event in events)
        assert all(isinstance(event.error, PoweredOffError) for event in events)
        assert [event.device.id for event in events] == ids
        assert manager.connected_devices() == []
