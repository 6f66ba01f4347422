"""Test MTU negotiation and service discovery."""

import pytest

from spa_ble import (
    CharacteristicMetadata,
    DeviceNotFoundError,
    NotConnectedError,
    ServiceMetadata,
    ServiceNotFoundError,
    ServicesNotDiscoveredError,
)

HEART_RATE = ServiceMetadata(
    "180D",
    (
        CharacteristicMetadata("2A37", is_notifiable=True),
        CharacteristicMetadata("2A39", is_readable=False, is_writable_with_response=True),
    ),
)
BATTERY = ServiceMetadata("180F", (CharacteristicMetadata("2A19", is_notifiable=True),))


class TestMtu:
    """Test MTU negotiation."""

    @pytest.mark.asyncio
    async def test_request_capped_by_device_max(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        manager.set_device_max_mtu(heart_monitor.id, 150)
        await manager.connect_to_device(heart_monitor.id)
        events = []
        manager.on_mtu_changed(heart_monitor.id, events.append)

        device = await manager.request_mtu_for_device(heart_monitor.id, 1000)

        assert device.mtu == 150
        assert events == [150]

    @pytest.mark.asyncio
    async def test_default_max(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        events = []
        manager.on_mtu_changed(heart_monitor.id, events.append)

        device = await manager.connect_to_device(heart_monitor.id, request_mtu=600)

        assert device.mtu == 512
        assert events == [512]

    @pytest.mark.asyncio
    async def test_smaller_request_accepted(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        device = await manager.connect_to_device(heart_monitor.id, request_mtu=100)
        assert device.mtu == 100

    @pytest.mark.asyncio
    async def test_connect_without_request_keeps_mtu(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        device = await manager.connect_to_device(heart_monitor.id)
        assert device.mtu == 128

    @pytest.mark.asyncio
    async def test_request_requires_connection(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        with pytest.raises(NotConnectedError):
            await manager.request_mtu_for_device(heart_monitor.id, 200)

    @pytest.mark.asyncio
    async def test_removed_listener(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        events = []
        subscription = manager.on_mtu_changed(heart_monitor.id, events.append)
        subscription.remove()
        await manager.connect_to_device(heart_monitor.id, request_mtu=200)
        assert events == []

    @pytest.mark.asyncio
    async def test_device_removed_while_connected(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        await manager.connect_to_device(heart_monitor.id)
        manager.remove_device(heart_monitor.id)
        with pytest.raises(DeviceNotFoundError):
            await manager.request_mtu_for_device(heart_monitor.id, 200)

    def test_invalid_max(self, manager):
        with pytest.raises(ValueError):
            manager.set_device_max_mtu("x", 0)


class TestDiscovery:
    """Test service and characteristic discovery."""

    @pytest.mark.asyncio
    async def test_discovery_flow(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        manager.set_device_services(heart_monitor.id, [HEART_RATE, BATTERY])
        await manager.connect_to_device(heart_monitor.id)

        with pytest.raises(ServicesNotDiscoveredError):
            await manager.services_for_device(heart_monitor.id)

        await manager.discover_all_services_and_characteristics_for_device(heart_monitor.id)
        services = await manager.services_for_device(heart_monitor.id)

        assert [s.uuid for s in services] == [HEART_RATE.uuid, BATTERY.uuid]
        assert all(s.device_id == heart_monitor.id for s in services)

        characteristics = await manager.characteristics_for_service("180d", heart_monitor.id)
        assert [c.uuid for c in characteristics] == [c.uuid for c in HEART_RATE.characteristics]

    @pytest.mark.asyncio
    async def test_discovery_requires_connection(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        with pytest.raises(NotConnectedError):
            await manager.discover_all_services_and_characteristics_for_device(heart_monitor.id)

    @pytest.mark.asyncio
    async def test_unknown_service(self, manager, heart_monitor):
        manager.set_device_services(heart_monitor.id, [HEART_RATE])
        with pytest.raises(ServiceNotFoundError):
            await manager.characteristics_for_service("1810", heart_monitor.id)

    @pytest.mark.asyncio
    async def test_metadata_drives_notifiable_flag(self, manager, heart_monitor):
        manager.add_device(heart_monitor)
        manager.set_device_services(heart_monitor.id, [HEART_RATE])
        await manager.connect_to_device(heart_monitor.id)

        notifiable = await manager.read_characteristic_for_device(heart_monitor.id, "180D", "2A37")
        control = await manager.read_characteristic_for_device(heart_monitor.id, "180D", "2A39")

        assert notifiable.is_notifiable is True
        assert control.is_notifiable is False
