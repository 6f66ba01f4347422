"""Test the BleakClient-shaped adapter."""

import pytest
from bleak.exc import BleakError

from spa_ble import (
    CharacteristicNotFoundError,
    CommandRejectedError,
    DiscoverableDevice,
    EmulatedBleakClient,
    NotConnectedError,
    SpaCharacteristic,
    SpaSimulator,
)
from spa_ble.protocol import CHARACTERISTIC_UUIDS

MAC = "AA:BB:CC:DD:EE:FF"
CODE = "QUJDREVGR0hJSktM"
TEMPERATURE = CHARACTERISTIC_UUIDS[SpaCharacteristic.TEMPERATURE]
MMODE = CHARACTERISTIC_UUIDS[SpaCharacteristic.MMODE]
MCODE = CHARACTERISTIC_UUIDS[SpaCharacteristic.MCODE]
VERSION = CHARACTERISTIC_UUIDS[SpaCharacteristic.VERSION]


@pytest.fixture
def simulator(manager) -> SpaSimulator:
    simulator = SpaSimulator(manager)
    simulator.add_device(MAC)
    return simulator


class TestEmulatedBleakClient:
    """Test connect, I/O and notifications through the client."""

    @pytest.mark.asyncio
    async def test_context_manager(self, manager, simulator):
        async with EmulatedBleakClient(MAC, manager, request_mtu=247) as client:
            assert client.is_connected
            assert client.address == MAC
            assert client.mtu_size == 247
        assert not client.is_connected
        assert not manager.is_device_connected(MAC)

    @pytest.mark.asyncio
    async def test_accepts_device_record(self, manager, simulator):
        client = EmulatedBleakClient(manager.get_device(MAC), manager)
        assert client.address == MAC

    @pytest.mark.asyncio
    async def test_read_write(self, manager, simulator):
        async with EmulatedBleakClient(MAC, manager) as client:
            assert await client.read_gatt_char(TEMPERATURE) == bytearray(b"20")
            await client.write_gatt_char(TEMPERATURE, b"38")
            assert await client.read_gatt_char(TEMPERATURE.upper()) == bytearray(b"38")
        assert simulator.find(MAC).value(SpaCharacteristic.TEMPERATURE) == "38"

    @pytest.mark.asyncio
    async def test_rejected_write_raises_bleak_error(self, manager, simulator):
        async with EmulatedBleakClient(MAC, manager) as client:
            with pytest.raises(CommandRejectedError):
                await client.write_gatt_char(VERSION, b"9.9")
            with pytest.raises(BleakError):
                await client.write_gatt_char(VERSION, b"9.9")
            # Fire and forget drops the write silently
            await client.write_gatt_char(VERSION, b"9.9", response=False)
            assert await client.read_gatt_char(VERSION) == bytearray(b'{"v":"1.0.0"}')

    @pytest.mark.asyncio
    async def test_unknown_characteristic(self, manager, simulator):
        async with EmulatedBleakClient(MAC, manager) as client:
            with pytest.raises(CharacteristicNotFoundError):
                await client.read_gatt_char("2A37")

    @pytest.mark.asyncio
    async def test_io_requires_connection(self, manager, simulator):
        client = EmulatedBleakClient(MAC, manager)
        with pytest.raises(NotConnectedError):
            await client.read_gatt_char(TEMPERATURE)

    @pytest.mark.asyncio
    async def test_notifications(self, manager, scheduler, simulator):
        received = []
        async with EmulatedBleakClient(MAC, manager) as client:
            await client.start_notify(MMODE, lambda sender, data: received.append((sender, bytes(data))))
            scheduler.run_pending()
            await client.write_gatt_char(MCODE, f"S{CODE}".encode())
            await client.stop_notify(MMODE)
            await client.write_gatt_char(MMODE, b"C")

        assert received == [(MMODE, b"F"), (MMODE, b"M")]

    @pytest.mark.asyncio
    async def test_notification_errors(self, manager, simulator):
        errors = []
        error = RuntimeError("sensor")
        async with EmulatedBleakClient(MAC, manager) as client:
            await client.start_notify(MMODE, lambda sender, data: None, error_callback=errors.append)
            service_uuid = manager.get_device(MAC).service_uuids[0]
            manager.simulate_characteristic_error(MAC, service_uuid, MMODE, error)
        assert errors == [error]

    @pytest.mark.asyncio
    async def test_disconnected_callback(self, manager, simulator):
        dropped = []
        client = EmulatedBleakClient(MAC, manager, disconnected_callback=dropped.append)
        await client.connect()

        await client.write_gatt_char(MMODE, b"D")

        assert dropped == [client]
        assert not client.is_connected
        # Disconnecting an already dropped client is harmless
        assert await client.disconnect() is True

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self, manager):
        manager.add_device(DiscoverableDevice(id="beacon", is_connectable=False))
        client = EmulatedBleakClient("beacon", manager)
        with pytest.raises(BleakError):
            await client.connect()
