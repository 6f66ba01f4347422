"""Drive a simulated spa controller through a typical phone session.

Usage:
    uv run python examples/spa_session.py
    uv run python examples/spa_session.py --mac AA:BB:CC:DD:EE:FF --temperature 38 -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from spa_ble import (
    DiscoverableDevice,
    EmulatedBleakClient,
    EmulatedBleManager,
    Failure,
    Result,
    ScanOptions,
    SimulationSettings,
    SpaCharacteristic,
    SpaSimulator,
)
from spa_ble.protocol import CHARACTERISTIC_UUIDS

# Example layout: 16-character code followed by the password
DEMO_CODE = "c2VjcmV0LWNvZGU="
DEMO_PASSWORD = "pw1234"


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


async def run_session(mac: str, temperature: str, scan_seconds: float) -> None:
    """Scan, connect, authenticate and set the water temperature."""
    manager = EmulatedBleManager(SimulationSettings.deterministic())
    simulator = SpaSimulator(manager)
    simulator.add_device(mac, area="garden")

    manager.on_state_change(lambda state: print(f"[{_timestamp()}] adapter {state.value}"), True)
    simulator.on_event(lambda event: print(f"[{_timestamp()}] relay {event.to_dict()}"))

    def on_scan(result: Result[DiscoverableDevice]) -> None:
        if isinstance(result, Failure):
            print(f"[{_timestamp()}] scan error: {result.error}")
        else:
            device = result.value
            print(f"[{_timestamp()}] discovered {device.name} ({device.id}) rssi={device.rssi}")

    manager.start_device_scan(None, ScanOptions(allow_duplicates=True), on_scan)
    await asyncio.sleep(scan_seconds)
    manager.stop_device_scan()

    mmode = CHARACTERISTIC_UUIDS[SpaCharacteristic.MMODE]
    mcode = CHARACTERISTIC_UUIDS[SpaCharacteristic.MCODE]
    temperature_uuid = CHARACTERISTIC_UUIDS[SpaCharacteristic.TEMPERATURE]

    async with EmulatedBleakClient(mac, manager, request_mtu=247) as client:
        print(f"[{_timestamp()}] connected, mtu={client.mtu_size}")
        await client.start_notify(
            mmode, lambda _, data: print(f"[{_timestamp()}] MMODE -> {data.decode()}")
        )
        await client.write_gatt_char(mcode, f"S{DEMO_CODE}{DEMO_PASSWORD}".encode())
        await client.write_gatt_char(temperature_uuid, temperature.encode())
        value = await client.read_gatt_char(temperature_uuid)
        print(f"[{_timestamp()}] temperature is now {value.decode()}")
        await asyncio.sleep(0)

    device = simulator.find(mac)
    print(f"\nFinal device state: {device.snapshot()}")
    manager.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a scripted session against a simulated spa.")
    parser.add_argument("--mac", default="AA:BB:CC:DD:EE:FF", help="Device MAC address")
    parser.add_argument("--temperature", default="38", help="Temperature to set. Default: 38")
    parser.add_argument(
        "--scan-seconds",
        type=float,
        default=2.0,
        help="How long to scan before connecting. Default: 2",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        asyncio.run(run_session(args.mac, args.temperature, args.scan_seconds))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
