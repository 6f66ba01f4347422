"""Test model records and relay message shapes."""

import pytest

from spa_ble.models import (
    CharacteristicKey,
    ControlCommand,
    DeviceEvent,
    DiscoverableDevice,
    ServiceMetadata,
    CharacteristicMetadata,
)


class TestCharacteristicKey:
    """Test key normalization."""

    def test_short_uuids_normalized(self):
        key = CharacteristicKey.of("dev", "180D", "2A37")
        assert key.service_uuid == "0000180d-0000-1000-8000-00805f9b34fb"
        assert key.characteristic_uuid == "00002a37-0000-1000-8000-00805f9b34fb"

    def test_equal_regardless_of_case(self):
        upper = CharacteristicKey.of("dev", "C5A092A5-2202-4AC6-8734-2E8FF796094D", "2a37")
        lower = CharacteristicKey.of("dev", "c5a092a5-2202-4ac6-8734-2e8ff796094d", "2A37")
        assert upper == lower
        assert hash(upper) == hash(lower)

    def test_str(self):
        key = CharacteristicKey.of("dev", "180D", "2A37")
        assert str(key).startswith("dev|0000180d")


class TestDiscoverableDevice:
    """Test device records."""

    def test_empty_filter_matches(self):
        device = DiscoverableDevice(id="a", service_uuids=["180D"])
        assert device.advertises_any(None)
        assert device.advertises_any([])

    def test_filter_intersection(self):
        device = DiscoverableDevice(id="a", service_uuids=["180D", "180F"])
        assert device.advertises_any(["180f"])
        assert not device.advertises_any(["1810"])

    def test_updated_rejects_unknown_fields(self):
        device = DiscoverableDevice(id="a")
        with pytest.raises(TypeError):
            device.updated(colour="red")

    def test_copy_is_independent(self):
        device = DiscoverableDevice(id="a", service_uuids=["180D"])
        clone = device.copy()
        clone.service_uuids.append("0000180f-0000-1000-8000-00805f9b34fb")
        clone.mtu = 200
        assert len(device.service_uuids) == 1
        assert device.mtu == 23


class TestServiceMetadata:
    def test_find(self):
        service = ServiceMetadata("180D", (CharacteristicMetadata("2A37", is_notifiable=True),))
        assert service.find("2a37").is_notifiable
        assert service.find("2A38") is None


class TestControlCommand:
    """Test relay command parsing."""

    def test_write_command(self):
        command = ControlCommand.from_mapping(
            {"device": "AA:BB", "characteristic": "TEMPERATURE", "value": "38"}
        )
        assert command == ControlCommand("AA:BB", "TEMPERATURE", "38")

    def test_connect_needs_no_value(self):
        command = ControlCommand.from_mapping({"device": "AA:BB", "characteristic": "CONNECT"})
        assert command.value == ""

    @pytest.mark.parametrize(
        "message",
        [
            {},
            {"device": "AA:BB"},
            {"device": "", "characteristic": "TIME", "value": "12:00"},
            {"device": "AA:BB", "characteristic": "TIME"},
            {"device": "AA:BB", "characteristic": "TIME", "value": 12},
        ],
    )
    def test_malformed_rejected(self, message):
        with pytest.raises(ValueError):
            ControlCommand.from_mapping(message)


class TestDeviceEvent:
    """Test relay events."""

    def test_to_dict_omits_missing_fields(self):
        event = DeviceEvent("state_change", "AA:BB", timestamp=1000)
        assert event.to_dict() == {"event": "state_change", "device": "AA:BB", "timestamp": 1000}

    def test_timestamp_in_milliseconds(self):
        event = DeviceEvent("notification", "AA:BB", "MMODE", "M")
        assert event.timestamp > 1_600_000_000_000

    def test_unknown_event_rejected(self):
        with pytest.raises(ValueError):
            DeviceEvent("explode", "AA:BB")
