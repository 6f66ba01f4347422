"""Test SimulationSettings validation."""

import pytest

from spa_ble import PowerState, SimulationSettings


class TestSimulationSettings:
    """Test defaults and validation."""

    def test_defaults(self):
        settings = SimulationSettings()
        assert settings.scan_interval == 0.8
        assert settings.duplicate_admission_probability == 0.3
        assert settings.scan_error_probability == 0.1
        assert settings.default_max_mtu == 512
        assert settings.default_mtu == 23
        assert settings.initial_state is PowerState.POWERED_ON

    def test_deterministic_disables_scan_errors(self):
        settings = SimulationSettings.deterministic(seed=7)
        assert settings.seed == 7
        assert settings.scan_error_probability == 0.0

    def test_deterministic_keeps_explicit_override(self):
        settings = SimulationSettings.deterministic(scan_error_probability=1.0)
        assert settings.scan_error_probability == 1.0

    @pytest.mark.parametrize(
        "field, value",
        [
            ("scan_interval", 0),
            ("duplicate_admission_probability", 1.5),
            ("scan_error_probability", -0.1),
            ("default_max_mtu", 10),
            ("default_max_mtu", 600),
            ("default_mtu", 1000),
            ("restoration_delay", -1),
            ("initial_state", "PoweredOn"),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValueError):
            SimulationSettings(**{field: value})

    def test_frozen(self):
        settings = SimulationSettings()
        with pytest.raises(AttributeError):
            settings.scan_interval = 1.0
