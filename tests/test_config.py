"""
Tests for the YAML configuration layer.
"""

import pytest
import yaml

from rotor_bem.cli.run_bem import TEMPLATE_CONFIG
from rotor_bem.core.config import (
    AirfoilConfig,
    ControllerConfig,
    FlowConfig,
    OperationConfig,
    RotorSimulationConfig,
)


@pytest.fixture
def minimal_data():
    return {
        "geometry": {"hub_radius": 1.0, "hub_height": 60.0, "num_blades": 3},
        "blade": [
            {"radius": 1.0, "chord": 1.2, "twist": 10.0, "airfoil": "thin"},
            {"radius": 19.0, "chord": 0.5, "twist": 0.0},
        ],
        "airfoils": {
            "thin": {"alpha": [-180.0, 0.0, 180.0], "cl": [0.0, 0.4, 0.0], "cd": [0.02, 0.01, 0.02]},
            "plate": {"flat_plate": True, "cd": 0.02},
        },
        "controller": {"rated_power": 1.0e6, "speed_setpoint": 25.0, "max_speed": 25.0, "min_speed": 10.0},
    }


class TestRotorSimulationConfig:
    def test_from_dict(self, minimal_data):
        config = RotorSimulationConfig.from_dict(minimal_data)
        assert config.geometry.hub_radius == 1.0
        assert len(config.blade) == 2
        assert config.blade[1].airfoil == "flat_plate"
        assert config.airfoils["thin"].cd_table == [0.02, 0.01, 0.02]
        assert config.airfoils["plate"].flat_plate
        assert config.airfoils["plate"].cd == 0.02
        assert config.solver.air_density == 1.225
        assert config.flow.shear == "none"

    def test_yaml_round_trip(self, minimal_data, tmp_path):
        config = RotorSimulationConfig.from_dict(minimal_data)
        path = tmp_path / "rotor.yaml"
        config.save_yaml(path)
        assert RotorSimulationConfig.from_yaml(path) == config

    def test_template_is_valid(self):
        config = RotorSimulationConfig.from_dict(yaml.safe_load(TEMPLATE_CONFIG))
        assert config.controller.rated_power == pytest.approx(1.5e6)
        assert config.controller.pitch_breakpoints == [pytest.approx(1.4e6)]
        assert config.flow.shear == "power_law"
        assert config.validate() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RotorSimulationConfig.from_yaml(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            RotorSimulationConfig.from_yaml(path)

    def test_unknown_key(self, minimal_data):
        minimal_data["solver"] = {"air_densty": 1.2}
        with pytest.raises(ValueError, match="Invalid configuration"):
            RotorSimulationConfig.from_dict(minimal_data)

    def test_unknown_airfoil(self, minimal_data):
        minimal_data["blade"][0]["airfoil"] = "naca0012"
        with pytest.raises(ValueError, match="unknown airfoil 'naca0012'"):
            RotorSimulationConfig.from_dict(minimal_data)

    def test_no_sections(self, minimal_data):
        minimal_data["blade"] = []
        with pytest.raises(ValueError, match="at least one section"):
            RotorSimulationConfig.from_dict(minimal_data)

    def test_validate_warnings(self, minimal_data, caplog):
        minimal_data["geometry"]["hub_radius"] = 0.0
        minimal_data["controller"]["speed_setpoint"] = 20.0
        config = RotorSimulationConfig.from_dict(minimal_data)
        warnings = config.validate()
        assert any("hub loss" in w for w in warnings)
        assert any("speed_setpoint" in w for w in warnings)
        assert "Configuration:" in caplog.text

    def test_root_hub_loss_needs_no_hub(self, minimal_data):
        minimal_data["geometry"]["hub_radius"] = 0.0
        minimal_data["solver"] = {"hub_loss_at_root": True}
        warnings = RotorSimulationConfig.from_dict(minimal_data).validate()
        assert not any("hub loss" in w for w in warnings)

    def test_str(self, minimal_data):
        text = str(RotorSimulationConfig.from_dict(minimal_data))
        assert "3 blades" in text
        assert "R=20.00 m" in text


class TestSectionConfigs:
    def test_wind_speeds_include_end(self):
        speeds = OperationConfig(wind_speed_start=3.0, wind_speed_end=5.0, wind_speed_step=0.5).wind_speeds()
        assert list(speeds) == [3.0, 3.5, 4.0, 4.5, 5.0]

    @pytest.mark.parametrize(
        "cls,kwargs,match",
        [
            (FlowConfig, {"shear": "cubic"}, "flow.shear"),
            (FlowConfig, {"shear": "log", "surface_roughness": 0.0}, "surface_roughness"),
            (FlowConfig, {"use_reference": True}, "use_reference"),
            (ControllerConfig, {"power_mode": "L1"}, "power_mode"),
            (ControllerConfig, {"power_mode": "POWER"}, "power_speed_table"),
            (ControllerConfig, {"speed_setpoint": 20.0}, "speed_setpoint"),
            (ControllerConfig, {"pitch_deltas": [1.0, 2.0]}, "equal length"),
            (ControllerConfig, {"efficiency": 1.5}, "efficiency"),
            (OperationConfig, {"wind_speed_end": 2.0}, "wind_speed_end"),
            (OperationConfig, {"n_sectors": 0}, "n_sectors"),
            (OperationConfig, {"relaxation": 1.5}, "relaxation"),
        ],
    )
    def test_invalid_values(self, cls, kwargs, match):
        with pytest.raises(ValueError, match=match):
            cls(**kwargs)

    def test_airfoil_needs_data(self):
        with pytest.raises(ValueError, match="needs flat_plate"):
            AirfoilConfig(name="empty")

    def test_reynolds_tables_need_key(self):
        with pytest.raises(ValueError, match="reynolds"):
            AirfoilConfig(name="family", tables=[{"alpha": [0.0, 1.0]}])
