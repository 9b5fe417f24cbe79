"""
Tests for power-curve/AEP CSV output and the power-curve plots.
"""

import matplotlib

matplotlib.use("Agg")

import polars as pl  # noqa: E402
import pytest  # noqa: E402

from rotor_bem.analysis.aep import AEPResult  # noqa: E402
from rotor_bem.control.operation import PowerCurvePoint  # noqa: E402
from rotor_bem.core.config import RotorSimulationConfig  # noqa: E402
from rotor_bem.postprocess.results_logger import (  # noqa: E402
    AEP_COLUMNS,
    POWER_CURVE_COLUMNS,
    PowerCurveLogger,
    write_aep_table,
)
from rotor_bem.postprocess.visualizer import PowerCurveVisualizer  # noqa: E402


@pytest.fixture
def curve():
    return [
        PowerCurvePoint(
            wind_speed=v,
            tip_speed=60.0,
            pitch=0.0,
            tip_speed_ratio=60.0 / v,
            wind_power=1.0e6 * v,
            cp=0.45,
            aero_power=4.5e5 * v,
            rotor_speed=15.0,
            torque=1.0e5,
            efficiency=0.94,
            electrical_power=4.0e5 * v,
            ct=0.8,
            iterations=4,
            converged=v != 9.0,
        )
        for v in [9.0, 5.0, 7.0]
    ]


@pytest.fixture
def config():
    return RotorSimulationConfig.from_dict(
        {"geometry": {"hub_radius": 1.0}, "blade": [{"radius": 1.0, "chord": 0.5}, {"radius": 20.0, "chord": 0.3}]}
    )


class TestPowerCurveLogger:
    def test_writes_header_and_rows(self, tmp_path, curve, config):
        path = tmp_path / "out" / "power_curve.csv"
        writer = PowerCurveLogger(str(path), config=config)
        writer.initialize()
        writer.log_curve(curve)
        writer.close()

        text = path.read_text(encoding="utf-8")
        assert text.startswith("# Rotor BEM Power Curve")
        assert "# Rotor radius [m]: 21.000000" in text

        df = pl.read_csv(path, comment_prefix="#")
        assert df.columns == POWER_CURVE_COLUMNS
        assert df.height == 3
        assert df["wind_speed"].to_list() == [9.0, 5.0, 7.0]
        assert df["electrical_power_kW"].to_list() == pytest.approx([3600.0, 2000.0, 2800.0])
        assert df["converged"].to_list() == [0, 1, 1]

    def test_custom_separator(self, tmp_path, curve):
        path = tmp_path / "curve.txt"
        writer = PowerCurveLogger(str(path), separator=";")
        writer.initialize()
        writer.log_point(curve[0])
        writer.close()
        df = pl.read_csv(path, separator=";", comment_prefix="#")
        assert df["Cp"].to_list() == pytest.approx([0.45])

    def test_disabled_logger_is_noop(self, curve):
        writer = PowerCurveLogger(None)
        writer.initialize()
        writer.log_curve(curve)
        writer.close()
        assert writer.handle is None

    def test_aep_table(self, tmp_path):
        path = tmp_path / "aep.csv"
        write_aep_table(str(path), [AEPResult(7.0, 4.2e6, 2.1e5), AEPResult(8.0, 5.0e6, 2.5e5)])
        df = pl.read_csv(path, comment_prefix="#")
        assert df.columns == AEP_COLUMNS
        assert df["energy_MWh"].to_list() == pytest.approx([4200.0, 5000.0])


class TestPowerCurveVisualizer:
    @pytest.fixture
    def csv_file(self, tmp_path, curve):
        path = tmp_path / "power_curve.csv"
        logger = PowerCurveLogger(str(path))
        logger.initialize()
        logger.log_curve(curve)
        logger.close()
        return path

    def test_sorted_by_wind_speed(self, csv_file):
        viz = PowerCurveVisualizer(str(csv_file))
        assert viz.df["wind_speed"].to_list() == [5.0, 7.0, 9.0]
        assert viz.converged.height == 2

    def test_summary(self, csv_file):
        summary = PowerCurveVisualizer(str(csv_file)).summary()
        assert summary["points"] == 3
        assert summary["not_converged"] == 1
        assert summary["max_electrical_power_kW"] == pytest.approx(3600.0)

    @pytest.mark.parametrize("method", ["plot_power", "plot_coefficients", "plot_operation"])
    def test_plots_saved(self, csv_file, tmp_path, method):
        target = tmp_path / f"{method}.png"
        getattr(PowerCurveVisualizer(str(csv_file)), method)(save_path=str(target))
        assert target.exists()
