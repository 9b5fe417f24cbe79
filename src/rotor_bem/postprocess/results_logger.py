"""
Power-curve and AEP CSV writer.

This module handles writing of power-curve and energy-yield results to CSV
files, including header generation and per-point rows.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, TextIO

from ..analysis.aep import AEPResult
from ..control.operation import PowerCurvePoint
from ..core.config import RotorSimulationConfig

logger = logging.getLogger(__name__)

#: Power-curve columns, in file order
POWER_CURVE_COLUMNS = [
    "wind_speed",
    "tip_speed",
    "pitch_deg",
    "tsr",
    "wind_power_kW",
    "Cp",
    "aero_power_kW",
    "rotor_speed_rpm",
    "torque",
    "efficiency",
    "electrical_power_kW",
    "Ct",
    "iterations",
    "converged",
]

AEP_COLUMNS = ["mean_wind_speed", "energy_MWh", "revenue"]


class PowerCurveLogger:
    """
    Handles writing of power-curve results to a CSV file.

    Header lines start with ``#``; the first non-comment line holds the
    column names.

    Parameters
    ----------
    log_file : str, optional
        Output path, or None to disable writing.
    separator : str
        Column separator character.
    config : RotorSimulationConfig, optional
        Configuration summarised in the header.

    Example
    -------
    ::

        writer = PowerCurveLogger("results/power_curve.csv", config=config)
        writer.initialize()
        for point in curve:
            writer.log_point(point)
        writer.close()
    """

    def __init__(
        self,
        log_file: Optional[str],
        separator: str = ",",
        config: Optional[RotorSimulationConfig] = None,
    ):
        self.log_file = log_file
        self.separator = separator
        self.config = config
        self.handle: Optional[TextIO] = None

    def initialize(self) -> None:
        """
        Create the file and parent directories and write the header.
        """
        if self.log_file is None:
            return

        log_path = Path(self.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self.handle = open(log_path, "w", encoding="utf-8")
        except OSError as e:
            logger.warning("Could not open power curve file: %s", e)
            self.handle = None
            return

        self._write_header()

    def _write_header(self) -> None:
        """Write the configuration header and column names."""
        h = self.handle
        h.write("# Rotor BEM Power Curve\n")
        h.write(f"# Generated: {datetime.now().isoformat()}\n")

        if self.config is not None:
            g = self.config.geometry
            c = self.config.controller
            s = self.config.solver
            rotor_radius = g.hub_radius + self.config.blade[-1].radius
            h.write("#\n")
            h.write("# === ROTOR GEOMETRY ===\n")
            h.write(f"# Blades: {g.num_blades}\n")
            h.write(f"# Rotor radius [m]: {rotor_radius:.6f}\n")
            h.write(f"# Hub radius [m]: {g.hub_radius:.6f}\n")
            h.write(f"# Hub height [m]: {g.hub_height:.6f}\n")
            h.write(f"# Cone / tilt / yaw [deg]: {g.cone} / {g.tilt} / {g.yaw}\n")
            h.write("#\n")
            h.write("# === CONTROLLER ===\n")
            h.write(f"# Rated power [W]: {c.rated_power:.6e}\n")
            h.write(f"# Power mode: {c.power_mode}\n")
            h.write(f"# Rotor speed [rpm]: {c.min_speed} - {c.max_speed}\n")
            h.write(f"# Optimal TSR: {c.optimal_tsr}\n")
            h.write("#\n")
            h.write("# === AERODYNAMIC PARAMETERS ===\n")
            h.write(f"# Air density [kg/m³]: {s.air_density:.6f}\n")
            h.write(f"# Shear: {self.config.flow.shear}\n")
        h.write("#\n")

        h.write(self.separator.join(POWER_CURVE_COLUMNS) + "\n")
        h.flush()

    def log_point(self, point: PowerCurvePoint) -> None:
        """Write one power-curve point."""
        if self.handle is None:
            return

        values = [
            f"{point.wind_speed:.6e}",
            f"{point.tip_speed:.6e}",
            f"{point.pitch:.6e}",
            f"{point.tip_speed_ratio:.6e}",
            f"{point.wind_power / 1000.0:.6e}",
            f"{point.cp:.6e}",
            f"{point.aero_power / 1000.0:.6e}",
            f"{point.rotor_speed:.6e}",
            f"{point.torque:.6e}",
            f"{point.efficiency:.6e}",
            f"{point.electrical_power / 1000.0:.6e}",
            f"{point.ct:.6e}",
            str(point.iterations),
            str(int(point.converged)),
        ]
        self.handle.write(self.separator.join(values) + "\n")
        self.handle.flush()

    def log_curve(self, curve: Sequence[PowerCurvePoint]) -> None:
        for point in curve:
            self.log_point(point)

    def close(self) -> None:
        """Close the file."""
        if self.handle is not None:
            self.handle.close()
            self.handle = None


def write_aep_table(path: str, results: Sequence[AEPResult], separator: str = ",") -> None:
    """
    Write AEP results as CSV.

    Parameters
    ----------
    path : str
        Output path; parent directories are created.
    results : Sequence[AEPResult]
        One row per mean wind speed.
    separator : str
        Column separator character.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        f.write("# Rotor BEM Annual Energy Production\n")
        f.write(f"# Generated: {datetime.now().isoformat()}\n")
        f.write(separator.join(AEP_COLUMNS) + "\n")
        for r in results:
            f.write(
                separator.join(
                    [f"{r.mean_wind_speed:.6e}", f"{r.energy_kwh / 1000.0:.6e}", f"{r.revenue:.6e}"]
                )
                + "\n"
            )
