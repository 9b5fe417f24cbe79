"""
Rotor Simulation Configuration Module.

This module provides a YAML-based configuration system for BEM rotor
analyses, allowing users to define a turbine, its operating range and the
wind climate without writing Python code.

Example YAML configuration:
    geometry:
      hub_radius: 1.5
      tilt: 5.0
      num_blades: 3

    blade:
      - {radius: 0.0, chord: 3.5, twist: 13.0, airfoil: "cylinder"}
      - {radius: 60.0, chord: 1.0, twist: 0.0, airfoil: "naca64"}

    controller:
      rated_power: 5.0e+6
      optimal_tsr: 7.5
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import yaml

logger = logging.getLogger(__name__)


# =============================================================================
# Enumerations
# =============================================================================


class ShearType(str, Enum):
    """Vertical shear profile."""

    NONE = "none"
    LOG = "log"
    POWER_LAW = "power_law"
    DIABATIC = "diabatic"


class PowerMode(str, Enum):
    """Below-rated rotor speed strategy of the variable-speed controller."""

    OPTIMAL_TSR = "L0"
    POWER_TABLE = "POWER"


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class MacroGeometryConfig:
    """Turbine macro geometry. Angles in degrees."""

    hub_radius: float = 0.0
    cone: float = 0.0
    yaw: float = 0.0
    tilt: float = 0.0
    tower_distance: float = 0.0
    hub_height: float = 100.0
    num_blades: int = 3

    def __post_init__(self):
        if self.hub_radius < 0:
            raise ValueError(f"geometry.hub_radius must be non-negative: {self.hub_radius}")
        if self.num_blades < 1:
            raise ValueError(f"geometry.num_blades must be at least 1: {self.num_blades}")
        if self.hub_height <= 0:
            raise ValueError(f"geometry.hub_height must be positive: {self.hub_height}")


@dataclass
class BladeSectionConfig:
    """One blade section. Radius from the blade root [m], twist [deg]."""

    radius: float
    chord: float
    twist: float = 0.0
    airfoil: str = "flat_plate"
    aero_centre_x: float = 0.0
    aero_centre_y: float = 0.0

    def __post_init__(self):
        if self.chord <= 0:
            raise ValueError(f"blade section chord must be positive: {self.chord}")


@dataclass
class AirfoilConfig:
    """
    Airfoil polar definition.

    Either a flat plate (``flat_plate: true`` with ``cd`` and ``lift_slope``),
    a single table (``alpha``/``cl``/``cd``/``cm``), or a list of tables
    keyed by Reynolds number in ``tables``.
    """

    name: str
    flat_plate: bool = False
    cd: float = 0.01
    lift_slope: float = 2.0 * np.pi
    alpha: Optional[List[float]] = None
    cl: Optional[List[float]] = None
    cd_table: Optional[List[float]] = None
    cm: Optional[List[float]] = None
    tables: Optional[List[Dict[str, Any]]] = None

    def __post_init__(self):
        if self.flat_plate:
            return
        if self.tables:
            for table in self.tables:
                if "reynolds" not in table:
                    raise ValueError(f"airfoil '{self.name}': every table needs 'reynolds'")
            return
        if self.alpha is None or self.cl is None or self.cd_table is None:
            raise ValueError(
                f"airfoil '{self.name}' needs flat_plate, tables, or alpha/cl/cd lists"
            )


@dataclass
class FlowConfig:
    """Inflow modifiers: shear and veer."""

    shear: str = ShearType.NONE.value
    surface_roughness: float = 0.03
    shear_exponent: float = 0.0
    obukhov_length: float = 500.0
    use_reference: bool = False
    reference_velocity: Optional[float] = None
    reference_height: Optional[float] = None
    veer: bool = False
    veer_rate: float = 0.0

    def __post_init__(self):
        valid = [s.value for s in ShearType]
        if self.shear not in valid:
            raise ValueError(f"Invalid flow.shear: {self.shear}. Valid: {valid}")
        if self.shear in (ShearType.LOG.value, ShearType.DIABATIC.value):
            if self.surface_roughness <= 0:
                raise ValueError(
                    f"flow.surface_roughness must be positive: {self.surface_roughness}"
                )
        if self.use_reference and (
            self.reference_velocity is None or self.reference_height is None
        ):
            raise ValueError(
                "flow.use_reference requires reference_velocity and reference_height"
            )


@dataclass
class BEMSettings:
    """Physical constants and numerical settings of the BEM solver."""

    air_density: float = 1.225
    kinematic_viscosity: float = 1.5e-5
    speed_of_sound: float = 340.0
    convergence_tolerance: float = 1e-6
    max_root_iterations: int = 400
    wake_transition: float = 0.4
    tip_extra_distance: float = 0.0
    tip_loss: bool = True
    hub_loss: bool = True
    hub_loss_at_root: bool = False
    include_drag_in_induction: bool = False
    bracket_subdivisions: int = 80

    def __post_init__(self):
        for name in ("air_density", "kinematic_viscosity", "speed_of_sound", "convergence_tolerance"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"solver.{name} must be positive: {value}")
        if not 0.0 < self.wake_transition < 0.5:
            raise ValueError(
                f"solver.wake_transition must be in (0, 0.5): {self.wake_transition}"
            )
        if self.max_root_iterations < 1:
            raise ValueError(
                f"solver.max_root_iterations must be at least 1: {self.max_root_iterations}"
            )
        if self.bracket_subdivisions < 2:
            raise ValueError(
                f"solver.bracket_subdivisions must be at least 2: {self.bracket_subdivisions}"
            )


@dataclass
class ControllerConfig:
    """Variable-speed controller, pitch schedule and drivetrain efficiency."""

    rated_power: float = 5.0e6
    speed_setpoint: float = 12.1
    max_speed: float = 12.1
    min_speed: float = 6.9
    optimal_tsr: float = 7.5
    max_dp_dn: float = 1.0e6
    power_mode: str = PowerMode.OPTIMAL_TSR.value
    power_speed_table: Optional[List[List[float]]] = None
    min_wind_speed: float = 3.0
    max_wind_speed: float = 25.0
    base_pitch: float = 0.0
    pitch_breakpoints: List[float] = field(default_factory=lambda: [0.0])
    pitch_deltas: List[float] = field(default_factory=lambda: [0.0])
    efficiency: float = 0.94
    efficiency_table: Optional[List[List[float]]] = None

    def __post_init__(self):
        self._validate_speeds()
        self._validate_mode()
        self._validate_pitch()
        if not 0.0 < self.efficiency <= 1.0:
            raise ValueError(f"controller.efficiency must be in (0, 1]: {self.efficiency}")

    def _validate_speeds(self) -> None:
        if self.rated_power <= 0:
            raise ValueError(f"controller.rated_power must be positive: {self.rated_power}")
        if not 0 < self.min_speed <= self.max_speed:
            raise ValueError(
                f"controller speeds must satisfy 0 < min_speed <= max_speed, "
                f"got min_speed={self.min_speed}, max_speed={self.max_speed}"
            )
        if not self.min_speed <= self.speed_setpoint <= self.max_speed:
            raise ValueError(
                f"controller.speed_setpoint must lie in [min_speed, max_speed]: "
                f"{self.speed_setpoint}"
            )
        if self.optimal_tsr <= 0:
            raise ValueError(f"controller.optimal_tsr must be positive: {self.optimal_tsr}")
        if self.max_dp_dn <= 0:
            raise ValueError(f"controller.max_dp_dn must be positive: {self.max_dp_dn}")
        if self.min_wind_speed >= self.max_wind_speed:
            raise ValueError(
                f"controller wind-speed limits must satisfy min < max: "
                f"{self.min_wind_speed}, {self.max_wind_speed}"
            )

    def _validate_mode(self) -> None:
        valid = [m.value for m in PowerMode]
        if self.power_mode not in valid:
            raise ValueError(f"Invalid controller.power_mode: {self.power_mode}. Valid: {valid}")
        if self.power_mode == PowerMode.POWER_TABLE.value and not self.power_speed_table:
            raise ValueError("controller.power_mode 'POWER' requires power_speed_table")

    def _validate_pitch(self) -> None:
        if len(self.pitch_breakpoints) != len(self.pitch_deltas):
            raise ValueError(
                f"controller.pitch_breakpoints ({len(self.pitch_breakpoints)}) and "
                f"pitch_deltas ({len(self.pitch_deltas)}) must have equal length"
            )
        if not self.pitch_breakpoints:
            raise ValueError("controller.pitch_breakpoints must not be empty")


@dataclass
class OperationConfig:
    """Power-curve sweep and outer-loop settings."""

    wind_speed_start: float = 3.0
    wind_speed_end: float = 25.0
    wind_speed_step: float = 1.0
    pitch: float = 0.0
    azimuth: float = 0.0
    n_sectors: int = 1
    min_iterations: int = 3
    max_iterations: int = 50
    power_tolerance: float = 1e-4
    relaxation: float = 0.5
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.wind_speed_start <= 0:
            raise ValueError(
                f"operation.wind_speed_start must be positive: {self.wind_speed_start}"
            )
        if self.wind_speed_end < self.wind_speed_start:
            raise ValueError(
                f"operation.wind_speed_end ({self.wind_speed_end}) must not be below "
                f"wind_speed_start ({self.wind_speed_start})"
            )
        if self.wind_speed_step <= 0:
            raise ValueError(f"operation.wind_speed_step must be positive: {self.wind_speed_step}")
        if self.n_sectors < 1:
            raise ValueError(f"operation.n_sectors must be at least 1: {self.n_sectors}")
        if not 1 <= self.min_iterations <= self.max_iterations:
            raise ValueError(
                f"operation iterations must satisfy 1 <= min_iterations <= max_iterations, "
                f"got {self.min_iterations}, {self.max_iterations}"
            )
        if not 0.0 < self.relaxation <= 1.0:
            raise ValueError(f"operation.relaxation must be in (0, 1]: {self.relaxation}")
        if self.power_tolerance <= 0:
            raise ValueError(f"operation.power_tolerance must be positive: {self.power_tolerance}")

    def wind_speeds(self) -> np.ndarray:
        """Wind speeds of the sweep, end point included."""
        n = int(np.floor((self.wind_speed_end - self.wind_speed_start) / self.wind_speed_step + 1e-9))
        return self.wind_speed_start + self.wind_speed_step * np.arange(n + 1)


@dataclass
class AEPConfig:
    """Weibull wind climate and energy price."""

    weibull_k: float = 2.0
    energy_price: float = 0.0
    mean_wind_speeds: List[float] = field(default_factory=lambda: [6.0, 7.0, 8.0, 9.0, 10.0])
    bin_width: float = 1.0
    bin_start: float = 0.0
    bin_end: Optional[float] = None
    hours_per_year: float = 8760.0

    def __post_init__(self):
        if self.weibull_k <= 0:
            raise ValueError(f"aep.weibull_k must be positive: {self.weibull_k}")
        if self.bin_width <= 0:
            raise ValueError(f"aep.bin_width must be positive: {self.bin_width}")
        if any(v <= 0 for v in self.mean_wind_speeds):
            raise ValueError(f"aep.mean_wind_speeds must be positive: {self.mean_wind_speeds}")


@dataclass
class OutputConfig:
    """Result files."""

    power_curve_file: Optional[str] = "power_curve.csv"
    aep_file: Optional[str] = "aep.csv"
    separator: str = ","
    plot_file: Optional[str] = None


@dataclass
class RotorSimulationConfig:
    """Complete rotor analysis configuration."""

    geometry: MacroGeometryConfig
    blade: List[BladeSectionConfig]
    airfoils: Dict[str, AirfoilConfig] = field(default_factory=dict)
    flow: FlowConfig = field(default_factory=FlowConfig)
    solver: BEMSettings = field(default_factory=BEMSettings)
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    operation: OperationConfig = field(default_factory=OperationConfig)
    aep: AEPConfig = field(default_factory=AEPConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self):
        if not self.blade:
            raise ValueError("blade must define at least one section")
        for section in self.blade:
            if section.airfoil not in self.airfoils and section.airfoil != "flat_plate":
                raise ValueError(
                    f"blade section at radius {section.radius} references unknown "
                    f"airfoil '{section.airfoil}'"
                )

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "RotorSimulationConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        RotorSimulationConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        ValueError
            If the configuration is invalid.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file is empty or not a mapping: {yaml_path}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RotorSimulationConfig":
        """Create configuration from dictionary.

        Unknown keys inside a section raise ``TypeError`` from the dataclass
        constructor, which is reported as ``ValueError``.
        """
        try:
            airfoils = {}
            for name, af_data in (data.get("airfoils") or {}).items():
                af_data = dict(af_data)
                # "cd" is the flat-plate constant; tables use the list form
                if isinstance(af_data.get("cd"), list):
                    af_data["cd_table"] = af_data.pop("cd")
                airfoils[name] = AirfoilConfig(name=name, **af_data)

            return cls(
                geometry=MacroGeometryConfig(**(data.get("geometry") or {})),
                blade=[BladeSectionConfig(**s) for s in (data.get("blade") or [])],
                airfoils=airfoils,
                flow=FlowConfig(**(data.get("flow") or {})),
                solver=BEMSettings(**(data.get("solver") or {})),
                controller=ControllerConfig(**(data.get("controller") or {})),
                operation=OperationConfig(**(data.get("operation") or {})),
                aep=AEPConfig(**(data.get("aep") or {})),
                output=OutputConfig(**(data.get("output") or {})),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a YAML-friendly dictionary."""
        airfoils = {}
        for name, af in self.airfoils.items():
            af_data = {k: v for k, v in asdict(af).items() if k != "name" and v is not None}
            if "cd_table" in af_data:
                af_data["cd"] = af_data.pop("cd_table")
            airfoils[name] = af_data

        return {
            "geometry": asdict(self.geometry),
            "blade": [asdict(s) for s in self.blade],
            "airfoils": airfoils,
            "flow": asdict(self.flow),
            "solver": asdict(self.solver),
            "controller": asdict(self.controller),
            "operation": asdict(self.operation),
            "aep": asdict(self.aep),
            "output": asdict(self.output),
        }

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the output YAML file.
        """
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Check physically questionable settings.

        Returns
        -------
        list of str
            List of validation warnings (empty if all OK).
        """
        warnings = []

        radii = [s.radius for s in self.blade]
        if any(b <= a for a, b in zip(radii, radii[1:])):
            warnings.append("blade section radii are not strictly increasing")

        solver = self.solver
        if solver.hub_loss and not solver.hub_loss_at_root and self.geometry.hub_radius == 0:
            warnings.append(
                "hub loss is enabled but hub_radius is 0; hub loss has no effect "
                "unless hub_loss_at_root is set"
            )

        if self.controller.speed_setpoint < self.controller.max_speed:
            warnings.append("speed_setpoint below max_speed: rated operation runs below max rpm")

        rotor_radius = self.geometry.hub_radius + radii[-1]
        max_tip_speed = self.controller.max_speed / 60.0 * 2.0 * np.pi * rotor_radius
        if max_tip_speed > 100.0:
            warnings.append(f"maximum tip speed {max_tip_speed:.1f} m/s exceeds 100 m/s")

        if self.aep.bin_end is not None and self.aep.bin_end < self.operation.wind_speed_end:
            warnings.append("aep.bin_end is below the end of the power curve")

        for w in warnings:
            logger.warning("Configuration: %s", w)
        return warnings

    def __str__(self) -> str:
        """Human-readable string representation."""
        rotor_radius = self.geometry.hub_radius + self.blade[-1].radius
        lines = [
            "Rotor Simulation Configuration",
            "=" * 40,
            f"Rotor: {self.geometry.num_blades} blades, R={rotor_radius:.2f} m, "
            f"hub height {self.geometry.hub_height:.1f} m",
            f"  Cone={self.geometry.cone} deg, tilt={self.geometry.tilt} deg, "
            f"yaw={self.geometry.yaw} deg",
            f"Blade: {len(self.blade)} sections, airfoils: {sorted(self.airfoils) or ['flat_plate']}",
            f"Flow: shear={self.flow.shear}, veer={'on' if self.flow.veer else 'off'}",
            f"Controller: P_rated={self.controller.rated_power / 1e3:.0f} kW, "
            f"mode={self.controller.power_mode}, TSR_opt={self.controller.optimal_tsr}",
            f"Operation: {self.operation.wind_speed_start} → {self.operation.wind_speed_end} m/s "
            f"(step {self.operation.wind_speed_step})",
            f"AEP: k={self.aep.weibull_k}, mean speeds {self.aep.mean_wind_speeds}",
        ]
        return "\n".join(lines)
