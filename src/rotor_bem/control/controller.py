"""
Turbine operating-point controller.

This module encapsulates the rotor speed and pitch logic of a
variable-speed, pitch-regulated wind turbine.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.config import ControllerConfig, PowerMode
from .efficiency import ConstantEfficiency, EfficiencyModel, TableEfficiency
from .pitch import StandardPitchSchedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControllerInput:
    """Wind speed [m/s] and the current electrical power estimate [W]."""

    wind_speed: float
    electrical_power: float = 0.0


@dataclass(frozen=True)
class ControllerOutput:
    """
    Commanded operating point.

    Attributes
    ----------
    tip_speed : float
        Blade tip speed [m/s].
    rotor_speed : float
        Rotor speed [rpm].
    pitch : float
        Blade pitch [deg].
    tip_speed_ratio : float
        Tip speed / wind speed.
    """

    tip_speed: float
    rotor_speed: float
    pitch: float
    tip_speed_ratio: float


class TurbineController(ABC):
    """Strategy interface for the operation solver's controller."""

    #: Efficiency used when a controller has no drivetrain model
    DEFAULT_EFFICIENCY: float = 0.85

    name: str = "controller"

    @abstractmethod
    def compute_operating_point(self, inp: ControllerInput) -> ControllerOutput:
        """Operating point for the given wind speed and power estimate."""

    @property
    @abstractmethod
    def rated_power(self) -> float:
        """Rated electrical power [W]."""

    def efficiency(self, mechanical_power: float) -> float:
        """Drivetrain efficiency at ``mechanical_power`` [W]."""
        return self.DEFAULT_EFFICIENCY


@dataclass
class ControllerParams:
    """
    Parameters of :class:`VariableSpeedController`.

    Attributes
    ----------
    rated_power : float
        Rated electrical power [W].
    speed_setpoint : float
        Rotor speed at and above rated power [rpm].
    max_speed, min_speed : float
        Rotor speed limits [rpm].
    optimal_tsr : float
        Tip-speed ratio tracked below rated in L0 mode.
    max_dp_dn : float
        Steepest allowed power/speed gradient near rated speed [W/rpm].
    rotor_radius : float
        Rotor radius [m].
    min_wind_speed, max_wind_speed : float
        Wind-speed range used for the optimal-TSR speed [m/s].
    power_mode : PowerMode
        Below-rated strategy.
    power_speed_table : Sequence[Sequence[float]], optional
        ``[rpm, W]`` pairs for POWER mode, increasing in both columns.
    """

    rated_power: float
    speed_setpoint: float
    max_speed: float
    min_speed: float
    optimal_tsr: float
    max_dp_dn: float
    rotor_radius: float
    min_wind_speed: float = 3.0
    max_wind_speed: float = 25.0
    power_mode: PowerMode = PowerMode.OPTIMAL_TSR
    power_speed_table: Optional[Sequence[Sequence[float]]] = None

    def __post_init__(self):
        self.power_mode = PowerMode(self.power_mode)
        if self.rotor_radius <= 0:
            raise ValueError(f"rotor_radius must be positive: {self.rotor_radius}")
        if not 0 < self.min_speed <= self.max_speed:
            raise ValueError(
                f"Rotor speed limits must satisfy 0 < min_speed <= max_speed: "
                f"{self.min_speed}, {self.max_speed}"
            )
        if self.power_mode == PowerMode.POWER_TABLE:
            table = np.asarray(self.power_speed_table, dtype=np.float64)
            if table.ndim != 2 or table.shape[1] != 2 or len(table) < 2:
                raise ValueError("power_speed_table must contain at least two [rpm, W] pairs")
            if np.any(np.diff(table[:, 0]) <= 0) or np.any(np.diff(table[:, 1]) <= 0):
                raise ValueError("power_speed_table must be strictly increasing in rpm and power")


class VariableSpeedController(TurbineController):
    """
    Variable-speed, pitch-regulated controller.

    Rotor speed follows the operating mode:

    - **rated** (``P_el >= P_rated``): speed set-point
    - **L0**: ``n = 30 λ_opt v / (π R)``, capped below ``n_max`` and limited by
      ``max_dp_dn`` close to rated speed
    - **POWER**: ``n`` interpolated from the speed/power table

    and is clamped to ``[n_min, n_max]``. Pitch comes from the schedule.

    Parameters
    ----------
    params : ControllerParams
        Speed and power limits.
    pitch_schedule : StandardPitchSchedule, optional
        Pitch over electrical power; zero pitch if omitted.
    efficiency_model : EfficiencyModel, optional
        Drivetrain efficiency; 0.85 if omitted.

    Examples
    --------
    ::

        >>> params = ControllerParams(rated_power=5e6, speed_setpoint=12.1,
        ...     max_speed=12.1, min_speed=6.9, optimal_tsr=7.5,
        ...     max_dp_dn=1e6, rotor_radius=63.0)
        >>> controller = VariableSpeedController(params)
        >>> out = controller.compute_operating_point(ControllerInput(8.0, 1.5e6))
    """

    name = "variable_speed"

    #: Margin kept below the maximum speed in L0 mode [rpm]
    SPEED_MARGIN: float = 0.001

    def __init__(
        self,
        params: ControllerParams,
        pitch_schedule: Optional[StandardPitchSchedule] = None,
        efficiency_model: Optional[EfficiencyModel] = None,
    ):
        self.params = params
        self.pitch_schedule = (
            pitch_schedule if pitch_schedule is not None else StandardPitchSchedule(0.0, [0.0], [0.0])
        )
        self.efficiency_model = (
            efficiency_model
            if efficiency_model is not None
            else ConstantEfficiency(self.DEFAULT_EFFICIENCY)
        )

    @property
    def rated_power(self) -> float:
        return self.params.rated_power

    def efficiency(self, mechanical_power: float) -> float:
        return self.efficiency_model.efficiency(mechanical_power)

    def rotor_speed(self, inp: ControllerInput) -> float:
        """
        Commanded rotor speed [rpm] before clamping.

        Notes
        -----
        In L0 mode the optimal-TSR speed is pulled back when the remaining
        power ``P_rated - P_el`` would have to be gained over too small a
        speed range, i.e. when ``(P_rated - P_el) / (n_max - n)`` exceeds
        ``max_dp_dn``.
        """
        p = self.params
        if inp.electrical_power >= p.rated_power:
            return p.speed_setpoint

        if p.power_mode == PowerMode.OPTIMAL_TSR:
            v = np.clip(inp.wind_speed, p.min_wind_speed, p.max_wind_speed)
            n = 30.0 * p.optimal_tsr * v / (p.rotor_radius * np.pi)
            if n >= p.max_speed:
                n = p.max_speed - self.SPEED_MARGIN
            power_gap = p.rated_power - inp.electrical_power
            if power_gap / (p.max_speed - n) > p.max_dp_dn:
                n = p.max_speed - power_gap / p.max_dp_dn
            return n

        table = np.asarray(p.power_speed_table, dtype=np.float64)
        n = float(np.interp(inp.electrical_power, table[:, 1], table[:, 0]))
        return max(n, p.min_speed)

    def compute_operating_point(self, inp: ControllerInput) -> ControllerOutput:
        p = self.params
        n = float(np.clip(self.rotor_speed(inp), p.min_speed, p.max_speed))
        tip_speed = n / 60.0 * 2.0 * np.pi * p.rotor_radius
        tsr = tip_speed / inp.wind_speed if inp.wind_speed > 0 else 0.0
        return ControllerOutput(
            tip_speed=tip_speed,
            rotor_speed=n,
            pitch=self.pitch_schedule.pitch(inp.electrical_power),
            tip_speed_ratio=tsr,
        )

    @classmethod
    def from_config(cls, config: ControllerConfig, rotor_radius: float) -> "VariableSpeedController":
        """
        Create VariableSpeedController from ControllerConfig.

        Parameters
        ----------
        config : ControllerConfig
            Controller configuration object.
        rotor_radius : float
            Rotor radius [m].

        Returns
        -------
        VariableSpeedController
            Configured controller.
        """
        params = ControllerParams(
            rated_power=config.rated_power,
            speed_setpoint=config.speed_setpoint,
            max_speed=config.max_speed,
            min_speed=config.min_speed,
            optimal_tsr=config.optimal_tsr,
            max_dp_dn=config.max_dp_dn,
            rotor_radius=rotor_radius,
            min_wind_speed=config.min_wind_speed,
            max_wind_speed=config.max_wind_speed,
            power_mode=PowerMode(config.power_mode),
            power_speed_table=config.power_speed_table,
        )
        if config.efficiency_table:
            table = np.asarray(config.efficiency_table, dtype=np.float64)
            efficiency = TableEfficiency(table[:, 0], table[:, 1])
        else:
            efficiency = ConstantEfficiency(config.efficiency)
        schedule = StandardPitchSchedule(
            config.base_pitch, config.pitch_breakpoints, config.pitch_deltas
        )
        return cls(params, schedule, efficiency)

    def __repr__(self) -> str:
        p = self.params
        return (
            f"VariableSpeedController(mode={p.power_mode.value}, "
            f"rated_power={p.rated_power:.2e}, "
            f"speed=[{p.min_speed:.2f}, {p.max_speed:.2f}] rpm, "
            f"optimal_tsr={p.optimal_tsr:.2f})"
        )
