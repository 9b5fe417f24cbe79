"""
Power-curve outer loop.

For each wind speed the controller and the BEM solver are iterated until the
electrical power settles: the controller turns a power estimate into tip
speed and pitch, BEM turns those into Cp and Ct, and the drivetrain turns
the aerodynamic power into the next electrical power estimate.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .controller import ControllerInput, TurbineController

logger = logging.getLogger(__name__)

#: ``(wind_speed [m/s], tip_speed_ratio, pitch [deg]) -> (cp, ct)``
BEMCallback = Callable[[float, float, float], Tuple[float, float]]


@dataclass
class OperationSolverParams:
    """
    Outer-loop settings.

    Attributes
    ----------
    air_density : float
        Air density [kg/m³].
    rotor_radius : float
        Rotor radius [m].
    min_iterations, max_iterations : int
        Iteration bounds per wind speed.
    power_tolerance : float
        Relative electrical-power change that counts as converged.
    relaxation : float
        Under-relaxation of tip speed and pitch updates, in (0, 1].
    """

    air_density: float
    rotor_radius: float
    min_iterations: int = 3
    max_iterations: int = 50
    power_tolerance: float = 1e-4
    relaxation: float = 0.5

    def __post_init__(self):
        if self.air_density <= 0:
            raise ValueError(f"air_density must be positive: {self.air_density}")
        if self.rotor_radius <= 0:
            raise ValueError(f"rotor_radius must be positive: {self.rotor_radius}")
        if not 1 <= self.min_iterations <= self.max_iterations:
            raise ValueError(
                f"Iterations must satisfy 1 <= min_iterations <= max_iterations: "
                f"{self.min_iterations}, {self.max_iterations}"
            )
        if not 0.0 < self.relaxation <= 1.0:
            raise ValueError(f"relaxation must be in (0, 1]: {self.relaxation}")


@dataclass
class PowerCurvePoint:
    """
    Converged operating point at one wind speed.

    Attributes
    ----------
    wind_speed : float
        Free-stream speed [m/s].
    tip_speed : float
        Blade tip speed [m/s].
    pitch : float
        Blade pitch [deg].
    tip_speed_ratio : float
        Tip speed / wind speed.
    wind_power : float
        Power in the swept area ½ ρ π R² v³ [W].
    cp, ct : float
        Rotor power and thrust coefficients.
    aero_power : float
        Aerodynamic (shaft) power [W].
    rotor_speed : float
        Rotor speed [rpm].
    torque : float
        Shaft torque [N·m].
    efficiency : float
        Drivetrain efficiency.
    electrical_power : float
        Electrical power, limited to rated [W].
    iterations : int
        Outer iterations used.
    converged : bool
        False when the iteration cap was hit.
    """

    wind_speed: float
    tip_speed: float = 0.0
    pitch: float = 0.0
    tip_speed_ratio: float = 0.0
    wind_power: float = 0.0
    cp: float = 0.0
    aero_power: float = 0.0
    rotor_speed: float = 0.0
    torque: float = 0.0
    efficiency: float = 0.0
    electrical_power: float = 0.0
    ct: float = 0.0
    iterations: int = 0
    converged: bool = False


class OperationSolver:
    """
    Controller/BEM fixed-point iteration over a wind-speed sweep.

    Parameters
    ----------
    params : OperationSolverParams
        Loop settings.
    controller : TurbineController
        Turns wind speed and power estimate into tip speed and pitch.
    bem : BEMCallback
        Rotor coefficients for ``(wind_speed, tip_speed_ratio, pitch_deg)``.

    Example
    -------
    ::

        solver = OperationSolver(params, controller, analysis.rotor_coefficients)
        curve = solver.run(pitch=0.0, wind_speeds=np.arange(3.0, 26.0))
    """

    def __init__(
        self,
        params: OperationSolverParams,
        controller: TurbineController,
        bem: BEMCallback,
    ):
        self.params = params
        self.controller = controller
        self.bem = bem

    def wind_power(self, wind_speed: float) -> float:
        """Power in the swept area [W]."""
        R = self.params.rotor_radius
        return 0.5 * self.params.air_density * np.pi * R * R * wind_speed**3

    def initial_tip_speed(self, wind_speed: float) -> float:
        return self.controller.compute_operating_point(ControllerInput(wind_speed, 0.0)).tip_speed

    def run(
        self,
        pitch: float,
        wind_speeds: Sequence[float],
        max_workers: Optional[int] = None,
    ) -> List[PowerCurvePoint]:
        """
        Compute the power curve.

        Parameters
        ----------
        pitch : float
            Initial pitch [deg] of every wind speed.
        wind_speeds : Sequence[float]
            Wind speeds [m/s], positive.
        max_workers : int, optional
            Thread-pool size. Sequential runs warm-start each wind speed from
            the previous point's tip speed; parallel runs from the
            controller's zero-power operating point.

        Returns
        -------
        List[PowerCurvePoint]
            One point per wind speed, in input order.
        """
        wind_speeds = [float(v) for v in wind_speeds]
        if any(v <= 0 for v in wind_speeds):
            raise ValueError(f"Wind speeds must be positive: {wind_speeds}")
        if not wind_speeds:
            return []

        if max_workers is not None and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                points = list(
                    pool.map(
                        lambda v: self.solve_point(v, pitch, self.initial_tip_speed(v)),
                        wind_speeds,
                    )
                )
        else:
            points = []
            tip_speed = self.initial_tip_speed(wind_speeds[0])
            for v in wind_speeds:
                point = self.solve_point(v, pitch, tip_speed)
                tip_speed = point.tip_speed
                points.append(point)

        n_failed = sum(not p.converged for p in points)
        logger.info(
            "Power curve: %d wind speeds, %d not converged, max P_el=%.1f kW",
            len(points),
            n_failed,
            max(p.electrical_power for p in points) / 1e3,
        )
        return points

    def solve_point(self, wind_speed: float, pitch: float, tip_speed: float) -> PowerCurvePoint:
        """
        Iterate one wind speed to a settled electrical power.

        Parameters
        ----------
        wind_speed : float
            Free-stream speed [m/s].
        pitch : float
            Initial pitch [deg].
        tip_speed : float
            Initial (warm-start) tip speed [m/s].
        """
        prm = self.params
        relax = prm.relaxation
        p_rated = self.controller.rated_power
        p_wind = self.wind_power(wind_speed)
        R = prm.rotor_radius

        point = PowerCurvePoint(wind_speed=wind_speed, wind_power=p_wind)
        p_el = 0.0
        for iteration in range(1, prm.max_iterations + 1):
            command = self.controller.compute_operating_point(ControllerInput(wind_speed, p_el))
            tip_speed += relax * (command.tip_speed - tip_speed)
            pitch += relax * (command.pitch - pitch)
            tsr = tip_speed / wind_speed

            cp, ct = self.bem(wind_speed, tsr, pitch)
            p_aero = cp * p_wind
            omega = tip_speed / R
            eta = self.controller.efficiency(p_aero)
            p_el_new = min(eta * p_aero, p_rated)

            point.tip_speed = tip_speed
            point.pitch = pitch
            point.tip_speed_ratio = tsr
            point.cp = cp
            point.ct = ct
            point.aero_power = p_aero
            point.rotor_speed = omega * 60.0 / (2.0 * np.pi)
            point.torque = p_aero / omega if omega > 0 else 0.0
            point.efficiency = eta
            point.electrical_power = p_el_new
            point.iterations = iteration

            change = abs(p_el_new - p_el)
            p_el = p_el_new
            if iteration >= prm.min_iterations and change <= prm.power_tolerance * max(
                abs(p_el), 1.0
            ):
                point.converged = True
                break

        if not point.converged:
            logger.warning(
                "Operating point at v=%.2f m/s not converged after %d iterations "
                "(P_el=%.1f kW); keeping last iterate",
                wind_speed,
                prm.max_iterations,
                p_el / 1e3,
            )
        else:
            logger.debug(
                "v=%.2f m/s: TSR=%.3f, pitch=%.2f deg, Cp=%.4f, P_el=%.1f kW (%d it)",
                wind_speed,
                point.tip_speed_ratio,
                point.pitch,
                point.cp,
                point.electrical_power / 1e3,
                point.iterations,
            )
        return point
