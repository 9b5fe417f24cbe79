"""
Rotor analysis: geometry, inflow, BEM, controller and AEP wired together.

Example
-------
::

    config = RotorSimulationConfig.from_yaml("rotor.yaml")
    analysis = RotorAnalysis.from_config(config)

    cp, ct = analysis.rotor_coefficients(wind_speed=8.0, tip_speed_ratio=7.5, pitch=0.0)
    curve = analysis.power_curve()
    aep = analysis.annual_energy(curve)
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..control.controller import TurbineController, VariableSpeedController
from ..control.operation import OperationSolver, OperationSolverParams, PowerCurvePoint
from ..core.config import AEPConfig, AirfoilConfig, BEMSettings, OperationConfig, RotorSimulationConfig
from ..core.geometry import BladeSection, TurbineGeometry
from ..core.polar import AirfoilPolar, FlatPlatePolar, ReynoldsPolarSet, TabulatedPolar
from ..flow.calculator import FlowCalculatorFactory
from ..solvers.bem import BEMSolver, SolverResult
from ..solvers.postprocessor import BEMPostprocessor, PostprocessResult
from .aep import AEPCalculator, AEPResult

logger = logging.getLogger(__name__)


def build_polar(config: AirfoilConfig) -> AirfoilPolar:
    """Polar strategy for an airfoil configuration."""
    if config.flat_plate:
        return FlatPlatePolar(config.cd, config.lift_slope, name=config.name)
    if config.tables:
        return ReynoldsPolarSet(
            {
                float(t["reynolds"]): TabulatedPolar(
                    t["alpha"], t["cl"], t["cd"], t.get("cm"), name=config.name
                )
                for t in config.tables
            },
            name=config.name,
        )
    return TabulatedPolar(config.alpha, config.cl, config.cd_table, config.cm, name=config.name)


def build_geometry(config: RotorSimulationConfig) -> TurbineGeometry:
    """Configured geometry with precomputed rotation matrices."""
    polars = {name: build_polar(af) for name, af in config.airfoils.items()}
    polars.setdefault("flat_plate", FlatPlatePolar())

    sections = [
        BladeSection(
            radius=s.radius,
            chord=s.chord,
            twist=np.radians(s.twist),
            polar=polars[s.airfoil],
            aero_centre_x=s.aero_centre_x,
            aero_centre_y=s.aero_centre_y,
            airfoil=s.airfoil,
        )
        for s in config.blade
    ]
    g = config.geometry
    geometry = TurbineGeometry(sections)
    geometry.configure(
        hub_radius=g.hub_radius,
        cone=g.cone,
        yaw=g.yaw,
        tilt=g.tilt,
        tower_distance=g.tower_distance,
        hub_height=g.hub_height,
        num_blades=g.num_blades,
    )
    geometry.precompute_rotation_matrices()
    return geometry


class RotorAnalysis:
    """
    Steady rotor performance analysis.

    Parameters
    ----------
    geometry : TurbineGeometry
        Configured geometry with precomputed rotation matrices.
    settings : BEMSettings, optional
        Solver settings.
    flow_factory : FlowCalculatorFactory, optional
        Inflow construction; uniform inflow without shear if omitted.
    controller : TurbineController, optional
        Required for :meth:`power_curve`.
    operation : OperationConfig, optional
        Sweep and outer-loop settings.
    aep : AEPConfig, optional
        Wind climate.
    """

    def __init__(
        self,
        geometry: TurbineGeometry,
        settings: Optional[BEMSettings] = None,
        flow_factory: Optional[FlowCalculatorFactory] = None,
        controller: Optional[TurbineController] = None,
        operation: Optional[OperationConfig] = None,
        aep: Optional[AEPConfig] = None,
    ):
        self.geometry = geometry
        self.settings = settings if settings is not None else BEMSettings()
        self.flow_factory = flow_factory if flow_factory is not None else FlowCalculatorFactory()
        self.controller = controller
        self.operation = operation if operation is not None else OperationConfig()
        self.aep = aep if aep is not None else AEPConfig()

    @classmethod
    def from_config(cls, config: RotorSimulationConfig) -> "RotorAnalysis":
        geometry = build_geometry(config)
        logger.info("Built %s", geometry)
        return cls(
            geometry,
            settings=config.solver,
            flow_factory=FlowCalculatorFactory(config.flow),
            controller=VariableSpeedController.from_config(config.controller, geometry.rotor_radius),
            operation=config.operation,
            aep=config.aep,
        )

    # =========================================================================
    # Single operating point
    # =========================================================================

    def build_solver(
        self, wind_speed: float, tip_speed_ratio: float, pitch: float, azimuth: float = 0.0
    ) -> BEMSolver:
        """
        Solver for one operating point. ``pitch`` and ``azimuth`` in degrees.
        """
        rotation_rate = tip_speed_ratio * wind_speed / self.geometry.rotor_radius
        psi = np.radians(azimuth)
        flow = self.flow_factory.build(self.geometry, rotation_rate, wind_speed, psi)
        return BEMSolver(self.geometry, flow, self.settings, pitch=np.radians(pitch), azimuth=psi)

    def solve_operating_point(
        self, wind_speed: float, tip_speed_ratio: float, pitch: float, azimuth: float = 0.0
    ) -> Tuple[BEMSolver, SolverResult]:
        solver = self.build_solver(wind_speed, tip_speed_ratio, pitch, azimuth)
        solver.solve()
        return solver, solver.result

    def rotor_coefficients(
        self,
        wind_speed: float,
        tip_speed_ratio: float,
        pitch: float,
        azimuth: Optional[float] = None,
    ) -> Tuple[float, float]:
        """
        Rotor ``(cp, ct)`` at one operating point.

        Without an explicit ``azimuth`` [deg], the coefficients are averaged
        over ``operation.n_sectors`` equally spaced azimuths starting at
        ``operation.azimuth``. A failed solve contributes zero.
        """
        if azimuth is not None:
            azimuths = [azimuth]
        else:
            n = self.operation.n_sectors
            azimuths = self.operation.azimuth + 360.0 / n * np.arange(n)

        cp_sum = 0.0
        ct_sum = 0.0
        for psi in azimuths:
            solver = self.build_solver(wind_speed, tip_speed_ratio, pitch, psi)
            if not solver.solve():
                logger.warning(
                    "BEM failed at v=%.2f m/s, TSR=%.3f, pitch=%.2f deg, psi=%.1f deg",
                    wind_speed,
                    tip_speed_ratio,
                    pitch,
                    psi,
                )
                continue
            cp_sum += solver.result.cp
            ct_sum += solver.result.ct
        return cp_sum / len(azimuths), ct_sum / len(azimuths)

    def section_loads(
        self, wind_speed: float, tip_speed_ratio: float, pitch: float, azimuth: float = 0.0
    ) -> Optional[PostprocessResult]:
        solver, _ = self.solve_operating_point(wind_speed, tip_speed_ratio, pitch, azimuth)
        return BEMPostprocessor(self.settings.air_density).process(solver)

    # =========================================================================
    # Power curve and energy yield
    # =========================================================================

    def operation_solver(self) -> OperationSolver:
        if self.controller is None:
            raise ValueError("A controller is required for power-curve computation")
        op = self.operation
        params = OperationSolverParams(
            air_density=self.settings.air_density,
            rotor_radius=self.geometry.rotor_radius,
            min_iterations=op.min_iterations,
            max_iterations=op.max_iterations,
            power_tolerance=op.power_tolerance,
            relaxation=op.relaxation,
        )
        return OperationSolver(params, self.controller, self.rotor_coefficients)

    def power_curve(
        self,
        pitch: Optional[float] = None,
        wind_speeds: Optional[Sequence[float]] = None,
        max_workers: Optional[int] = None,
    ) -> List[PowerCurvePoint]:
        """Power curve over the configured (or given) wind speeds."""
        op = self.operation
        pitch = op.pitch if pitch is None else pitch
        wind_speeds = op.wind_speeds() if wind_speeds is None else wind_speeds
        max_workers = op.max_workers if max_workers is None else max_workers
        return self.operation_solver().run(pitch, wind_speeds, max_workers=max_workers)

    def aep_calculator(self, curve: Sequence[PowerCurvePoint]) -> AEPCalculator:
        cfg = self.aep
        return AEPCalculator(
            [p.wind_speed for p in curve],
            [p.electrical_power for p in curve],
            bin_width=cfg.bin_width,
            weibull_k=cfg.weibull_k,
            energy_price=cfg.energy_price,
            bin_start=cfg.bin_start,
            bin_end=cfg.bin_end,
            hours_per_year=cfg.hours_per_year,
        )

    def annual_energy(
        self,
        curve: Sequence[PowerCurvePoint],
        mean_wind_speeds: Optional[Sequence[float]] = None,
    ) -> List[AEPResult]:
        speeds = self.aep.mean_wind_speeds if mean_wind_speeds is None else mean_wind_speeds
        return self.aep_calculator(curve).compute_range(speeds)
