"""
Per-section inflow at one rotor azimuth.

A :class:`FlowCalculator` is built for one (geometry, rotation rate,
azimuth, inflow) combination. Construction evaluates the complete field, so
the object is read-only afterwards and may be shared between threads.
"""

import logging
import sys
from typing import Optional, Tuple

import numpy as np

from ..core.config import FlowConfig, ShearType
from ..core.geometry import TurbineGeometry
from .inlet import InletProvider, TurbulenceField, TurbulentInletProvider, UniformInletProvider
from .shear import (
    DiabaticShearModel,
    LogShearModel,
    PowerLawShearModel,
    ShearInput,
    ShearModel,
)
from .veer import LinearVeerModel, NoVeer, VeerInput, VeerModel

logger = logging.getLogger(__name__)

#: Smallest magnitude returned for a local speed ratio
LAMBDA_EPS = sys.float_info.epsilon


class FlowCalculator:
    """
    Blade-local velocity field for every section.

    The field is built in four steps:

    1. inlet wind at each section's world position,
    2. shear replaces the axial (x) component,
    3. veer turns the vector about the vertical axis,
    4. rotation into the blade-local frame plus ``Ω r_perp`` on the
       tangential (y) component.

    Parameters
    ----------
    geometry : TurbineGeometry
        Configured geometry with precomputed rotation matrices.
    rotation_rate : float
        Rotor speed Ω [rad/s].
    azimuth : float
        Blade azimuth ψ [rad].
    inlet : InletProvider
        Undisturbed inflow.
    shear : ShearModel, optional
        Vertical profile; ``None`` keeps the inlet's axial component.
    veer : VeerModel, optional
        Direction change with height; ``None`` means no veer.

    Attributes
    ----------
    global_velocities : np.ndarray
        World-frame wind at each section, shape (n_sections, 3) [m/s].
    local_velocities : np.ndarray
        Blade-local relative inflow, shape (n_sections, 3) [m/s].
    """

    def __init__(
        self,
        geometry: TurbineGeometry,
        rotation_rate: float,
        azimuth: float,
        inlet: InletProvider,
        shear: Optional[ShearModel] = None,
        veer: Optional[VeerModel] = None,
    ):
        if geometry is None or inlet is None:
            raise ValueError("FlowCalculator requires a geometry and an inlet provider")

        self.geometry = geometry
        self.rotation_rate = float(rotation_rate)
        self.azimuth = float(azimuth)
        self.inlet = inlet
        self.shear = shear
        self.veer = veer if veer is not None else NoVeer()

        self._positions = geometry.global_positions_at_azimuth(self.azimuth)

        velocities = self._inlet_field()
        velocities = self._apply_shear(velocities)
        velocities = self._apply_veer(velocities)
        self.global_velocities = velocities
        self.local_velocities = self._to_blade_local(velocities)

        self.global_velocities.setflags(write=False)
        self.local_velocities.setflags(write=False)

    def _inlet_field(self) -> np.ndarray:
        return np.array([self.inlet.velocity_at(p) for p in self._positions], dtype=np.float64)

    def _apply_shear(self, velocities: np.ndarray) -> np.ndarray:
        if self.shear is None:
            return velocities
        hub_height = self.geometry.hub_height
        hub_velocity = self.inlet.hub_velocity
        for i, position in enumerate(self._positions):
            velocities[i, 0] = self.shear.velocity(
                ShearInput(height=position[2], hub_height=hub_height, hub_velocity=hub_velocity)
            )
        return velocities

    def _apply_veer(self, velocities: np.ndarray) -> np.ndarray:
        hub_height = self.geometry.hub_height
        for i, position in enumerate(self._positions):
            velocities[i] = self.veer.apply(
                VeerInput(height=position[2], hub_height=hub_height), velocities[i]
            )
        return velocities

    def _to_blade_local(self, velocities: np.ndarray) -> np.ndarray:
        a14 = self.geometry.world_to_blade_local_matrix(self.azimuth)
        local = velocities @ a14.T
        # Distance to the shaft axis is the hub-frame z at zero azimuth
        r_perp = self.geometry.hub_relative_positions_at_azimuth(0.0)[:, 2]
        local[:, 1] += self.rotation_rate * r_perp
        return local

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def num_sections(self) -> int:
        return self.local_velocities.shape[0]

    @property
    def v_inf(self) -> float:
        """Free-stream hub-height speed [m/s]."""
        return self.inlet.hub_velocity

    @property
    def tip_speed_ratio(self) -> float:
        """Ω R / v_inf, zero in still air."""
        if self.v_inf <= 0:
            return 0.0
        return self.rotation_rate * self.geometry.rotor_radius / self.v_inf

    def blade_local_velocities(self, i: int) -> Tuple[float, float]:
        """Return ``(axial, tangential)`` inflow of section ``i`` [m/s]."""
        return float(self.local_velocities[i, 0]), float(self.local_velocities[i, 1])

    def local_lambda(self, i: int) -> float:
        """Local speed ratio tangential / axial of section ``i``."""
        axial, tangential = self.blade_local_velocities(i)
        if axial == 0.0:
            return LAMBDA_EPS
        lam = tangential / axial
        if abs(lam) < LAMBDA_EPS:
            return LAMBDA_EPS
        return lam

    def __repr__(self) -> str:
        return (
            f"FlowCalculator(v_inf={self.v_inf:.3f} m/s, omega={self.rotation_rate:.4f} rad/s, "
            f"psi={np.degrees(self.azimuth):.1f} deg, sections={self.num_sections})"
        )


class FlowCalculatorFactory:
    """
    Build flow calculators from a :class:`FlowConfig`.

    Parameters
    ----------
    config : FlowConfig
        Shear and veer settings.
    """

    def __init__(self, config: Optional[FlowConfig] = None):
        self.config = config if config is not None else FlowConfig()

    def shear_model(self, v_inf: float) -> Optional[ShearModel]:
        """Shear strategy for the configured type, ``None`` for uniform inflow."""
        cfg = self.config
        shear = ShearType(cfg.shear)
        if shear == ShearType.NONE:
            return None
        elif shear == ShearType.LOG:
            return LogShearModel(
                cfg.surface_roughness,
                reference_velocity=cfg.reference_velocity,
                reference_height=cfg.reference_height,
                use_reference=cfg.use_reference,
            )
        elif shear == ShearType.POWER_LAW:
            return PowerLawShearModel(
                cfg.shear_exponent,
                reference_velocity=cfg.reference_velocity,
                reference_height=cfg.reference_height,
                use_reference=cfg.use_reference,
            )
        elif shear == ShearType.DIABATIC:
            return DiabaticShearModel(cfg.surface_roughness, cfg.obukhov_length)
        raise ValueError(f"Unsupported shear type: {cfg.shear}")

    def veer_model(self, geometry: TurbineGeometry) -> VeerModel:
        if self.config.veer:
            return LinearVeerModel(self.config.veer_rate, geometry.rotor_radius)
        return NoVeer()

    def build(
        self,
        geometry: TurbineGeometry,
        rotation_rate: float,
        v_inf: float,
        azimuth: float = 0.0,
    ) -> FlowCalculator:
        """Calculator for uniform inflow ``v_inf`` with configured shear/veer."""
        return FlowCalculator(
            geometry,
            rotation_rate,
            azimuth,
            UniformInletProvider(v_inf),
            shear=self.shear_model(v_inf),
            veer=self.veer_model(geometry),
        )

    def build_turbulent(
        self,
        geometry: TurbineGeometry,
        rotation_rate: float,
        azimuth: float,
        field: TurbulenceField,
        time_index: int,
    ) -> FlowCalculator:
        """Calculator reading one frame of a turbulence field, without shear or veer."""
        return FlowCalculator(
            geometry,
            rotation_rate,
            azimuth,
            TurbulentInletProvider(field, time_index),
        )
