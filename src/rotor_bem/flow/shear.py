"""
Vertical wind-shear profiles.

Each model maps a height to the axial (x) inflow velocity given the hub
height and hub velocity. Models are immutable and thread-safe.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

#: von Kármán constant
KARMAN = 0.4
#: Lowest height a power-law profile is evaluated at [m]
MIN_POWER_LAW_HEIGHT = 1e-3


@dataclass(frozen=True)
class ShearInput:
    """Height of the evaluation point plus hub reference values."""

    height: float
    hub_height: float
    hub_velocity: float


class ShearModel(ABC):
    """Strategy interface for vertical shear."""

    @abstractmethod
    def velocity(self, inp: ShearInput) -> float:
        """Axial wind speed at ``inp.height`` [m/s]."""


class _ReferencedShear(ShearModel):
    """Shared handling of an explicit reference point vs. the hub."""

    def __init__(
        self,
        reference_velocity: Optional[float] = None,
        reference_height: Optional[float] = None,
        use_reference: bool = False,
    ):
        if use_reference:
            if reference_velocity is None or reference_height is None:
                raise ValueError(
                    "use_reference requires reference_velocity and reference_height"
                )
            if reference_height <= 0:
                raise ValueError(f"reference_height must be positive: {reference_height}")
        self.reference_velocity = reference_velocity
        self.reference_height = reference_height
        self.use_reference = use_reference

    def _reference(self, inp: ShearInput) -> Tuple[float, float]:
        if self.use_reference:
            return self.reference_velocity, self.reference_height
        return inp.hub_velocity, inp.hub_height


class LogShearModel(_ReferencedShear):
    """
    Logarithmic profile ``v = v_ref ln(z/z0) / ln(z_ref/z0)``.

    Parameters
    ----------
    surface_roughness : float
        Roughness length z0 [m], must be positive.
    """

    def __init__(
        self,
        surface_roughness: float,
        reference_velocity: Optional[float] = None,
        reference_height: Optional[float] = None,
        use_reference: bool = False,
    ):
        super().__init__(reference_velocity, reference_height, use_reference)
        if surface_roughness <= 0:
            raise ValueError(f"surface_roughness must be positive: {surface_roughness}")
        self.surface_roughness = surface_roughness

    def velocity(self, inp: ShearInput) -> float:
        v_ref, z_ref = self._reference(inp)
        z0 = self.surface_roughness
        z = max(inp.height, z0)
        return v_ref * np.log(z / z0) / np.log(z_ref / z0)


class PowerLawShearModel(_ReferencedShear):
    """
    Power-law profile ``v = v_ref (z / z_ref)^alpha``.

    An exponent of zero gives uniform inflow. Heights below
    ``MIN_POWER_LAW_HEIGHT`` are evaluated there.
    """

    def __init__(
        self,
        exponent: float,
        reference_velocity: Optional[float] = None,
        reference_height: Optional[float] = None,
        use_reference: bool = False,
    ):
        super().__init__(reference_velocity, reference_height, use_reference)
        self.exponent = exponent

    def velocity(self, inp: ShearInput) -> float:
        v_ref, z_ref = self._reference(inp)
        if self.exponent == 0.0:
            return v_ref
        z = max(inp.height, MIN_POWER_LAW_HEIGHT)
        return v_ref * (z / z_ref) ** self.exponent


class DiabaticShearModel(ShearModel):
    """
    Monin–Obukhov profile with stability correction.

    ``u* = v_hub κ / (ln(h_hub/z0) − Ψ(h_hub))``, ``v(z) = u*/κ (ln(z/z0) − Ψ(z))``.

    Parameters
    ----------
    surface_roughness : float
        Roughness length z0 [m], must be positive.
    obukhov_length : float
        Obukhov length L [m]; negative unstable, positive stable, 0 neutral.
    """

    def __init__(self, surface_roughness: float, obukhov_length: float):
        if surface_roughness <= 0:
            raise ValueError(f"surface_roughness must be positive: {surface_roughness}")
        self.surface_roughness = surface_roughness
        self.obukhov_length = obukhov_length

    def stability_correction(self, height: float) -> float:
        """Ψ(z) for the configured Obukhov length."""
        L = self.obukhov_length
        if L < 0:
            x = (1.0 - 16.0 * height / L) ** 0.25
            return (
                2.0 * np.log((1.0 + x) / 2.0)
                + np.log((1.0 + x * x) / 2.0)
                - 2.0 * np.arctan(x)
                + np.pi / 2.0
            )
        if L > 0:
            return -5.0 * height / L
        return 0.0

    def velocity(self, inp: ShearInput) -> float:
        z0 = self.surface_roughness
        z = max(inp.height, z0)
        friction_velocity = (
            inp.hub_velocity
            * KARMAN
            / (np.log(inp.hub_height / z0) - self.stability_correction(inp.hub_height))
        )
        return friction_velocity / KARMAN * (np.log(z / z0) - self.stability_correction(z))
