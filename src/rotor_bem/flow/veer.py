"""Wind veer: rotation of the inflow direction with height."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from ..core.transforms import rotation_matrix


@dataclass(frozen=True)
class VeerInput:
    height: float
    hub_height: float


class VeerModel(ABC):
    @abstractmethod
    def apply(self, inp: VeerInput, velocity: np.ndarray) -> np.ndarray:
        """Return ``velocity`` rotated for the height in ``inp``."""


class NoVeer(VeerModel):
    def apply(self, inp: VeerInput, velocity: np.ndarray) -> np.ndarray:
        return velocity


class LinearVeerModel(VeerModel):
    """
    Direction change linear in height about the vertical axis.

    Parameters
    ----------
    veer_rate : float
        Direction change per rotor radius of height [deg].
    rotor_radius : float
        Rotor radius used to scale ``veer_rate`` [m].

    Notes
    -----
    Points above the hub are turned by ``-rate * (z - h_hub)`` (clockwise
    seen from above).
    """

    def __init__(self, veer_rate: float, rotor_radius: float):
        if rotor_radius <= 0:
            raise ValueError(f"rotor_radius must be positive: {rotor_radius}")
        self.veer_rate = veer_rate
        self.rotor_radius = rotor_radius
        self.rate = np.radians(veer_rate) / rotor_radius

    def angle(self, inp: VeerInput) -> float:
        """Veer angle at the given height [rad]."""
        return -self.rate * (inp.height - inp.hub_height)

    def apply(self, inp: VeerInput, velocity: np.ndarray) -> np.ndarray:
        return rotation_matrix("z", self.angle(inp)) @ velocity
