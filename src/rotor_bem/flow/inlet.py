"""
Inlet wind providers.

An inlet provider gives the undisturbed wind vector at a world position,
before shear and veer are applied.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from scipy.interpolate import RegularGridInterpolator


class InletProvider(ABC):
    """Strategy interface for the inlet field."""

    @abstractmethod
    def velocity_at(self, position: np.ndarray) -> np.ndarray:
        """Wind vector [m/s] at a world position [m]."""

    @property
    @abstractmethod
    def hub_velocity(self) -> float:
        """Free-stream reference speed at hub height [m/s]."""


class UniformInletProvider(InletProvider):
    """Constant wind ``(v_inf, 0, 0)`` everywhere."""

    def __init__(self, v_inf: float):
        if v_inf < 0:
            raise ValueError(f"Inflow velocity must be non-negative: {v_inf}")
        self.v_inf = float(v_inf)

    def velocity_at(self, position: np.ndarray) -> np.ndarray:
        return np.array([self.v_inf, 0.0, 0.0])

    @property
    def hub_velocity(self) -> float:
        return self.v_inf


@dataclass
class TurbulenceField:
    """
    Time series of wind vectors on a rectangular (y, z) grid.

    Attributes
    ----------
    y, z : np.ndarray
        Strictly increasing lateral and vertical grid coordinates [m].
    velocities : np.ndarray
        Wind vectors, shape (n_steps, n_z, n_y, 3) [m/s].
    hub_velocity : float
        Mean hub-height speed [m/s].
    timestep : float
        Time between stored frames [s].
    """

    y: np.ndarray
    z: np.ndarray
    velocities: np.ndarray
    hub_velocity: float
    timestep: float = 0.05

    def __post_init__(self):
        self.y = np.asarray(self.y, dtype=np.float64)
        self.z = np.asarray(self.z, dtype=np.float64)
        self.velocities = np.asarray(self.velocities, dtype=np.float64)
        if self.velocities.ndim != 4 or self.velocities.shape[-1] != 3:
            raise ValueError(
                f"velocities must have shape (n_steps, n_z, n_y, 3), got {self.velocities.shape}"
            )
        if self.velocities.shape[1:3] != (len(self.z), len(self.y)):
            raise ValueError(
                f"velocities grid {self.velocities.shape[1:3]} does not match "
                f"z/y lengths ({len(self.z)}, {len(self.y)})"
            )
        for label, axis in (("y", self.y), ("z", self.z)):
            if len(axis) < 2 or np.any(np.diff(axis) <= 0):
                raise ValueError(f"Grid coordinate {label} must be strictly increasing")
        if self.hub_velocity < 0:
            raise ValueError(f"hub_velocity must be non-negative: {self.hub_velocity}")
        if self.timestep <= 0:
            raise ValueError(f"timestep must be positive: {self.timestep}")

    @property
    def num_steps(self) -> int:
        return self.velocities.shape[0]

    def step_index(self, time: float) -> int:
        """Frame index for a time [s], clamped to the stored range."""
        return int(np.clip(round(time / self.timestep), 0, self.num_steps - 1))


class TurbulentInletProvider(InletProvider):
    """
    Inlet from one frame of a :class:`TurbulenceField`.

    Positions are interpolated bilinearly in the (y, z) plane; points outside
    the grid take the value at the nearest edge.
    """

    def __init__(self, field: TurbulenceField, time_index: int):
        if not 0 <= time_index < field.num_steps:
            raise ValueError(
                f"time_index {time_index} out of range [0, {field.num_steps - 1}]"
            )
        self.field = field
        self.time_index = time_index
        self._interpolator = RegularGridInterpolator(
            (field.z, field.y), field.velocities[time_index], method="linear"
        )

    def velocity_at(self, position: np.ndarray) -> np.ndarray:
        z = np.clip(position[2], self.field.z[0], self.field.z[-1])
        y = np.clip(position[1], self.field.y[0], self.field.y[-1])
        return self._interpolator([[z, y]])[0]

    @property
    def hub_velocity(self) -> float:
        return self.field.hub_velocity
