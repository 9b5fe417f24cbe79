"""Pitch scheduling over electrical power."""

from typing import Sequence

import numpy as np


class StandardPitchSchedule:
    """
    Base pitch plus a piecewise-linear offset in electrical power.

    Between breakpoint ``P_i`` and ``P_{i+1}`` the offset grows by
    ``delta_i`` degrees per 100 kW; above the last breakpoint the last
    ``delta`` continues. Below the first breakpoint the offset is zero.

    Parameters
    ----------
    base_pitch : float
        Pitch at zero offset [deg].
    power_breakpoints : Sequence[float]
        Electrical power breakpoints [W], strictly increasing.
    deltas : Sequence[float]
        Pitch rate of each segment [deg per 100 kW].
    """

    #: Power normalisation of the pitch rates [W]
    POWER_UNIT: float = 1.0e5

    def __init__(
        self,
        base_pitch: float,
        power_breakpoints: Sequence[float],
        deltas: Sequence[float],
    ):
        self.base_pitch = float(base_pitch)
        self.power_breakpoints = np.asarray(power_breakpoints, dtype=np.float64)
        self.deltas = np.asarray(deltas, dtype=np.float64)
        if len(self.power_breakpoints) == 0:
            raise ValueError("Pitch schedule needs at least one breakpoint")
        if len(self.power_breakpoints) != len(self.deltas):
            raise ValueError(
                f"Pitch schedule breakpoints ({len(self.power_breakpoints)}) and "
                f"deltas ({len(self.deltas)}) must have equal length"
            )
        if np.any(np.diff(self.power_breakpoints) <= 0):
            raise ValueError("Pitch schedule breakpoints must be strictly increasing")

    def offset(self, electrical_power: float) -> float:
        """Pitch offset [deg] at ``electrical_power`` [W]."""
        upper = np.append(self.power_breakpoints[1:], np.inf)
        covered = np.clip(electrical_power, self.power_breakpoints, upper) - self.power_breakpoints
        return float(np.sum(covered / self.POWER_UNIT * self.deltas))

    def pitch(self, electrical_power: float) -> float:
        """Scheduled pitch [deg] at ``electrical_power`` [W]."""
        return self.base_pitch + self.offset(electrical_power)

    def __repr__(self) -> str:
        return (
            f"StandardPitchSchedule(base_pitch={self.base_pitch}, "
            f"segments={len(self.power_breakpoints)})"
        )
