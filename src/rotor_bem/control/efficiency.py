"""Drivetrain efficiency models."""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class EfficiencyModel(ABC):
    @abstractmethod
    def efficiency(self, mechanical_power: float) -> float:
        """Electrical / mechanical power ratio at ``mechanical_power`` [W]."""


class ConstantEfficiency(EfficiencyModel):
    def __init__(self, eta: float = 0.85):
        if not 0.0 < eta <= 1.0:
            raise ValueError(f"Efficiency must be in (0, 1]: {eta}")
        self.eta = eta

    def efficiency(self, mechanical_power: float) -> float:
        return self.eta

    def __repr__(self) -> str:
        return f"ConstantEfficiency(eta={self.eta})"


class TableEfficiency(EfficiencyModel):
    """
    Efficiency interpolated linearly over mechanical power.

    Parameters
    ----------
    power : Sequence[float]
        Mechanical power breakpoints [W], strictly increasing.
    eta : Sequence[float]
        Efficiency at each breakpoint; held constant beyond the table.
    """

    def __init__(self, power: Sequence[float], eta: Sequence[float]):
        self.power = np.asarray(power, dtype=np.float64)
        self.eta = np.asarray(eta, dtype=np.float64)
        if len(self.power) == 0 or len(self.power) != len(self.eta):
            raise ValueError(
                f"Efficiency table needs matching non-empty columns, "
                f"got {len(self.power)} powers and {len(self.eta)} efficiencies"
            )
        if np.any(np.diff(self.power) <= 0):
            raise ValueError("Efficiency table power must be strictly increasing")
        if np.any((self.eta <= 0) | (self.eta > 1)):
            raise ValueError("Efficiency table values must be in (0, 1]")

    def efficiency(self, mechanical_power: float) -> float:
        return float(np.interp(mechanical_power, self.power, self.eta))

    def __repr__(self) -> str:
        return f"TableEfficiency(points={len(self.power)})"
