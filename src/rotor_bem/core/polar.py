"""
Airfoil polar lookup.

A polar maps (Reynolds number, Mach number, angle of attack) to the lift,
drag and pitching-moment coefficients of a section. Polars are immutable
after construction and safe to share between solver threads.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

import numpy as np


class AirfoilPolar(ABC):
    """Strategy interface for section coefficient lookup."""

    #: Airfoil name used in logs and configuration
    name: str = "airfoil"

    @abstractmethod
    def coefficients(self, reynolds: float, mach: float, alpha: float) -> Tuple[float, float, float]:
        """
        Look up section coefficients.

        Parameters
        ----------
        reynolds : float
            Chord Reynolds number [-].
        mach : float
            Mach number [-].
        alpha : float
            Angle of attack [rad].

        Returns
        -------
        cl, cd, cm : float
            Lift, drag and pitching-moment coefficients.
        """


def wrap_angle(alpha: float) -> float:
    """Wrap an angle [rad] into [-pi, pi)."""
    return (alpha + np.pi) % (2.0 * np.pi) - np.pi


class TabulatedPolar(AirfoilPolar):
    """
    Single-Reynolds polar table with linear interpolation in alpha.

    Parameters
    ----------
    alpha : Sequence[float]
        Angles of attack [deg], strictly increasing.
    cl, cd : Sequence[float]
        Lift and drag coefficients at ``alpha``.
    cm : Sequence[float], optional
        Pitching-moment coefficients; zero if omitted.
    name : str
        Airfoil name.

    Notes
    -----
    Angles outside the table are clamped to the first/last entry, so tables
    meant for the full operating range should cover [-180, 180] degrees.
    """

    def __init__(
        self,
        alpha: Sequence[float],
        cl: Sequence[float],
        cd: Sequence[float],
        cm: Optional[Sequence[float]] = None,
        name: str = "airfoil",
    ):
        self.name = name
        self.alpha = np.radians(np.asarray(alpha, dtype=np.float64))
        self.cl = np.asarray(cl, dtype=np.float64)
        self.cd = np.asarray(cd, dtype=np.float64)
        self.cm = (
            np.zeros_like(self.alpha) if cm is None else np.asarray(cm, dtype=np.float64)
        )
        self._validate()

        for arr in (self.alpha, self.cl, self.cd, self.cm):
            arr.setflags(write=False)

    def _validate(self) -> None:
        n = len(self.alpha)
        if n < 2:
            raise ValueError(f"Polar '{self.name}' needs at least 2 alpha entries, got {n}")
        for label, arr in (("cl", self.cl), ("cd", self.cd), ("cm", self.cm)):
            if len(arr) != n:
                raise ValueError(
                    f"Polar '{self.name}': {label} has {len(arr)} entries, expected {n}"
                )
        if np.any(np.diff(self.alpha) <= 0):
            raise ValueError(f"Polar '{self.name}': alpha must be strictly increasing")

    def coefficients(self, reynolds: float, mach: float, alpha: float) -> Tuple[float, float, float]:
        a = wrap_angle(alpha)
        return (
            float(np.interp(a, self.alpha, self.cl)),
            float(np.interp(a, self.alpha, self.cd)),
            float(np.interp(a, self.alpha, self.cm)),
        )

    def __repr__(self) -> str:
        return (
            f"TabulatedPolar(name={self.name!r}, "
            f"alpha=[{np.degrees(self.alpha[0]):.1f}, {np.degrees(self.alpha[-1]):.1f}] deg, "
            f"n={len(self.alpha)})"
        )


class ReynoldsPolarSet(AirfoilPolar):
    """
    Family of polars of one airfoil at several Reynolds numbers.

    Coefficients are blended linearly between the two tables bracketing the
    requested Reynolds number; outside the covered range the nearest table
    is used.

    Parameters
    ----------
    polars : Dict[float, TabulatedPolar]
        Tables keyed by Reynolds number.
    name : str
        Airfoil name.
    """

    def __init__(self, polars: Dict[float, TabulatedPolar], name: str = "airfoil"):
        if not polars:
            raise ValueError(f"Polar set '{name}' is empty")
        self.name = name
        self.reynolds = np.array(sorted(polars), dtype=np.float64)
        self.tables = [polars[re] for re in sorted(polars)]
        if np.any(self.reynolds <= 0):
            raise ValueError(f"Polar set '{name}': Reynolds numbers must be positive")

    def coefficients(self, reynolds: float, mach: float, alpha: float) -> Tuple[float, float, float]:
        if len(self.tables) == 1 or reynolds <= self.reynolds[0]:
            return self.tables[0].coefficients(reynolds, mach, alpha)
        if reynolds >= self.reynolds[-1]:
            return self.tables[-1].coefficients(reynolds, mach, alpha)

        j = int(np.searchsorted(self.reynolds, reynolds))
        re_lo, re_hi = self.reynolds[j - 1], self.reynolds[j]
        w = (reynolds - re_lo) / (re_hi - re_lo)
        lo = self.tables[j - 1].coefficients(reynolds, mach, alpha)
        hi = self.tables[j].coefficients(reynolds, mach, alpha)
        return tuple((1.0 - w) * c_lo + w * c_hi for c_lo, c_hi in zip(lo, hi))


class FlatPlatePolar(AirfoilPolar):
    """
    Thin-airfoil flat plate: ``cl = lift_slope * alpha``, constant ``cd``.

    Parameters
    ----------
    cd : float
        Constant drag coefficient.
    lift_slope : float
        Lift-curve slope [1/rad], 2π by default.
    """

    def __init__(self, cd: float = 0.01, lift_slope: float = 2.0 * np.pi, name: str = "flat_plate"):
        if cd < 0:
            raise ValueError(f"Flat plate drag coefficient must be non-negative: {cd}")
        self.cd = float(cd)
        self.lift_slope = float(lift_slope)
        self.name = name

    def coefficients(self, reynolds: float, mach: float, alpha: float) -> Tuple[float, float, float]:
        return self.lift_slope * alpha, self.cd, 0.0

    def __repr__(self) -> str:
        return f"FlatPlatePolar(cd={self.cd}, lift_slope={self.lift_slope:.4f})"
