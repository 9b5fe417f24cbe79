"""
Axial and tangential induction from the blade loading.

The models map the normalised loadings ``k = σ cn / (4 F sin²φ)`` and
``k_rot = σ ct / (4 F sin φ cos φ)`` to induction factors (Ning 2013).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

#: Floor of the quadratic's leading coefficient in the high-loading branch
QUADRATIC_EPS = 1e-8
#: Guard against division by zero in 1/(1-a) and 1/(1+a')
DENOMINATOR_EPS = 1e-12


@dataclass(frozen=True)
class InductionInput:
    k: float
    k_rot: float
    phi: float
    loss_factor: float


@dataclass(frozen=True)
class InductionFactors:
    """
    Axial ``a`` and tangential ``a_prime`` induction.

    ``axial_scale`` and ``swirl_scale`` hold ``1/(1-a)`` and ``1/(1+a')`` in
    closed form when the model knows them; otherwise they are derived from
    ``a`` and ``a_prime``.
    """

    a: float = 0.0
    a_prime: float = 0.0
    axial_scale: Optional[float] = None
    swirl_scale: Optional[float] = None

    def scales(self) -> Tuple[float, float]:
        """Return ``(1/(1-a), 1/(1+a'))``."""
        axial = self.axial_scale
        if axial is None:
            axial = 1.0 / _guard(1.0 - self.a)
        swirl = self.swirl_scale
        if swirl is None:
            swirl = 1.0 / _guard(1.0 + self.a_prime)
        return axial, swirl


def _guard(x: float) -> float:
    if abs(x) < DENOMINATOR_EPS:
        return DENOMINATOR_EPS if x >= 0 else -DENOMINATOR_EPS
    return x


class InductionModel(ABC):
    @abstractmethod
    def compute(self, inp: InductionInput) -> InductionFactors:
        """Induction factors for the given loading."""


class ZeroInduction(InductionModel):
    """No induction: the inflow angle is purely geometric."""

    def compute(self, inp: InductionInput) -> InductionFactors:
        return InductionFactors(0.0, 0.0, 1.0, 1.0)


class EmpiricalWakeInduction(InductionModel):
    """
    Momentum theory blended into an empirical turbulent-wake quadratic.

    Parameters
    ----------
    transition : float
        Axial induction ``x`` at which the empirical branch takes over,
        default 0.4 (Buhl). The quadratic matches value and slope of the
        momentum branch there and reaches ``CT = 2`` at ``a = 1``.
    """

    def __init__(self, transition: float = 0.4):
        if not 0.0 < transition < 0.5:
            raise ValueError(f"wake transition must be in (0, 0.5): {transition}")
        self.transition = transition

    @property
    def k_transition(self) -> float:
        """Loading ``k`` at which ``a`` reaches the transition point."""
        return 1.0 / (1.0 / self.transition - 1.0)

    def axial_induction(self, k: float, loss_factor: float) -> float:
        """Axial induction for positive inflow angles."""
        if k <= self.k_transition:
            return k / (1.0 + k)

        x = self.transition
        F = loss_factor
        var1 = 2.0 - 4.0 * x * F * (1.0 - x)
        var2 = var1 - (1.0 - x) * 4.0 * F * (1.0 - 2.0 * x)
        var3 = (1.0 - x * x) - (1.0 - x) * 2.0 * x
        b2 = var2 / var3
        b1 = 4.0 * F * (1.0 - 2.0 * x) - 2.0 * x * b2
        b0 = 2.0 - b1 - b2

        qa = b2 - 4.0 * F * k
        if abs(qa) < QUADRATIC_EPS:
            qa = QUADRATIC_EPS if qa >= 0 else -QUADRATIC_EPS
        qb = b1 + 8.0 * F * k
        qc = b0 - 4.0 * F * k
        disc = max(qb * qb - 4.0 * qa * qc, 0.0)
        return (-qb + np.sqrt(disc)) / (2.0 * qa)

    def compute(self, inp: InductionInput) -> InductionFactors:
        k, k_rot = inp.k, inp.k_rot
        if inp.phi > 0:
            a = self.axial_induction(k, inp.loss_factor)
            axial_scale = 1.0 / _guard(1.0 - a)
        else:
            # Propeller-brake region
            a = k / (k - 1.0) if k > 1.0 else 0.0
            axial_scale = 1.0 - k

        a_prime = k_rot / _guard(1.0 - k_rot)
        return InductionFactors(a, a_prime, axial_scale, 1.0 - k_rot)
