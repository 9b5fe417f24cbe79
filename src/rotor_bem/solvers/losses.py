"""Prandtl tip and hub loss factors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

#: Lower bound of a loss factor; keeps the momentum terms finite
MIN_LOSS_FACTOR = 1e-10


@dataclass(frozen=True)
class LossInput:
    """
    Inputs to a loss model for one section and inflow angle.

    Attributes
    ----------
    radius : float
        Section radius from the rotor axis [m].
    rotor_radius : float
        Tip radius [m].
    hub_radius : float
        Radius the hub loss decays from [m]: the hub radius, or the innermost
        section radius.
    phi : float
        Inflow angle [rad].
    num_blades : int
        Blade count.
    tip_chord : float
        Chord of the outermost section [m].
    tip_extra_distance : float
        Additional tip-loss offset [m].
    """

    radius: float
    rotor_radius: float
    hub_radius: float
    phi: float
    num_blades: int
    tip_chord: float
    tip_extra_distance: float = 0.0


class LossModel(ABC):
    @abstractmethod
    def factor(self, inp: LossInput) -> float:
        """Loss factor F in (0, 1]."""


def _prandtl(num_blades: int, f: float) -> float:
    return 2.0 / np.pi * np.arccos(np.clip(np.exp(-0.5 * num_blades * f), 0.0, 1.0))


class NoLoss(LossModel):
    def factor(self, inp: LossInput) -> float:
        return 1.0


class PrandtlTipLoss(LossModel):
    """``F = 2/π acos(exp(-B/2 (0.01 c_tip + Δ + R - r) / (r |sin φ|)))``"""

    def factor(self, inp: LossInput) -> float:
        sin_phi = abs(np.sin(inp.phi))
        if inp.radius <= 0 or sin_phi == 0.0:
            return 1.0
        offset = 0.01 * inp.tip_chord + inp.tip_extra_distance
        f = (offset + inp.rotor_radius - inp.radius) / (inp.radius * sin_phi)
        return max(_prandtl(inp.num_blades, f), MIN_LOSS_FACTOR)


class PrandtlHubLoss(LossModel):
    """
    ``F = 2/π acos(exp(-B/2 (0.01 c_tip + r - R_hub) / (R_hub |sin φ|)))``

    ``R_hub`` is ``LossInput.hub_radius``; a non-positive value disables the
    hub loss.
    """

    def factor(self, inp: LossInput) -> float:
        sin_phi = abs(np.sin(inp.phi))
        if inp.hub_radius <= 0 or sin_phi == 0.0:
            return 1.0
        f = (0.01 * inp.tip_chord + inp.radius - inp.hub_radius) / (inp.hub_radius * sin_phi)
        return max(_prandtl(inp.num_blades, f), MIN_LOSS_FACTOR)


class CombinedLoss(LossModel):
    """Product of tip and hub loss."""

    def __init__(self, tip: LossModel = None, hub: LossModel = None):
        self.tip = tip if tip is not None else PrandtlTipLoss()
        self.hub = hub if hub is not None else PrandtlHubLoss()

    def factor(self, inp: LossInput) -> float:
        return max(self.tip.factor(inp) * self.hub.factor(inp), MIN_LOSS_FACTOR)


def loss_model_from_flags(tip_loss: bool, hub_loss: bool) -> LossModel:
    """Loss model for the solver's tip/hub switches."""
    if tip_loss and hub_loss:
        return CombinedLoss()
    if tip_loss:
        return PrandtlTipLoss()
    if hub_loss:
        return PrandtlHubLoss()
    return NoLoss()
