"""Blade-element integration helpers shared by the solver and postprocessor."""

from dataclasses import dataclass

import numpy as np


def element_lengths(radii: np.ndarray, hub_radius: float = 0.0) -> np.ndarray:
    """
    Trapezoidal element lengths for section radii.

    ``(r1 - r0)/2`` at the root, ``(r[i+1] - r[i-1])/2`` inside and
    ``(rn - rn-1)/2`` at the tip. A single section spans ``r - hub_radius``.

    Parameters
    ----------
    radii : np.ndarray
        Section radii from the rotor axis, increasing [m].
    hub_radius : float
        Hub radius [m].

    Returns
    -------
    dr : np.ndarray
        Element lengths [m].
    """
    radii = np.asarray(radii, dtype=np.float64)
    n = len(radii)
    if n == 1:
        return np.array([radii[0] - hub_radius])

    dr = np.empty(n)
    dr[0] = 0.5 * (radii[1] - radii[0])
    dr[-1] = 0.5 * (radii[-1] - radii[-2])
    dr[1:-1] = 0.5 * (radii[2:] - radii[:-2])
    return dr


@dataclass(frozen=True)
class ElementForces:
    """
    Aerodynamic forces of one blade element.

    Attributes
    ----------
    lift, drag : float
        Section lift and drag over the element [N].
    thrust : float
        Out-of-plane force ``L cos φ + D sin φ`` [N].
    tangential : float
        In-plane driving force ``L sin φ - D cos φ`` [N].
    dynamic_pressure_area : float
        ``½ ρ W² c dr`` [N].
    """

    lift: float
    drag: float
    thrust: float
    tangential: float
    dynamic_pressure_area: float


def element_forces(
    cl: float,
    cd: float,
    phi: float,
    relative_velocity: float,
    chord: float,
    dr: float,
    air_density: float,
) -> ElementForces:
    """Resolve lift and drag of one element into thrust and driving force."""
    q_area = 0.5 * air_density * relative_velocity**2 * chord * dr
    lift = cl * q_area
    drag = cd * q_area
    sin_phi, cos_phi = np.sin(phi), np.cos(phi)
    return ElementForces(
        lift=lift,
        drag=drag,
        thrust=lift * cos_phi + drag * sin_phi,
        tangential=lift * sin_phi - drag * cos_phi,
        dynamic_pressure_area=q_area,
    )
