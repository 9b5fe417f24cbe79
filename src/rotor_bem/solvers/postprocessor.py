"""
Sectional and integrated loads from a converged BEM state.

This module provides calculations for:
- Element lift, drag, thrust and driving force
- Local (annulus) power and thrust coefficients
- Rotor thrust, torque, power and their coefficients
- Blade root moments and cumulative tip-to-section loads
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .bem import BEMSolver
from .elements import element_forces, element_lengths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostprocessResult:
    """
    Loads of one blade and rotor totals at one operating point.

    Attributes
    ----------
    cp, ct : float
        Power and thrust coefficient.
    torque_coefficient : float
        Cq = Q / (½ ρ A R V²).
    power : float
        Aerodynamic power [W].
    thrust, torque : float
        Rotor thrust [N] and torque [N·m].
    sum_fy : float
        Sum of in-plane section forces over all blades [N].
    mx, my, mz : float
        Blade root moments (torque, flapwise, torsion) [N·m].
    alpha_eff, cl, cd, cm : np.ndarray
        Per-section effective angle of attack [rad] and coefficients.
    cp_local, ct_local : np.ndarray
        Annulus power and thrust coefficients.
    element_length : np.ndarray
        Element lengths [m].
    element_thrust, element_fy, element_torque, element_mz : np.ndarray
        Element thrust [N], in-plane force [N], torque [N·m], torsion about
        the pitch axis [N·m].
    element_airfoil_moment : np.ndarray
        Airfoil pitching moment ``cm q c² dr`` about the aerodynamic centre [N·m].
    integral_fx, integral_fy, integral_mx, integral_my, integral_mz : np.ndarray
        Loads outboard of each section, referred to that section.
    """

    cp: float
    ct: float
    torque_coefficient: float
    power: float
    thrust: float
    torque: float
    sum_fy: float
    mx: float
    my: float
    mz: float
    alpha_eff: np.ndarray
    cl: np.ndarray
    cd: np.ndarray
    cm: np.ndarray
    cp_local: np.ndarray
    ct_local: np.ndarray
    element_length: np.ndarray
    element_thrust: np.ndarray
    element_fy: np.ndarray
    element_torque: np.ndarray
    element_mz: np.ndarray
    element_airfoil_moment: np.ndarray
    integral_fx: np.ndarray
    integral_fy: np.ndarray
    integral_mx: np.ndarray
    integral_my: np.ndarray
    integral_mz: np.ndarray


class BEMPostprocessor:
    """
    Calculator for blade loads and rotor coefficients.

    Sections that did not converge carry zero load.

    Parameters
    ----------
    air_density : float
        Air density [kg/m³].

    Example
    -------
    ::

        solver = BEMSolver(geometry, flow, settings, pitch)
        if solver.solve():
            loads = BEMPostprocessor(settings.air_density).process(solver)
            print(f"Cp = {loads.cp:.4f}, root flap moment = {loads.my:.1f} N·m")
    """

    #: Small number for numerical stability
    EPS: float = 1e-10

    def __init__(self, air_density: float = 1.225):
        self.air_density = air_density

    def process(self, solver: BEMSolver) -> Optional[PostprocessResult]:
        """
        Compute loads from a solved :class:`BEMSolver`.

        Returns
        -------
        PostprocessResult or None
            ``None`` when the solve failed for every section.
        """
        result = solver.result
        if not result.success:
            logger.warning("Postprocessing skipped: BEM solve failed for all sections")
            return None

        geometry = solver.geometry
        n = geometry.num_sections
        B = geometry.num_blades
        rho = self.air_density
        radii = geometry.radii
        dr = element_lengths(radii, geometry.hub_radius)
        omega = solver.flow.rotation_rate
        V = result.v_inf

        alpha = np.zeros(n)
        cl = np.zeros(n)
        cd = np.zeros(n)
        cm = np.zeros(n)
        d_thrust = np.zeros(n)
        d_fy = np.zeros(n)
        d_torque = np.zeros(n)
        d_mz = np.zeros(n)
        d_airfoil = np.zeros(n)

        for i in np.flatnonzero(result.converged):
            phi, a, ap = result.phi[i], result.a[i], result.a_prime[i]
            alpha[i], cl[i], cd[i], cm[i] = solver.section_coefficients(i, phi, a, ap)
            chord = geometry.chord(i)
            forces = element_forces(
                cl[i], cd[i], phi, solver.local_flow_velocity(i, a, ap), chord, dr[i], rho
            )
            d_thrust[i] = forces.thrust
            d_fy[i] = -forces.tangential
            d_torque[i] = forces.tangential * radii[i]
            d_airfoil[i] = cm[i] * forces.dynamic_pressure_area * chord
            x_ac, y_ac = geometry.aero_centre(i)
            d_mz[i] = d_fy[i] * x_ac - d_thrust[i] * y_ac + d_airfoil[i]

        # Dynamic pressure
        q = 0.5 * rho * V**2
        R = geometry.rotor_radius
        A = np.pi * R**2
        thrust = B * d_thrust.sum()
        torque = B * d_torque.sum()
        power = torque * omega

        if q > self.EPS:
            cp = power / (q * A * V)
            ct = thrust / (q * A)
            cq = torque / (q * A * R)
            annulus = q * 2.0 * np.pi * radii * dr
            cp_local = B * d_torque * omega / (annulus * V)
            ct_local = B * d_thrust / annulus
        else:
            cp = ct = cq = 0.0
            cp_local = np.zeros(n)
            ct_local = np.zeros(n)

        return PostprocessResult(
            cp=float(cp),
            ct=float(ct),
            torque_coefficient=float(cq),
            power=float(power),
            thrust=float(thrust),
            torque=float(torque),
            sum_fy=float(B * d_fy.sum()),
            mx=float(d_torque.sum()),
            my=float(np.sum(d_thrust * radii)),
            mz=float(d_mz.sum()),
            alpha_eff=alpha,
            cl=cl,
            cd=cd,
            cm=cm,
            cp_local=cp_local,
            ct_local=ct_local,
            element_length=dr,
            element_thrust=d_thrust,
            element_fy=d_fy,
            element_torque=d_torque,
            element_mz=d_mz,
            element_airfoil_moment=d_airfoil,
            **self._outboard_loads(radii, d_thrust, d_fy, d_mz),
        )

    @staticmethod
    def _outboard_loads(radii, d_thrust, d_fy, d_mz):
        n = len(radii)
        fx = np.zeros(n)
        fy = np.zeros(n)
        mx = np.zeros(n)
        my = np.zeros(n)
        mz = np.zeros(n)
        for i in range(n):
            arm = radii[i:] - radii[i]
            fx[i] = d_thrust[i:].sum()
            fy[i] = d_fy[i:].sum()
            mx[i] = np.sum(d_fy[i:] * -arm)
            my[i] = np.sum(d_thrust[i:] * arm)
            mz[i] = d_mz[i:].sum()
        return {
            "integral_fx": fx,
            "integral_fy": fy,
            "integral_mx": mx,
            "integral_my": my,
            "integral_mz": mz,
        }
