"""
Blade-Element-Momentum solver with guaranteed bracketing.

Every section is solved for the inflow angle φ that zeroes the one-variable
residual of Ning (2013)::

    R(φ) = sin φ / (1 - a) - cos φ / (λ_r (1 + a'))

where ``a`` and ``a'`` follow from the blade loading at φ through the
induction model. The residual is searched on the windmill region
``(0, π)`` first and on the propeller-brake region ``(-π, 0)`` second.

Sections are independent; :meth:`BEMSolver.solve` can spread them over a
thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..core.config import BEMSettings
from ..core.geometry import TurbineGeometry
from ..flow.calculator import FlowCalculator
from .elements import element_forces, element_lengths
from .induction import EmpiricalWakeInduction, InductionFactors, InductionInput, InductionModel
from .losses import LossInput, LossModel, loss_model_from_flags
from .root_finder import BrentsRootFinder, find_brackets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionState:
    """Residual evaluation of one section at one inflow angle."""

    phi: float
    residual: float
    a: float
    a_prime: float
    k: float
    k_rot: float
    loss_factor: float
    alpha: float
    cl: float
    cd: float
    cm: float
    reynolds: float
    mach: float


@dataclass(frozen=True)
class SectionSolution:
    phi: float = 0.0
    a: float = 0.0
    a_prime: float = 0.0
    k: float = 0.0
    converged: bool = False


@dataclass(frozen=True)
class SolverResult:
    """
    Converged BEM state of the rotor at one operating point.

    Attributes
    ----------
    success : bool
        False only when no section converged.
    phi, a, a_prime : np.ndarray
        Per-section inflow angle [rad] and induction factors; zero for
        sections that did not converge.
    converged : np.ndarray
        Per-section convergence flags.
    v_inf : float
        Free-stream speed [m/s].
    tip_speed_ratio : float
        Ω R / v_inf.
    pitch, azimuth : float
        Blade pitch and azimuth [rad].
    cp, ct : float
        Rotor power and thrust coefficients (converged sections only).
    warnings : Tuple[str, ...]
        Human-readable diagnostics.
    """

    success: bool
    phi: np.ndarray
    a: np.ndarray
    a_prime: np.ndarray
    converged: np.ndarray
    v_inf: float
    tip_speed_ratio: float
    pitch: float
    azimuth: float
    cp: float = 0.0
    ct: float = 0.0
    warnings: Tuple[str, ...] = ()

    @property
    def num_converged(self) -> int:
        return int(np.count_nonzero(self.converged))


class BEMSolver:
    """
    Ning (2013) BEM solver for one operating point.

    Parameters
    ----------
    geometry : TurbineGeometry
        Configured geometry.
    flow : FlowCalculator
        Inflow at the operating point.
    settings : BEMSettings, optional
        Physical constants and solver settings.
    pitch : float
        Blade pitch [rad].
    azimuth : float, optional
        Azimuth [rad]; defaults to the flow calculator's azimuth.
    loss_model : LossModel, optional
        Defaults to the settings' tip/hub loss switches.
    induction_model : InductionModel, optional
        Defaults to :class:`EmpiricalWakeInduction` at the settings' transition.
    root_finder : BrentsRootFinder, optional
        Defaults to the settings' tolerance and iteration cap.

    Raises
    ------
    ValueError
        For degenerate geometry (no blades, non-positive span) or a flow
        calculator built for a different section count.
    """

    #: Distance of the search brackets from 0 and ±π [rad]
    EPS: float = 1e-6

    def __init__(
        self,
        geometry: TurbineGeometry,
        flow: FlowCalculator,
        settings: Optional[BEMSettings] = None,
        pitch: float = 0.0,
        azimuth: Optional[float] = None,
        loss_model: Optional[LossModel] = None,
        induction_model: Optional[InductionModel] = None,
        root_finder: Optional[BrentsRootFinder] = None,
    ):
        self.geometry = geometry
        self.flow = flow
        self.settings = settings if settings is not None else BEMSettings()
        self.pitch = float(pitch)
        self.azimuth = flow.azimuth if azimuth is None else float(azimuth)

        self.loss_model = (
            loss_model
            if loss_model is not None
            else loss_model_from_flags(self.settings.tip_loss, self.settings.hub_loss)
        )
        self.induction_model = (
            induction_model
            if induction_model is not None
            else EmpiricalWakeInduction(self.settings.wake_transition)
        )
        self.root_finder = (
            root_finder
            if root_finder is not None
            else BrentsRootFinder(
                self.settings.convergence_tolerance, self.settings.max_root_iterations
            )
        )

        self._validate()
        self._radii = geometry.radii
        self._tip_chord = geometry.chord(geometry.num_sections - 1)
        # Hub loss decays from the hub, or from the innermost section when requested
        self._hub_loss_radius = (
            float(self._radii[0]) if self.settings.hub_loss_at_root else geometry.hub_radius
        )
        self._result: Optional[SolverResult] = None

    def _validate(self) -> None:
        if self.geometry.num_blades < 1:
            raise ValueError(f"Blade count must be at least 1, got {self.geometry.num_blades}")
        span = self.geometry.rotor_radius - self.geometry.hub_radius
        if span <= 0:
            raise ValueError(f"Blade span must be positive, got {span} m")
        if self.geometry.radius(0) <= 0:
            raise ValueError("Innermost section must lie outside the rotor axis")
        if self.flow.num_sections != self.geometry.num_sections:
            raise ValueError(
                f"Flow calculator has {self.flow.num_sections} sections, "
                f"geometry has {self.geometry.num_sections}"
            )

    # =========================================================================
    # Residual
    # =========================================================================

    def solidity(self, i: int) -> float:
        """Local solidity σ = B c / (2π r)."""
        return self.geometry.num_blades * self.geometry.chord(i) / (2.0 * np.pi * self._radii[i])

    def blade_angle(self, i: int) -> float:
        """Twist plus pitch [rad]."""
        return self.geometry.twist(i) + self.pitch

    def local_flow_velocity(self, i: int, a: float, a_prime: float) -> float:
        """Relative speed W at section ``i`` for the given induction [m/s]."""
        axial, tangential = self.flow.blade_local_velocities(i)
        return float(np.hypot(axial * (1.0 - a), tangential * (1.0 + a_prime)))

    def local_reynolds_number(self, i: int, a: float, a_prime: float) -> float:
        return (
            self.local_flow_velocity(i, a, a_prime)
            * self.geometry.chord(i)
            / self.settings.kinematic_viscosity
        )

    def local_mach_number(self, i: int, a: float, a_prime: float) -> float:
        return self.local_flow_velocity(i, a, a_prime) / self.settings.speed_of_sound

    def evaluate(self, phi: float, i: int) -> SectionState:
        """
        Evaluate the loading, induction and residual at ``phi``.

        The polar is looked up twice so that Reynolds and Mach numbers follow
        the induced relative speed.
        """
        geometry = self.geometry
        sigma = self.solidity(i)
        lam = self.flow.local_lambda(i)
        sin_phi, cos_phi = np.sin(phi), np.cos(phi)
        alpha = phi - self.blade_angle(i)

        loss = self.loss_model.factor(
            LossInput(
                radius=self._radii[i],
                rotor_radius=geometry.rotor_radius,
                hub_radius=self._hub_loss_radius,
                phi=phi,
                num_blades=geometry.num_blades,
                tip_chord=self._tip_chord,
                tip_extra_distance=self.settings.tip_extra_distance,
            )
        )

        factors = InductionFactors()
        for _ in range(2):
            reynolds = self.local_reynolds_number(i, factors.a, factors.a_prime)
            mach = self.local_mach_number(i, factors.a, factors.a_prime)
            cl, cd, cm = geometry.interpolate_coefficients(i, reynolds, mach, alpha)

            cd_eff = cd if self.settings.include_drag_in_induction else 0.0
            cn = cl * cos_phi + cd_eff * sin_phi
            ct = cl * sin_phi - cd_eff * cos_phi
            k = sigma * cn / (4.0 * loss * sin_phi * sin_phi)
            k_rot = sigma * ct / (4.0 * loss * sin_phi * cos_phi)
            factors = self.induction_model.compute(InductionInput(k, k_rot, phi, loss))

        axial_scale, swirl_scale = factors.scales()
        residual = sin_phi * axial_scale - cos_phi / lam * swirl_scale

        return SectionState(
            phi=phi,
            residual=float(residual),
            a=float(factors.a),
            a_prime=float(factors.a_prime),
            k=float(k),
            k_rot=float(k_rot),
            loss_factor=float(loss),
            alpha=float(alpha),
            cl=float(cl),
            cd=float(cd),
            cm=float(cm),
            reynolds=float(reynolds),
            mach=float(mach),
        )

    def residual(self, phi: float, i: int) -> float:
        """BEM residual of section ``i`` at inflow angle ``phi`` [rad]."""
        return self.evaluate(phi, i).residual

    # =========================================================================
    # Section search
    # =========================================================================

    def _brackets(self, i: int, positive: bool) -> Iterator[Tuple[float, float]]:
        eps = self.EPS
        half_pi = 0.5 * np.pi
        if positive:
            yield eps, half_pi
            yield half_pi, np.pi - eps
            scan = (eps, np.pi - eps)
        else:
            yield -half_pi, -eps
            yield -np.pi + eps, -half_pi
            scan = (-np.pi + eps, -eps)
        yield from find_brackets(
            lambda phi: self.residual(phi, i), scan[0], scan[1], self.settings.bracket_subdivisions
        )

    def solve_section(self, i: int) -> SectionSolution:
        """
        Find the inflow angle of section ``i``.

        Windmill roots are accepted when ``k > -1``, propeller-brake roots
        when ``k > 1``.
        """

        def f(phi: float) -> float:
            return self.residual(phi, i)

        for positive, k_min in ((True, -1.0), (False, 1.0)):
            for lower, upper in self._brackets(i, positive):
                root = self.root_finder.solve(f, lower, upper)
                if root is None:
                    continue
                state = self.evaluate(root, i)
                if state.k > k_min:
                    return SectionSolution(
                        phi=root, a=state.a, a_prime=state.a_prime, k=state.k, converged=True
                    )
        return SectionSolution()

    # =========================================================================
    # Rotor solve
    # =========================================================================

    def solve(self, max_workers: Optional[int] = None) -> bool:
        """
        Solve all sections and integrate the rotor coefficients.

        Parameters
        ----------
        max_workers : int, optional
            Thread-pool size for the section loop; sequential when ``None`` or 1.

        Returns
        -------
        bool
            False only when no section converged.
        """
        n = self.geometry.num_sections
        if max_workers is not None and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                solutions = list(pool.map(self.solve_section, range(n)))
        else:
            solutions = [self.solve_section(i) for i in range(n)]

        converged = np.array([s.converged for s in solutions], dtype=bool)
        warnings: List[str] = []
        for i in np.flatnonzero(~converged):
            msg = (
                f"Section {i} (r={self._radii[i]:.3f} m) did not converge; "
                f"excluded from rotor integration"
            )
            logger.warning(msg)
            warnings.append(msg)

        phi = np.array([s.phi for s in solutions])
        a = np.array([s.a for s in solutions])
        a_prime = np.array([s.a_prime for s in solutions])
        for arr in (phi, a, a_prime, converged):
            arr.setflags(write=False)

        cp, ct = self._integrate(phi, a, a_prime, converged)
        success = bool(converged.any())
        if not success:
            warnings.append("No section converged")

        self._result = SolverResult(
            success=success,
            phi=phi,
            a=a,
            a_prime=a_prime,
            converged=converged,
            v_inf=self.flow.v_inf,
            tip_speed_ratio=self.flow.tip_speed_ratio,
            pitch=self.pitch,
            azimuth=self.azimuth,
            cp=cp,
            ct=ct,
            warnings=tuple(warnings),
        )
        logger.debug(
            "BEM solve: v=%.3f m/s, TSR=%.3f, pitch=%.3f deg, converged %d/%d, Cp=%.4f, Ct=%.4f",
            self.flow.v_inf,
            self.flow.tip_speed_ratio,
            np.degrees(self.pitch),
            int(converged.sum()),
            n,
            cp,
            ct,
        )
        return success

    def _integrate(
        self, phi: np.ndarray, a: np.ndarray, a_prime: np.ndarray, converged: np.ndarray
    ) -> Tuple[float, float]:
        v_inf = self.flow.v_inf
        if v_inf <= 0:
            return 0.0, 0.0

        rho = self.settings.air_density
        dr = element_lengths(self._radii, self.geometry.hub_radius)
        thrust = 0.0
        torque = 0.0
        for i in np.flatnonzero(converged):
            cl, cd = self.section_coefficients(i, phi[i], a[i], a_prime[i])[1:3]
            forces = element_forces(
                cl,
                cd,
                phi[i],
                self.local_flow_velocity(i, a[i], a_prime[i]),
                self.geometry.chord(i),
                dr[i],
                rho,
            )
            thrust += forces.thrust
            torque += forces.tangential * self._radii[i]

        B = self.geometry.num_blades
        area = np.pi * self.geometry.rotor_radius**2
        cp = B * torque * self.flow.rotation_rate / (0.5 * rho * v_inf**3 * area)
        ct = B * thrust / (0.5 * rho * v_inf**2 * area)
        return float(cp), float(ct)

    def section_coefficients(
        self, i: int, phi: float, a: float, a_prime: float
    ) -> Tuple[float, float, float, float]:
        """Return ``(alpha, cl, cd, cm)`` at a converged state, drag included."""
        alpha = phi - self.blade_angle(i)
        cl, cd, cm = self.geometry.interpolate_coefficients(
            i,
            self.local_reynolds_number(i, a, a_prime),
            self.local_mach_number(i, a, a_prime),
            alpha,
        )
        return alpha, cl, cd, cm

    @property
    def result(self) -> SolverResult:
        if self._result is None:
            raise RuntimeError("BEMSolver.solve() has not been called")
        return self._result
