"""
Tests for the BEM solver and the load postprocessor.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from builders import build_geometry
from rotor_bem.core.config import BEMSettings
from rotor_bem.core.geometry import BladeSection, TurbineGeometry
from rotor_bem.core.polar import AirfoilPolar, FlatPlatePolar, TabulatedPolar
from rotor_bem.flow.calculator import FlowCalculatorFactory
from rotor_bem.solvers.bem import BEMSolver
from rotor_bem.solvers.elements import element_forces, element_lengths
from rotor_bem.solvers.induction import ZeroInduction
from rotor_bem.solvers.postprocessor import BEMPostprocessor

BETZ_LIMIT = 16.0 / 27.0


class BrokenPolar(AirfoilPolar):
    """Polar without valid data, e.g. a missing table."""

    name = "broken"

    def coefficients(self, reynolds, mach, alpha):
        return np.nan, np.nan, 0.0


def make_solver(geometry, wind_speed=8.0, tip_speed_ratio=7.0, pitch=0.0, settings=None, **kwargs):
    omega = tip_speed_ratio * wind_speed / geometry.rotor_radius
    flow = FlowCalculatorFactory().build(geometry, omega, wind_speed)
    return BEMSolver(geometry, flow, settings, pitch=pitch, **kwargs)


class TestElements:
    def test_trapezoidal_lengths(self):
        assert_allclose(element_lengths([1.0, 2.0, 4.0]), [0.5, 1.5, 1.0])

    def test_single_section_spans_from_hub(self):
        assert_allclose(element_lengths([3.0], hub_radius=1.0), [2.0])

    def test_forces_resolve_lift_and_drag(self):
        forces = element_forces(1.0, 0.1, np.pi / 2, 10.0, 0.5, 2.0, 1.2)
        q_area = 0.5 * 1.2 * 100.0 * 0.5 * 2.0
        assert forces.dynamic_pressure_area == pytest.approx(q_area)
        assert forces.thrust == pytest.approx(0.1 * q_area)
        assert forces.tangential == pytest.approx(q_area)


class TestResidual:
    def test_zero_induction_root_is_geometric_angle(self, single_section):
        solver = make_solver(single_section, induction_model=ZeroInduction())
        lam = solver.flow.local_lambda(0)
        assert lam == pytest.approx(7.0)
        assert solver.residual(np.arctan(1.0 / lam), 0) == pytest.approx(0.0, abs=1e-12)

    def test_zero_induction_solution(self, straight_blade):
        solver = make_solver(straight_blade, induction_model=ZeroInduction())
        assert solver.solve()
        for i in range(3):
            assert solver.result.phi[i] == pytest.approx(
                np.arctan(1.0 / solver.flow.local_lambda(i)), abs=1e-5
            )

    def test_residual_finite_at_right_angle(self, single_section):
        solver = make_solver(single_section)
        assert np.isfinite(solver.residual(np.pi / 2, 0))

    def test_section_state(self, single_section):
        solver = make_solver(single_section)
        state = solver.evaluate(0.1, 0)
        assert state.alpha == pytest.approx(0.1)
        assert state.cl == pytest.approx(2.0 * np.pi * 0.1)
        assert 0.0 < state.loss_factor <= 1.0
        assert state.reynolds > 0.0
        assert state.mach > 0.0

    def test_local_numbers(self, single_section):
        solver = make_solver(single_section)
        w = np.hypot(8.0, 56.0)
        assert solver.local_flow_velocity(0, 0.0, 0.0) == pytest.approx(w)
        assert solver.local_reynolds_number(0, 0.0, 0.0) == pytest.approx(w * 0.1 / 1.5e-5)
        assert solver.local_mach_number(0, 0.0, 0.0) == pytest.approx(w / 340.0)
        assert solver.solidity(0) == pytest.approx(3.0 * 0.1 / (2.0 * np.pi))

    def test_pitch_enters_blade_angle(self, single_section):
        solver = make_solver(single_section, pitch=np.radians(2.0))
        assert solver.blade_angle(0) == pytest.approx(np.radians(2.0))


class TestBEMSolver:
    def test_single_section_end_to_end(self, single_section):
        settings = BEMSettings(tip_extra_distance=0.01)
        solver = make_solver(single_section, settings=settings)
        assert solver.solve()

        result = solver.result
        assert result.converged.all()
        assert 0.0 < result.phi[0] < np.pi / 2
        assert 0.0 < result.cp < BETZ_LIMIT
        assert 0.0 <= result.ct <= 2.0
        assert result.tip_speed_ratio == pytest.approx(7.0)
        assert result.warnings == ()

    def test_single_section_default_settings(self, single_section):
        solver = make_solver(single_section)
        assert solver.solve()

        result = solver.result
        assert result.converged.all()
        assert result.phi[0] == pytest.approx(0.042, abs=5e-4)
        assert result.a[0] == pytest.approx(0.700, abs=2e-3)
        assert 0.0 < result.cp < BETZ_LIMIT
        assert result.cp == pytest.approx(0.0376, rel=0.05)
        assert result.ct == pytest.approx(1.286, rel=0.01)

    def test_hub_loss_from_innermost_section(self):
        geometry = build_geometry([0.2, 1.0, 2.0], [0.3, 0.2, 0.1])
        from_hub = make_solver(geometry)
        from_root = make_solver(geometry, settings=BEMSettings(hub_loss_at_root=True))

        phi = 0.3
        assert from_hub.evaluate(phi, 0).loss_factor == pytest.approx(1.0, abs=1e-6)
        assert from_root.evaluate(phi, 0).loss_factor < 0.5
        assert from_root.evaluate(phi, 2).loss_factor == pytest.approx(
            from_hub.evaluate(phi, 2).loss_factor
        )

    def test_converged_state_zeroes_residual(self, single_section):
        solver = make_solver(single_section, settings=BEMSettings(tip_extra_distance=0.01))
        solver.solve()
        phi = solver.result.phi[0]
        assert abs(solver.residual(phi, 0)) < 1e-4
        state = solver.evaluate(phi, 0)
        assert state.a == pytest.approx(solver.result.a[0])

    def test_tapered_rotor(self, small_rotor):
        solver = make_solver(small_rotor, wind_speed=8.0, tip_speed_ratio=7.0)
        assert solver.solve()
        result = solver.result
        assert result.num_converged == small_rotor.num_sections
        assert 0.0 < result.cp < BETZ_LIMIT
        assert 0.0 < result.ct < 2.0
        assert np.all(result.phi > 0.0)

    def test_thread_pool_matches_sequential(self, small_rotor):
        sequential = make_solver(small_rotor)
        sequential.solve()
        parallel = make_solver(small_rotor)
        parallel.solve(max_workers=4)
        assert_allclose(parallel.result.phi, sequential.result.phi)
        assert parallel.result.cp == pytest.approx(sequential.result.cp)

    def test_failed_section_is_excluded(self):
        good = FlatPlatePolar()
        geometry = TurbineGeometry(
            [
                BladeSection(radius=5.0, chord=0.5, twist=0.1, polar=good),
                BladeSection(radius=10.0, chord=0.3, twist=0.0, polar=BrokenPolar()),
            ]
        )
        geometry.configure(0.5, 0.0, 0.0, 0.0, 0.0, 50.0, 3)
        geometry.precompute_rotation_matrices()

        solver = make_solver(geometry)
        assert solver.solve()
        result = solver.result
        assert result.success
        assert list(result.converged) == [True, False]
        assert result.phi[1] == 0.0
        assert np.isfinite(result.cp)
        assert len(result.warnings) == 1
        assert "Section 1" in result.warnings[0]

    def test_all_sections_failed(self):
        geometry = build_geometry([1.0, 2.0], [0.2, 0.1], polar=BrokenPolar())
        solver = make_solver(geometry)
        assert not solver.solve()
        assert not solver.result.success
        assert solver.result.cp == 0.0
        assert "No section converged" in solver.result.warnings
        assert BEMPostprocessor().process(solver) is None

    def test_result_arrays_read_only(self, single_section):
        solver = make_solver(single_section)
        solver.solve()
        with pytest.raises(ValueError):
            solver.result.phi[0] = 1.0

    def test_result_requires_solve(self, single_section):
        with pytest.raises(RuntimeError, match="solve"):
            _ = make_solver(single_section).result

    def test_section_on_rotor_axis_rejected(self):
        geometry = build_geometry([0.0, 1.0], [0.2, 0.1])
        with pytest.raises(ValueError, match="rotor axis"):
            make_solver(geometry)

    def test_section_count_mismatch(self, straight_blade, single_section):
        flow = FlowCalculatorFactory().build(single_section, 10.0, 8.0)
        with pytest.raises(ValueError, match="sections"):
            BEMSolver(straight_blade, flow)

    def test_still_air_gives_zero_coefficients(self, single_section):
        flow = FlowCalculatorFactory().build(single_section, 10.0, 0.0)
        solver = BEMSolver(single_section, flow)
        solver.solve()
        assert solver.result.cp == 0.0
        assert solver.result.ct == 0.0


class TestBEMPostprocessor:
    @pytest.fixture
    def solved(self, small_rotor):
        solver = make_solver(small_rotor)
        solver.solve()
        return solver

    def test_coefficients_match_solver(self, solved):
        loads = BEMPostprocessor(solved.settings.air_density).process(solved)
        assert loads.cp == pytest.approx(solved.result.cp, rel=1e-10)
        assert loads.ct == pytest.approx(solved.result.ct, rel=1e-10)

    def test_totals(self, solved):
        loads = BEMPostprocessor().process(solved)
        B = solved.geometry.num_blades
        omega = solved.flow.rotation_rate
        assert loads.thrust == pytest.approx(B * loads.element_thrust.sum())
        assert loads.power == pytest.approx(loads.torque * omega)
        assert loads.mx == pytest.approx(loads.torque / B)
        assert loads.sum_fy == pytest.approx(B * loads.element_fy.sum())
        q = 0.5 * 1.225 * 8.0**2
        R = solved.geometry.rotor_radius
        assert loads.torque_coefficient == pytest.approx(loads.torque / (q * np.pi * R**3))

    def test_local_coefficients_integrate_to_rotor(self, solved):
        loads = BEMPostprocessor().process(solved)
        radii = solved.geometry.radii
        R = solved.geometry.rotor_radius
        weights = 2.0 * radii * loads.element_length / R**2
        assert np.sum(loads.ct_local * weights) == pytest.approx(loads.ct)
        assert np.sum(loads.cp_local * weights) == pytest.approx(loads.cp)

    def test_outboard_loads(self, solved):
        loads = BEMPostprocessor().process(solved)
        assert loads.integral_fx[0] == pytest.approx(loads.element_thrust.sum())
        assert loads.integral_fx[-1] == pytest.approx(loads.element_thrust[-1])
        assert loads.integral_my[-1] == pytest.approx(0.0)
        assert np.all(np.diff(loads.integral_fx) < 0.0)

    def test_airfoil_moment(self):
        polar = TabulatedPolar(
            [-30.0, 30.0], [-np.pi / 3.0, np.pi / 3.0], [0.01, 0.01], [-0.1, -0.1]
        )
        geometry = build_geometry([1.0, 2.0, 3.0], [0.3, 0.2, 0.1], polar=polar)
        solver = make_solver(geometry)
        assert solver.solve()
        result = solver.result
        loads = BEMPostprocessor().process(solver)

        for i in np.flatnonzero(result.converged):
            w = solver.local_flow_velocity(i, result.a[i], result.a_prime[i])
            chord = geometry.chord(i)
            expected = -0.1 * 0.5 * 1.225 * w**2 * chord**2 * loads.element_length[i]
            assert loads.element_airfoil_moment[i] == pytest.approx(expected)
        assert loads.mz == pytest.approx(loads.element_airfoil_moment.sum())

    def test_aerodynamic_centre_offsets_enter_torsion(self, single_section):
        base = make_solver(single_section)
        base.solve()
        moved_sections = [
            BladeSection(radius=1.0, chord=0.1, twist=0.0, polar=FlatPlatePolar(), aero_centre_y=0.02)
        ]
        moved = TurbineGeometry(moved_sections)
        moved.configure(0.0, 0.0, 0.0, 0.0, 0.0, 90.0, 3)
        moved.precompute_rotation_matrices()
        shifted = make_solver(moved)
        shifted.solve()

        mz_base = BEMPostprocessor().process(base).mz
        loads = BEMPostprocessor().process(shifted)
        assert mz_base == pytest.approx(0.0)
        assert loads.mz == pytest.approx(-loads.element_thrust[0] * 0.02)
