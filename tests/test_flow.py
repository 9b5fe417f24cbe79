"""
Unit tests for inflow construction: inlet, shear, veer and the flow calculator.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_almost_equal

from builders import build_geometry
from rotor_bem.core.config import FlowConfig
from rotor_bem.flow.calculator import LAMBDA_EPS, FlowCalculator, FlowCalculatorFactory
from rotor_bem.flow.inlet import TurbulenceField, TurbulentInletProvider, UniformInletProvider
from rotor_bem.flow.shear import (
    MIN_POWER_LAW_HEIGHT,
    DiabaticShearModel,
    LogShearModel,
    PowerLawShearModel,
    ShearInput,
)
from rotor_bem.flow.veer import LinearVeerModel, NoVeer, VeerInput


class TestShearModels:
    def test_log_profile_at_hub(self):
        model = LogShearModel(surface_roughness=0.03)
        assert model.velocity(ShearInput(90.0, 90.0, 8.0)) == pytest.approx(8.0)

    def test_log_profile_value(self):
        model = LogShearModel(surface_roughness=0.1)
        v = model.velocity(ShearInput(10.0, 90.0, 8.0))
        assert v == pytest.approx(8.0 * np.log(100.0) / np.log(900.0))

    def test_log_profile_clamped_below_roughness(self):
        model = LogShearModel(surface_roughness=0.1)
        assert model.velocity(ShearInput(0.01, 90.0, 8.0)) == pytest.approx(0.0)

    def test_log_profile_explicit_reference(self):
        model = LogShearModel(0.1, reference_velocity=10.0, reference_height=50.0, use_reference=True)
        assert model.velocity(ShearInput(50.0, 90.0, 8.0)) == pytest.approx(10.0)

    def test_reference_requires_values(self):
        with pytest.raises(ValueError, match="use_reference"):
            LogShearModel(0.1, use_reference=True)

    def test_power_law(self):
        model = PowerLawShearModel(exponent=0.2)
        v = model.velocity(ShearInput(120.0, 90.0, 8.0))
        assert v == pytest.approx(8.0 * (120.0 / 90.0) ** 0.2)

    def test_power_law_at_ground_stays_finite(self):
        model = PowerLawShearModel(exponent=-0.1)
        for z in [0.0, -2.0]:
            v = model.velocity(ShearInput(z, 90.0, 8.0))
            assert np.isfinite(v)
            assert v == pytest.approx(8.0 * (MIN_POWER_LAW_HEIGHT / 90.0) ** -0.1)

    def test_power_law_zero_exponent_is_uniform(self):
        model = PowerLawShearModel(exponent=0.0)
        for z in [0.0, 10.0, 200.0]:
            assert model.velocity(ShearInput(z, 90.0, 8.0)) == 8.0

    def test_diabatic_neutral_equals_log(self):
        log = LogShearModel(surface_roughness=0.05)
        neutral = DiabaticShearModel(surface_roughness=0.05, obukhov_length=0.0)
        for z in [5.0, 40.0, 90.0, 150.0]:
            inp = ShearInput(z, 90.0, 9.0)
            assert neutral.velocity(inp) == pytest.approx(log.velocity(inp))

    @pytest.mark.parametrize("obukhov_length", [-200.0, 200.0])
    def test_diabatic_matches_hub_velocity(self, obukhov_length):
        model = DiabaticShearModel(surface_roughness=0.05, obukhov_length=obukhov_length)
        assert model.velocity(ShearInput(90.0, 90.0, 9.0)) == pytest.approx(9.0)

    def test_stable_profile_steeper_than_unstable(self):
        stable = DiabaticShearModel(0.05, 200.0)
        unstable = DiabaticShearModel(0.05, -200.0)
        inp = ShearInput(150.0, 90.0, 9.0)
        assert stable.velocity(inp) > unstable.velocity(inp)

    def test_invalid_roughness(self):
        with pytest.raises(ValueError):
            LogShearModel(surface_roughness=0.0)
        with pytest.raises(ValueError):
            DiabaticShearModel(surface_roughness=-1.0, obukhov_length=0.0)


class TestVeer:
    def test_no_veer_is_identity(self):
        v = np.array([8.0, 1.0, 0.0])
        assert_array_almost_equal(NoVeer().apply(VeerInput(100.0, 90.0), v), v)

    def test_zero_rate_is_identity(self):
        model = LinearVeerModel(veer_rate=0.0, rotor_radius=40.0)
        v = np.array([8.0, 0.0, 0.0])
        assert_array_almost_equal(model.apply(VeerInput(130.0, 90.0), v), v)

    def test_rotation_one_radius_above_hub(self):
        model = LinearVeerModel(veer_rate=10.0, rotor_radius=40.0)
        rotated = model.apply(VeerInput(130.0, 90.0), np.array([8.0, 0.0, 0.0]))
        theta = np.radians(10.0)
        assert_allclose(rotated, [8.0 * np.cos(theta), -8.0 * np.sin(theta), 0.0], atol=1e-12)

    def test_invalid_radius(self):
        with pytest.raises(ValueError):
            LinearVeerModel(veer_rate=1.0, rotor_radius=0.0)


class TestFlowCalculator:
    def test_uniform_local_velocities(self, straight_blade):
        """Without shear or veer the local inflow is (V, Ω r)."""
        flow = FlowCalculator(straight_blade, 2.0, 0.0, UniformInletProvider(8.0))
        for i, r in enumerate([1.0, 2.0, 3.0]):
            axial, tangential = flow.blade_local_velocities(i)
            assert axial == pytest.approx(8.0)
            assert tangential == pytest.approx(2.0 * r)
            assert flow.local_lambda(i) == pytest.approx(2.0 * r / 8.0)

    def test_azimuth_does_not_change_uniform_inflow(self, straight_blade):
        a = FlowCalculator(straight_blade, 2.0, 0.0, UniformInletProvider(8.0))
        b = FlowCalculator(straight_blade, 2.0, 1.3, UniformInletProvider(8.0))
        assert_allclose(a.local_velocities, b.local_velocities, atol=1e-12)

    def test_velocities_are_read_only(self, straight_blade):
        flow = FlowCalculator(straight_blade, 2.0, 0.0, UniformInletProvider(8.0))
        with pytest.raises(ValueError):
            flow.local_velocities[0, 0] = 1.0

    def test_tip_speed_ratio(self, straight_blade):
        flow = FlowCalculator(straight_blade, 2.0, 0.0, UniformInletProvider(8.0))
        assert flow.tip_speed_ratio == pytest.approx(2.0 * 3.0 / 8.0)
        still = FlowCalculator(straight_blade, 2.0, 0.0, UniformInletProvider(0.0))
        assert still.tip_speed_ratio == 0.0

    def test_local_lambda_floor(self, straight_blade):
        """Zero axial inflow or zero rotation never returns 0."""
        still = FlowCalculator(straight_blade, 2.0, 0.0, UniformInletProvider(0.0))
        parked = FlowCalculator(straight_blade, 0.0, 0.0, UniformInletProvider(8.0))
        assert still.local_lambda(0) == LAMBDA_EPS
        assert parked.local_lambda(0) == LAMBDA_EPS

    def test_shear_applied_at_section_height(self, straight_blade):
        shear = PowerLawShearModel(exponent=0.2)
        flow = FlowCalculator(straight_blade, 0.0, 0.0, UniformInletProvider(8.0), shear=shear)
        for i, r in enumerate([1.0, 2.0, 3.0]):
            expected = 8.0 * ((90.0 + r) / 90.0) ** 0.2
            assert flow.blade_local_velocities(i)[0] == pytest.approx(expected)

    def test_veer_adds_lateral_component(self, straight_blade):
        veer = LinearVeerModel(veer_rate=10.0, rotor_radius=3.0)
        flow = FlowCalculator(straight_blade, 0.0, 0.0, UniformInletProvider(8.0), veer=veer)
        tangential = flow.blade_local_velocities(2)[1]
        assert tangential == pytest.approx(-8.0 * np.sin(np.radians(10.0)))

    def test_yaw_reduces_axial_inflow(self):
        yawed = build_geometry([1.0, 2.0, 3.0], [0.3, 0.2, 0.1], yaw=30.0)
        flow = FlowCalculator(yawed, 0.0, 0.0, UniformInletProvider(8.0))
        assert flow.blade_local_velocities(0)[0] == pytest.approx(8.0 * np.cos(np.radians(30.0)))

    def test_requires_inlet(self, straight_blade):
        with pytest.raises(ValueError):
            FlowCalculator(straight_blade, 1.0, 0.0, None)


class TestFlowCalculatorFactory:
    def test_default_has_no_shear(self, straight_blade):
        factory = FlowCalculatorFactory()
        assert factory.shear_model(8.0) is None
        assert isinstance(factory.veer_model(straight_blade), NoVeer)

    @pytest.mark.parametrize(
        "shear,cls",
        [("log", LogShearModel), ("power_law", PowerLawShearModel), ("diabatic", DiabaticShearModel)],
    )
    def test_shear_selection(self, shear, cls):
        factory = FlowCalculatorFactory(FlowConfig(shear=shear, shear_exponent=0.1))
        assert isinstance(factory.shear_model(8.0), cls)

    def test_veer_selection(self, straight_blade):
        factory = FlowCalculatorFactory(FlowConfig(veer=True, veer_rate=5.0))
        model = factory.veer_model(straight_blade)
        assert isinstance(model, LinearVeerModel)
        assert model.rotor_radius == pytest.approx(3.0)

    def test_build(self, straight_blade):
        flow = FlowCalculatorFactory().build(straight_blade, 2.0, 8.0, azimuth=0.5)
        assert flow.v_inf == 8.0
        assert flow.azimuth == 0.5
        assert flow.num_sections == 3


class TestTurbulentInlet:
    @pytest.fixture
    def field(self):
        y = np.array([-10.0, 10.0])
        z = np.array([80.0, 100.0])
        velocities = np.zeros((2, 2, 2, 3))
        # Frame 0: u = z / 10; frame 1: uniform 5 m/s
        velocities[0, :, :, 0] = (z / 10.0)[:, None]
        velocities[1, :, :, 0] = 5.0
        return TurbulenceField(y=y, z=z, velocities=velocities, hub_velocity=9.0, timestep=0.5)

    def test_bilinear_interpolation(self, field):
        inlet = TurbulentInletProvider(field, 0)
        assert inlet.velocity_at(np.array([0.0, 0.0, 95.0]))[0] == pytest.approx(9.5)

    def test_clamped_outside_grid(self, field):
        inlet = TurbulentInletProvider(field, 0)
        assert inlet.velocity_at(np.array([0.0, 50.0, 140.0]))[0] == pytest.approx(10.0)

    def test_frame_selection(self, field):
        assert field.num_steps == 2
        assert field.step_index(0.6) == 1
        assert field.step_index(100.0) == 1
        inlet = TurbulentInletProvider(field, field.step_index(0.6))
        assert inlet.velocity_at(np.array([0.0, 0.0, 90.0]))[0] == pytest.approx(5.0)
        assert inlet.hub_velocity == 9.0

    def test_invalid_time_index(self, field):
        with pytest.raises(ValueError, match="out of range"):
            TurbulentInletProvider(field, 2)

    def test_invalid_field_shape(self):
        with pytest.raises(ValueError, match="shape"):
            TurbulenceField(y=[0.0, 1.0], z=[0.0, 1.0], velocities=np.zeros((2, 2, 3)), hub_velocity=8.0)

    def test_factory_builds_turbulent_flow(self, field):
        geometry = build_geometry([1.0, 2.0], [0.2, 0.1], hub_height=90.0)
        flow = FlowCalculatorFactory().build_turbulent(geometry, 0.0, 0.0, field, 0)
        assert flow.blade_local_velocities(0)[0] == pytest.approx(9.1)
        assert flow.v_inf == 9.0
