"""
Unit tests for bracketed root finding.
"""

import numpy as np
import pytest

from rotor_bem.solvers.root_finder import BrentsRootFinder, RootResult, find_brackets


class TestBrentsRootFinder:
    @pytest.fixture
    def finder(self):
        return BrentsRootFinder(tolerance=1e-10, max_iterations=100)

    def test_linear_function(self, finder):
        result = finder.solve_detailed(lambda x: 2.0 * (x - 0.3), 0.0, 1.0)
        assert result.converged
        assert result.bracketed
        assert result.root == pytest.approx(0.3, abs=1e-9)
        assert result.iterations <= 10

    def test_nonlinear_function(self, finder):
        root = finder.solve(np.cos, 0.0, 3.0)
        assert root == pytest.approx(np.pi / 2, abs=1e-9)

    def test_no_sign_change(self, finder):
        result = finder.solve_detailed(lambda x: x * x + 1.0, -1.0, 1.0)
        assert result == RootResult(root=None, function_calls=2)

    def test_non_finite_endpoint(self, finder):
        assert finder.solve(lambda x: np.nan if x > 0.5 else x - 0.25, 0.0, 1.0) is None

    def test_zero_at_endpoint(self, finder):
        assert finder.solve(lambda x: x - 1.0, 0.0, 1.0) == 1.0
        assert finder.solve(lambda x: x, 0.0, 1.0) == 0.0

    def test_iteration_cap(self):
        finder = BrentsRootFinder(tolerance=1e-14, max_iterations=1)
        result = finder.solve_detailed(lambda x: x**3 - 0.1, 0.0, 1.0)
        assert result.root is None
        assert result.bracketed
        assert not result.converged

    @pytest.mark.parametrize("tolerance,max_iterations", [(0.0, 10), (1e-6, 0)])
    def test_invalid_settings(self, tolerance, max_iterations):
        with pytest.raises(ValueError):
            BrentsRootFinder(tolerance, max_iterations)


class TestFindBrackets:
    def test_finds_every_sign_change(self):
        brackets = find_brackets(np.sin, 0.5, 3.0 * np.pi - 0.5, n=50)
        assert len(brackets) == 2
        for (lo, hi), root in zip(brackets, [np.pi, 2.0 * np.pi]):
            assert lo <= root <= hi

    def test_no_brackets(self):
        assert find_brackets(lambda x: 1.0 + x * x, -2.0, 2.0, n=20) == []

    def test_skips_non_finite_values(self):
        brackets = find_brackets(lambda x: np.nan if abs(x) < 0.1 else x, -1.0, 1.0, n=20)
        assert brackets == []
