"""
Bracketed scalar root finding.

:class:`BrentsRootFinder` wraps :func:`scipy.optimize.brentq` so that every
failure (no sign change, non-finite values, iteration cap) is reported as
"no result" instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.optimize import brentq

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RootResult:
    """
    Outcome of one bracketed solve.

    Attributes
    ----------
    root : Optional[float]
        Root location, ``None`` when not found.
    iterations : int
        Brent iterations performed.
    function_calls : int
        Function evaluations, endpoint checks included.
    converged : bool
        True when ``root`` meets the tolerance.
    bracketed : bool
        True when the endpoints had opposite signs.
    """

    root: Optional[float]
    iterations: int = 0
    function_calls: int = 0
    converged: bool = False
    bracketed: bool = False


class BrentsRootFinder:
    """
    Brent's method on a sign-changing interval.

    Parameters
    ----------
    tolerance : float
        Absolute tolerance on the root location.
    max_iterations : int
        Iteration cap.
    """

    def __init__(self, tolerance: float = 1e-6, max_iterations: int = 400):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive: {tolerance}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1: {max_iterations}")
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    def solve(self, f: Callable[[float], float], lower: float, upper: float) -> Optional[float]:
        """Return a root of ``f`` in ``[lower, upper]`` or ``None``."""
        return self.solve_detailed(f, lower, upper).root

    def solve_detailed(self, f: Callable[[float], float], lower: float, upper: float) -> RootResult:
        """
        Solve and report iteration statistics.

        Parameters
        ----------
        f : Callable[[float], float]
            Continuous function.
        lower, upper : float
            Interval endpoints.

        Returns
        -------
        RootResult
            ``root`` is ``None`` unless a converged root was found.
        """
        fa = f(lower)
        fb = f(upper)
        if not (np.isfinite(fa) and np.isfinite(fb)):
            return RootResult(root=None, function_calls=2)
        if fa == 0.0:
            return RootResult(root=lower, function_calls=2, converged=True, bracketed=True)
        if fb == 0.0:
            return RootResult(root=upper, function_calls=2, converged=True, bracketed=True)
        if fa * fb > 0.0:
            return RootResult(root=None, function_calls=2)

        root, info = brentq(
            f,
            lower,
            upper,
            xtol=self.tolerance,
            maxiter=self.max_iterations,
            full_output=True,
            disp=False,
        )
        calls = info.function_calls + 2
        if not info.converged or not np.isfinite(root):
            logger.debug(
                "Brent solve on [%g, %g] did not converge after %d iterations (%s)",
                lower,
                upper,
                info.iterations,
                info.flag,
            )
            return RootResult(
                root=None, iterations=info.iterations, function_calls=calls, bracketed=True
            )
        return RootResult(
            root=float(root),
            iterations=info.iterations,
            function_calls=calls,
            converged=True,
            bracketed=True,
        )


def find_brackets(
    f: Callable[[float], float], x1: float, x2: float, n: int = 80
) -> List[Tuple[float, float]]:
    """
    Scan ``[x1, x2]`` in ``n`` equal steps for sign changes.

    Parameters
    ----------
    f : Callable[[float], float]
        Function to scan.
    x1, x2 : float
        Scan range.
    n : int
        Number of sub-intervals.

    Returns
    -------
    brackets : List[Tuple[float, float]]
        Sub-intervals whose endpoint values have opposite signs (or a zero),
        in increasing order.
    """
    xs = np.linspace(x1, x2, n + 1)
    brackets = []
    fx_prev = f(xs[0])
    for x_prev, x in zip(xs[:-1], xs[1:]):
        fx = f(x)
        if np.isfinite(fx) and np.isfinite(fx_prev) and fx * fx_prev <= 0.0:
            brackets.append((float(x_prev), float(x)))
        fx_prev = fx
    return brackets
