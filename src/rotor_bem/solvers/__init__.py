"""
Blade-element momentum solvers.

- **root_finder**: Bracketed scalar root finding (Brent)
- **losses**: Prandtl tip and hub loss factors
- **induction**: Axial and tangential induction models
- **elements**: Element lengths and sectional forces
- **bem**: Per-section inflow-angle solver and rotor coefficients
- **postprocessor**: Sectional and integral loads from a converged solve
"""

from .bem import BEMSolver, SectionSolution, SolverResult
from .induction import EmpiricalWakeInduction, InductionFactors, InductionInput, ZeroInduction
from .losses import (
    CombinedLoss,
    LossInput,
    NoLoss,
    PrandtlHubLoss,
    PrandtlTipLoss,
    loss_model_from_flags,
)
from .postprocessor import BEMPostprocessor, PostprocessResult
from .root_finder import BrentsRootFinder, RootResult, find_brackets

__all__ = [
    "BEMSolver",
    "SectionSolution",
    "SolverResult",
    "EmpiricalWakeInduction",
    "InductionFactors",
    "InductionInput",
    "ZeroInduction",
    "CombinedLoss",
    "LossInput",
    "NoLoss",
    "PrandtlHubLoss",
    "PrandtlTipLoss",
    "loss_model_from_flags",
    "BEMPostprocessor",
    "PostprocessResult",
    "BrentsRootFinder",
    "RootResult",
    "find_brackets",
]
