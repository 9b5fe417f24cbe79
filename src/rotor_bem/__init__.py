"""
Rotor BEM.
==========

Steady blade-element momentum analysis of horizontal-axis wind turbine
rotors: rotor coefficients, sectional loads, controller-driven power
curves and Weibull-based annual energy production.

The package is organized into submodules:

- **core**: Configuration, airfoil polars, rotor geometry and frame rotations
- **flow**: Inflow fields, wind shear, wind veer and blade-local velocities
- **solvers**: Root bracketing, loss and induction models, BEM solver and loads
- **control**: Variable-speed controller, pitch schedule and operating-point loop
- **analysis**: High-level rotor analysis and AEP
- **postprocess**: CSV output and plotting

Example Usage
-------------
::

    from rotor_bem import RotorAnalysis, RotorSimulationConfig

    config = RotorSimulationConfig.from_yaml("rotor.yaml")
    analysis = RotorAnalysis.from_config(config)
    curve = analysis.power_curve()
    aep = analysis.annual_energy(curve)
"""

from .analysis import AEPCalculator, AEPResult, RotorAnalysis
from .core import RotorSimulationConfig, TurbineGeometry
from .solvers import BEMPostprocessor, BEMSolver

__version__ = "0.1.0"

__all__ = [
    "AEPCalculator",
    "AEPResult",
    "BEMPostprocessor",
    "BEMSolver",
    "RotorAnalysis",
    "RotorSimulationConfig",
    "TurbineGeometry",
]
