"""
Inflow modelling.

- **inlet**: Free-stream velocity fields (uniform or turbulent box)
- **shear**: Vertical wind profiles (log, power law, diabatic)
- **veer**: Wind direction change with height
- **calculator**: Blade-local velocities for one rotor state
"""

from .calculator import FlowCalculator, FlowCalculatorFactory
from .inlet import InletProvider, TurbulenceField, TurbulentInletProvider, UniformInletProvider
from .shear import (
    DiabaticShearModel,
    LogShearModel,
    PowerLawShearModel,
    ShearInput,
    ShearModel,
)
from .veer import LinearVeerModel, NoVeer, VeerInput, VeerModel

__all__ = [
    "FlowCalculator",
    "FlowCalculatorFactory",
    "InletProvider",
    "TurbulenceField",
    "TurbulentInletProvider",
    "UniformInletProvider",
    "DiabaticShearModel",
    "LogShearModel",
    "PowerLawShearModel",
    "ShearInput",
    "ShearModel",
    "LinearVeerModel",
    "NoVeer",
    "VeerInput",
    "VeerModel",
]
