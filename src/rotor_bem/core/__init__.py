"""
Core module for rotor-bem.

Provides configuration, airfoil polars, rotor geometry and coordinate
frame rotations.
"""

from .config import (
    AEPConfig,
    AirfoilConfig,
    BEMSettings,
    BladeSectionConfig,
    ControllerConfig,
    FlowConfig,
    MacroGeometryConfig,
    OperationConfig,
    OutputConfig,
    PowerMode,
    RotorSimulationConfig,
    ShearType,
)
from .geometry import BladeSection, TurbineGeometry
from .polar import AirfoilPolar, FlatPlatePolar, ReynoldsPolarSet, TabulatedPolar
from .transforms import frame_rotation, rotate_vectors, rotation_matrix

__all__ = [
    "AEPConfig",
    "AirfoilConfig",
    "BEMSettings",
    "BladeSectionConfig",
    "ControllerConfig",
    "FlowConfig",
    "MacroGeometryConfig",
    "OperationConfig",
    "OutputConfig",
    "PowerMode",
    "RotorSimulationConfig",
    "ShearType",
    "BladeSection",
    "TurbineGeometry",
    "AirfoilPolar",
    "FlatPlatePolar",
    "ReynoldsPolarSet",
    "TabulatedPolar",
    "frame_rotation",
    "rotate_vectors",
    "rotation_matrix",
]
