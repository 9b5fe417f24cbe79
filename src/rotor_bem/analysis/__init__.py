from .aep import AEPCalculator, AEPResult
from .rotor import RotorAnalysis, build_geometry, build_polar

__all__ = ["AEPCalculator", "AEPResult", "RotorAnalysis", "build_geometry", "build_polar"]
