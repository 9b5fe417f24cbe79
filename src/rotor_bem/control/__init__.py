"""
Turbine control and operating-point iteration.
"""

from .controller import (
    ControllerInput,
    ControllerOutput,
    ControllerParams,
    TurbineController,
    VariableSpeedController,
)
from .efficiency import ConstantEfficiency, EfficiencyModel, TableEfficiency
from .operation import OperationSolver, OperationSolverParams, PowerCurvePoint
from .pitch import StandardPitchSchedule

__all__ = [
    "ControllerInput",
    "ControllerOutput",
    "ControllerParams",
    "TurbineController",
    "VariableSpeedController",
    "ConstantEfficiency",
    "EfficiencyModel",
    "TableEfficiency",
    "OperationSolver",
    "OperationSolverParams",
    "PowerCurvePoint",
    "StandardPitchSchedule",
]
