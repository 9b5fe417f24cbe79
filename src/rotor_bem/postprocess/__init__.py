"""
Result output: CSV writers and power-curve plots.
"""

from .results_logger import PowerCurveLogger, write_aep_table
from .visualizer import PowerCurveVisualizer

__all__ = ["PowerCurveLogger", "PowerCurveVisualizer", "write_aep_table"]
