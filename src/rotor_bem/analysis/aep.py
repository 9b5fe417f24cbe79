"""
Annual energy production from a power curve and a Weibull wind climate.

The Weibull scale follows from the mean wind speed and the shape factor,
``A = v_mean / Γ(1 + 1/k)``. Each wind-speed bin ``[v, v + dv)`` receives the
probability ``exp(-(v/A)^k) - exp(-((v+dv)/A)^k)`` and the electrical power
at the bin centre.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from scipy.special import gamma

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AEPResult:
    """
    Energy yield for one mean wind speed.

    Attributes
    ----------
    mean_wind_speed : float
        Annual mean wind speed [m/s].
    energy_kwh : float
        Annual energy production [kWh].
    revenue : float
        ``energy_kwh`` times the energy price.
    """

    mean_wind_speed: float
    energy_kwh: float
    revenue: float


class AEPCalculator:
    """
    Weibull-binned AEP.

    Parameters
    ----------
    wind_speeds : Sequence[float]
        Power-curve wind speeds [m/s], strictly increasing.
    electrical_power : Sequence[float]
        Electrical power at ``wind_speeds`` [W]; zero outside the curve.
    bin_width : float
        Width ``dv`` of the integration bins [m/s].
    weibull_k : float
        Weibull shape factor.
    energy_price : float
        Price per kWh.
    bin_start : float
        Lower edge of the first bin [m/s].
    bin_end : float, optional
        Upper edge of the last bin [m/s]; defaults to the last curve speed.
    hours_per_year : float
        Hours in a year.
    """

    def __init__(
        self,
        wind_speeds: Sequence[float],
        electrical_power: Sequence[float],
        bin_width: float,
        weibull_k: float,
        energy_price: float = 0.0,
        bin_start: float = 0.0,
        bin_end: Optional[float] = None,
        hours_per_year: float = 8760.0,
    ):
        self.wind_speeds = np.asarray(wind_speeds, dtype=np.float64)
        self.electrical_power = np.asarray(electrical_power, dtype=np.float64)
        if len(self.wind_speeds) == 0 or len(self.wind_speeds) != len(self.electrical_power):
            raise ValueError(
                f"Power curve needs matching non-empty columns, got "
                f"{len(self.wind_speeds)} speeds and {len(self.electrical_power)} powers"
            )
        if np.any(np.diff(self.wind_speeds) <= 0):
            raise ValueError("Power curve wind speeds must be strictly increasing")
        if bin_width <= 0:
            raise ValueError(f"bin_width must be positive: {bin_width}")
        if weibull_k <= 0:
            raise ValueError(f"weibull_k must be positive: {weibull_k}")

        self.bin_width = bin_width
        self.weibull_k = weibull_k
        self.energy_price = energy_price
        self.hours_per_year = hours_per_year
        self.bin_start = bin_start
        self.bin_end = float(self.wind_speeds[-1]) if bin_end is None else bin_end
        if self.bin_end <= self.bin_start:
            raise ValueError(
                f"bin_end ({self.bin_end}) must be above bin_start ({self.bin_start})"
            )

        n_bins = int(np.ceil((self.bin_end - self.bin_start) / bin_width - 1e-9))
        self.bin_edges = self.bin_start + bin_width * np.arange(n_bins + 1)
        self.bin_centres = self.bin_edges[:-1] + 0.5 * bin_width
        self.bin_power = np.interp(
            self.bin_centres, self.wind_speeds, self.electrical_power, left=0.0, right=0.0
        )

    def weibull_scale(self, mean_wind_speed: float) -> float:
        """Scale parameter A for the given mean speed [m/s]."""
        return mean_wind_speed / gamma(1.0 + 1.0 / self.weibull_k)

    def bin_probabilities(self, mean_wind_speed: float) -> np.ndarray:
        """Probability of each bin ``[v, v + dv)``."""
        A = self.weibull_scale(mean_wind_speed)
        k = self.weibull_k
        exceedance = np.exp(-((self.bin_edges / A) ** k))
        return exceedance[:-1] - exceedance[1:]

    def compute(self, mean_wind_speed: float) -> AEPResult:
        """
        AEP and revenue at one mean wind speed.

        Raises
        ------
        ValueError
            If ``mean_wind_speed`` is not positive.
        """
        if mean_wind_speed <= 0:
            raise ValueError(f"mean_wind_speed must be positive: {mean_wind_speed}")
        probabilities = self.bin_probabilities(mean_wind_speed)
        energy_kwh = self.hours_per_year * float(np.sum(probabilities * self.bin_power)) / 1000.0
        return AEPResult(
            mean_wind_speed=mean_wind_speed,
            energy_kwh=energy_kwh,
            revenue=energy_kwh * self.energy_price,
        )

    def compute_range(self, mean_wind_speeds: Sequence[float]) -> List[AEPResult]:
        results = [self.compute(v) for v in mean_wind_speeds]
        for r in results:
            logger.info(
                "AEP at v_mean=%.2f m/s: %.1f MWh, revenue %.2f",
                r.mean_wind_speed,
                r.energy_kwh / 1e3,
                r.revenue,
            )
        return results

    def full_load_hours(self, result: AEPResult, rated_power: float) -> float:
        """Equivalent full-load hours of ``result`` for a rated power [W]."""
        return result.energy_kwh / (rated_power / 1000.0)
