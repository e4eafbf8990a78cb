import numpy as np
import constants as cst
from typing import NamedTuple


class EnergyConcentration(NamedTuple):
    """Angular widths (deg) enclosing 50/90/99 % of the scattered energy."""

    e50: float
    e90: float
    e99: float


def _intensity_of(distribution) -> np.ndarray:
    # accept a ScatteringDistribution or a bare intensity array
    values = getattr(distribution, "intensity", distribution)
    return np.asarray(values, dtype=float).ravel()


def get_cumulative_energy(distribution) -> np.ndarray:
    """
    Cumulative energy fraction with samples taken brightest first.

    Element i is the share of the total intensity carried by the i+1 brightest
    samples. Returns zeros when the total is zero.
    """
    intensity = _intensity_of(distribution)
    total = float(np.sum(intensity))
    if total == 0.0:
        return np.zeros_like(intensity)

    ranked = np.sort(intensity)[::-1]
    return np.cumsum(ranked) / total


def calculate_energy_concentration(distribution, step: float) -> EnergyConcentration:
    """
    Energy-concentration widths of a uniformly sampled distribution.

    Samples are ranked by intensity; for each fraction X in (0.50, 0.90, 0.99)
    the width is (number of brightest samples needed to reach X of the total)
    times `step`. The widths are rank-based sample budgets, not symmetric
    angular windows around the peak.

    Parameters
    ----------
    distribution : ScatteringDistribution | np.ndarray
        Distribution (or its intensity array). All samples must share the
        angular spacing `step`.
    step : float
        Angular spacing (deg).

    Returns
    -------
    EnergyConcentration
        (e50, e90, e99) rounded to 4 decimals; all zero when the total
        intensity is zero.
    """
    step = float(step)
    if not np.isfinite(step) or step <= 0:
        raise ValueError("step must be a positive finite number.")

    cumulative = get_cumulative_energy(distribution)
    if cumulative.size == 0 or not np.any(cumulative):
        return EnergyConcentration(0.0, 0.0, 0.0)

    widths = []
    for fraction in cst.ENERGY_FRACTIONS:
        reached = cumulative >= fraction
        count = int(np.argmax(reached)) + 1 if np.any(reached) else 0
        widths.append(round(count * step, cst.ANGLE_DECIMALS))
    return EnergyConcentration(*widths)
