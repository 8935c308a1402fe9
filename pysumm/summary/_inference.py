"""
Wald inference from a coefficient vector and its covariance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pysumm.core.exceptions import EstimationError


@dataclass(frozen=True)
class WaldTable:
    """Column-wise Wald inference, one entry per coefficient."""
    std_error: NDArray[np.floating[Any]]
    statistic: NDArray[np.floating[Any]]
    p_value: NDArray[np.floating[Any]]
    conf_low: NDArray[np.floating[Any]]
    conf_high: NDArray[np.floating[Any]]
    statistic_label: str


def reference_distribution(df: float | NDArray[np.floating[Any]] | None):
    """
    t with ``df`` degrees of freedom, or the standard normal when None.

    ``df`` may be a vector with one entry per coefficient.
    """
    if df is None:
        return stats.norm()
    return stats.t(df)


def wald_table(
    coefficients: NDArray[np.floating[Any]],
    covariance: NDArray[np.floating[Any]],
    df: float | NDArray[np.floating[Any]] | None,
    ci_width: float,
) -> WaldTable:
    """
    Standard errors, test statistics, two-sided p-values and intervals.

    Raises:
        EstimationError: If the covariance has a negative diagonal or the
                         degrees of freedom are not positive
    """
    variances = np.diag(covariance)
    if np.any(variances < 0):
        raise EstimationError(
            "Coefficient covariance has negative variances on its diagonal",
            step='covariance',
        )
    if df is not None and np.any(np.asarray(df) <= 0):
        raise EstimationError(
            f"Reference t distribution needs positive degrees of freedom, got {df}",
            step='covariance',
        )

    dist = reference_distribution(df)
    se = np.sqrt(variances)
    with np.errstate(divide='ignore', invalid='ignore'):
        statistic = coefficients / se
    p_value = 2.0 * dist.sf(np.abs(statistic))

    crit = dist.ppf(0.5 + ci_width / 2.0)
    return WaldTable(
        std_error=se,
        statistic=statistic,
        p_value=p_value,
        conf_low=coefficients - crit * se,
        conf_high=coefficients + crit * se,
        statistic_label='z' if df is None else 't',
    )
