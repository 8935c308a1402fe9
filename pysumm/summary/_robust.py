"""
Coefficient covariance selection.

Heteroskedasticity-consistent covariance comes from statsmodels wherever
statsmodels provides the requested type: HC0-HC3 for linear models and
HC0 for GLMs. The remaining variants (HC4 and HC5 everywhere, HC1-HC3 for
GLMs) are computed from the adapter's sandwich pieces:

    V = B X' diag(f_i s_i² ω_i) X B

with B = (X'WX)^-1, s_i the score residual of one unit, f_i its frequency
weight and ω_i the small-sample adjustment built from the hat values h_i
(MacKinnon & White 1985; Cribari-Neto 2004, 2007). Cluster-robust
covariance is delegated to statsmodels.

References:
    Zeileis, A. (2004). Econometric Computing with HC and HAC Covariance
    Matrix Estimators. Journal of Statistical Software, 11(10).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from statsmodels.stats.sandwich_covariance import cov_cluster

from pysumm.core.exceptions import EstimationError
from pysumm.models.base import SandwichParts

# Cribari-Neto (2007) constant for HC5
HC5_K = 0.7

LEVERAGE_ADJUSTED = frozenset({'HC2', 'HC3', 'HC4', 'HC5'})


@dataclass(frozen=True)
class CovarianceChoice:
    """The covariance matrix used for inference and how it was obtained."""
    matrix: NDArray[np.floating[Any]]
    se_type: str


def hat_values(parts: SandwichParts) -> NDArray[np.floating[Any]]:
    """Diagonal of the (weighted) hat matrix, per unit of frequency weight."""
    X, B = parts.X, parts.bread
    return parts.working_weights * np.einsum('ij,jk,ik->i', X, B, X)


def _omega(hc_type: str, h: NDArray, n: float, k: int) -> NDArray:
    if hc_type == 'HC0':
        return np.ones_like(h)
    if hc_type == 'HC1':
        return np.full_like(h, n / (n - k))
    if hc_type == 'HC2':
        return 1.0 / (1.0 - h)
    if hc_type == 'HC3':
        return 1.0 / (1.0 - h) ** 2
    if hc_type == 'HC4':
        delta = np.minimum(4.0, n * h / k)
        return 1.0 / (1.0 - h) ** delta
    if hc_type == 'HC5':
        delta = np.minimum(n * h / k, max(4.0, n * HC5_K * h.max() / k))
        return 1.0 / np.sqrt((1.0 - h) ** delta)
    raise ValueError(f"Unknown HC type: {hc_type!r}")


def _check_defined(parts: SandwichParts, hc_type: str) -> None:
    n, k = parts.n_units, parts.X.shape[1]
    if hc_type in LEVERAGE_ADJUSTED and np.any(hat_values(parts) >= 1.0 - 1e-10):
        raise EstimationError(
            f"robust={hc_type!r}: at least one observation has leverage 1, "
            f"so {hc_type} is undefined; use 'HC0' or 'HC1'",
            step='covariance',
        )
    if hc_type == 'HC1' and n <= k:
        raise EstimationError(
            f"robust='HC1': needs more observations ({n:g}) than coefficients ({k})",
            step='covariance',
        )


def _check_finite(vcov: NDArray[np.floating[Any]], hc_type: str) -> NDArray[np.floating[Any]]:
    if not np.all(np.isfinite(vcov)):
        raise EstimationError(
            f"robust={hc_type!r}: covariance contains non-finite values",
            step='covariance',
        )
    return vcov


def hc_covariance(parts: SandwichParts, hc_type: str) -> NDArray[np.floating[Any]]:
    """
    Heteroskedasticity-consistent covariance from sandwich pieces.

    Frequency weights enter the meat once: a row with weight f counts as
    f identical observations.

    Raises:
        EstimationError: If an observation has leverage 1 under a
                         leverage-adjusted variant, or the result is not finite
    """
    _check_defined(parts, hc_type)
    X, B = parts.X, parts.bread
    h = hat_values(parts)
    omega = _omega(hc_type, h, parts.n_units, X.shape[1])
    meat = (X * (parts.frequencies * parts.score ** 2 * omega)[:, None]).T @ X
    return _check_finite(B @ meat @ B, hc_type)


def robust_covariance(model: Any, hc_type: str) -> NDArray[np.floating[Any]]:
    """
    HC covariance of a model exposing sandwich pieces.

    Uses the model's statsmodels estimate when it has one for ``hc_type``
    and falls back to hc_covariance otherwise.

    Raises:
        EstimationError: As hc_covariance
    """
    parts = model.sandwich_parts()
    _check_defined(parts, hc_type)
    library = getattr(model, 'statsmodels_hc_covariance', None)
    vcov = library(hc_type) if library is not None else None
    if vcov is None:
        return hc_covariance(parts, hc_type)
    return _check_finite(np.asarray(vcov, dtype=np.float64), hc_type)


def cluster_covariance(results: Any, groups: NDArray[Any]) -> NDArray[np.floating[Any]]:
    """
    Cluster-robust covariance via statsmodels.

    Raises:
        EstimationError: If statsmodels fails on the given grouping
    """
    codes = np.unique(groups, return_inverse=True)[1].astype(np.int64)
    if np.unique(codes).size < 2:
        raise EstimationError(
            "cluster: cluster-robust standard errors need at least two clusters",
            step='covariance',
        )
    try:
        vcov = cov_cluster(getattr(results, '_results', results), codes)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise EstimationError(
            f"cluster: cluster-robust covariance failed: {e}",
            step='covariance',
            cause=e,
        ) from e
    return np.asarray(vcov, dtype=np.float64)
