"""
Variance inflation factors.

Generalized VIFs (Fox & Monette, 1992) computed per model term from the
correlation matrix R of the non-intercept design columns:

    GVIF_j = det(R_jj) det(R_-j,-j) / det(R)

For a term with a single column this is the classic 1 / (1 - R²_j).
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pysumm.core.exceptions import ConfigurationError, EstimationError


def _predictor_terms(
    X: NDArray[np.floating[Any]],
    term_slices: dict[str, slice],
) -> dict[str, NDArray[np.intp]]:
    """Column indices of each term, dropping constant (intercept) columns."""
    constant = np.all(X == X[0], axis=0)
    terms = {}
    for name, sl in term_slices.items():
        cols = np.arange(X.shape[1])[sl]
        cols = cols[~constant[cols]]
        if cols.size:
            terms[name] = cols
    return terms


def count_predictor_terms(X: NDArray[np.floating[Any]], term_slices: dict[str, slice]) -> int:
    return len(_predictor_terms(X, term_slices))


def term_vifs(
    X: NDArray[np.floating[Any]],
    term_slices: dict[str, slice],
    family: str,
) -> dict[str, float]:
    """
    Generalized VIF for every non-intercept term.

    Args:
        X: Design matrix (n x p)
        term_slices: Term name -> columns of X
        family: Model family name, for error messages

    Returns:
        Term name -> GVIF

    Raises:
        ConfigurationError: If fewer than two predictor terms exist
        EstimationError: If the predictor correlation matrix is singular
    """
    terms = _predictor_terms(X, term_slices)
    if len(terms) < 2:
        raise ConfigurationError(
            f"vifs=True needs at least two predictor terms; this {family} model "
            f"has {len(terms)}",
            option='vifs',
            family=family,
        )

    columns = np.concatenate(list(terms.values()))
    R = np.corrcoef(X[:, columns], rowvar=False)
    det_R = np.linalg.det(R)
    if not np.isfinite(det_R) or det_R <= 1e-12:
        raise EstimationError(
            f"vifs=True failed for this {family} model: the predictors are "
            f"perfectly collinear (rank-deficient design)",
            step='vif',
        )

    position = {col: i for i, col in enumerate(columns)}
    result = {}
    for name, cols in terms.items():
        inside = np.array([position[c] for c in cols])
        outside = np.setdiff1d(np.arange(columns.size), inside)
        det_in = np.linalg.det(R[np.ix_(inside, inside)])
        det_out = np.linalg.det(R[np.ix_(outside, outside)])
        result[name] = float(det_in * det_out / det_R)
    return result


def row_vifs(
    term_names: tuple[str, ...],
    term_slices: dict[str, slice],
    vifs: dict[str, float],
) -> list[float | None]:
    """Spread per-term VIFs onto coefficient rows; the intercept gets None."""
    per_column: list[float | None] = [None] * len(term_names)
    for name, sl in term_slices.items():
        if name not in vifs:
            continue
        for col in np.arange(len(term_names))[sl]:
            per_column[col] = vifs[name]
    return per_column
