"""
Predictor centering and standardization.

The transformation is a pure function of the data: it returns a new frame
and never touches the frame the model was fitted on. The caller then refits
the model on that frame, so standard errors reflect the new scale.

Only continuous variables are transformed. Variables wrapped in C() in the
formula, non-numeric columns and two-valued (binary) columns are left as
they are.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


@dataclass(frozen=True)
class FormulaVariables:
    """Data columns referenced on each side of a model formula."""
    response: tuple[str, ...]
    predictors: tuple[str, ...]
    factors: tuple[str, ...]


def formula_variables(formula: str, columns: pd.Index) -> FormulaVariables:
    """Find which data columns a formula uses, and which are factors."""
    lhs, _, rhs = formula.partition('~')
    present = set(columns)

    def _names(side: str) -> tuple[str, ...]:
        seen = []
        for token in _IDENTIFIER.findall(side):
            if token in present and token not in seen:
                seen.append(token)
        return tuple(seen)

    factors = tuple(
        name for name in _names(rhs)
        if re.search(r"\bC\(\s*" + re.escape(name) + r"\b", rhs)
    )
    return FormulaVariables(response=_names(lhs), predictors=_names(rhs), factors=factors)


def _is_continuous(values: pd.Series) -> bool:
    if not pd.api.types.is_numeric_dtype(values) or pd.api.types.is_bool_dtype(values):
        return False
    return values.nunique(dropna=True) > 2


def weighted_mean_sd(
    x: NDArray[np.floating[Any]],
    weights: NDArray[np.floating[Any]] | None,
) -> tuple[float, float]:
    """
    Mean and standard deviation, optionally weighted.

    The weighted SD uses the reliability-weights correction, which reduces
    to the sample SD (ddof=1) when all weights are equal.
    """
    if weights is None:
        return float(np.mean(x)), float(np.std(x, ddof=1))
    w = weights / weights.sum()
    mean = float(np.sum(w * x))
    var = np.sum(w * (x - mean) ** 2) / (1.0 - np.sum(w ** 2))
    return mean, float(np.sqrt(var))


def transform_frame(
    data: pd.DataFrame,
    formula: str,
    *,
    scale: bool,
    n_sd: float,
    transform_response: bool,
    weights: NDArray[np.floating[Any]] | None = None,
) -> tuple[pd.DataFrame, tuple[str, ...]]:
    """
    Center (and optionally scale) the continuous variables of a formula.

    Args:
        data: Data the model was fitted on (not modified)
        formula: Model formula
        scale: Divide by n_sd standard deviations after centering
        n_sd: Number of standard deviations
        transform_response: Transform the response variable too
        weights: Observation weights for weighted mean and SD

    Returns:
        (new frame, names of the transformed columns)
    """
    variables = formula_variables(formula, data.columns)
    targets = [v for v in variables.predictors if v not in variables.factors]
    if transform_response:
        targets += [v for v in variables.response if v not in targets]

    frame = data.copy()
    transformed = []
    for name in targets:
        column = frame[name]
        if not _is_continuous(column):
            continue
        x = column.to_numpy(dtype=np.float64)
        mean, sd = weighted_mean_sd(x, weights)
        x = x - mean
        if scale:
            x = x / (n_sd * sd)
        frame[name] = x
        transformed.append(name)
    return frame, tuple(transformed)
