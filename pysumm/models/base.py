"""
Base adapter for statsmodels-backed fitted models.

An adapter is a read-only view over a fitted results object that exposes
the FittedModel protocol: coefficients, native covariance, refit hook and
family metadata. Each model family gets one concrete adapter; the summary
builder talks only to the adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pysumm.core.capabilities import CAPABILITY_DESIGN_MATRIX, CAPABILITY_REFIT
from pysumm.core.protocols import ModelFamily

if TYPE_CHECKING:
    import pandas as pd


# Fitted HC covariance types a refit reproduces by name
REFIT_COV_TYPES = frozenset({'HC0', 'HC1', 'HC2', 'HC3'})


@dataclass(frozen=True)
class FitStatistic:
    """
    One model fit statistic, e.g. ``F(3, 46) = 4.05, p = 0.01``.

    Attributes:
        label: Display label ('F', 'R²', 'AIC', ...)
        value: Statistic value
        df: Degrees of freedom shown in parentheses, if any
        p_value: Associated p-value, if any
    """
    label: str
    value: float
    df: tuple[float, ...] | None = None
    p_value: float | None = None


@dataclass(frozen=True)
class SandwichParts:
    """
    Pieces of an HC sandwich covariance.

    For one unit of row i the estimating-function contribution is
    ``score[i] * X[i]``; the bread is the unscaled inverse information
    (X'WX)^-1 and ``working_weights`` gives the hat values
    h_i = w_i x_i' (X'WX)^-1 x_i. ``frequency_weights`` counts how many
    units each row stands for (None means one each).
    """
    X: NDArray[np.floating[Any]]
    score: NDArray[np.floating[Any]]
    working_weights: NDArray[np.floating[Any]]
    bread: NDArray[np.floating[Any]]
    frequency_weights: NDArray[np.floating[Any]] | None = None

    @property
    def frequencies(self) -> NDArray[np.floating[Any]]:
        if self.frequency_weights is None:
            return np.ones(self.X.shape[0])
        return self.frequency_weights

    @property
    def n_units(self) -> float:
        """Number of observations, counting frequency weights."""
        return float(self.frequencies.sum())


class ModelAdapter(ABC):
    """Abstract read-only view over a statsmodels results object."""

    family: ModelFamily

    def __init__(self, results: Any):
        self._results = results

    # === Underlying objects ===

    @property
    def results(self) -> Any:
        """The wrapped statsmodels results object."""
        return self._results

    @property
    def _model(self) -> Any:
        return self._results.model

    @property
    def source(self) -> str:
        """Identifier of the wrapped model, e.g. 'statsmodels.OLS'."""
        return f"statsmodels.{type(self._model).__name__}"

    # === Coefficients ===

    @property
    def term_names(self) -> tuple[str, ...]:
        return tuple(str(name) for name in self._model.exog_names)

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return np.asarray(self._results.params, dtype=np.float64)

    def covariance(self) -> NDArray[np.floating[Any]]:
        return np.asarray(self._results.cov_params(), dtype=np.float64)

    def statsmodels_hc_covariance(self, hc_type: str) -> NDArray[np.floating[Any]] | None:
        """statsmodels' own ``hc_type`` covariance, or None if it has none."""
        return None

    # === Data and structure ===

    @property
    def n_obs(self) -> int:
        return int(self._results.nobs)

    @property
    def response_name(self) -> str:
        return str(self._model.endog_names)

    @property
    def formula(self) -> str | None:
        return getattr(self._model, 'formula', None)

    @property
    def data(self) -> pd.DataFrame | None:
        return getattr(self._model.data, 'frame', None)

    @property
    def weights(self) -> NDArray[np.floating[Any]] | None:
        """Analytic weights used in the fit, or None for unweighted fits."""
        return None

    @property
    def converged(self) -> bool:
        return bool(getattr(self._results, 'converged', True))

    @property
    def has_intercept(self) -> bool:
        X = self.design_matrix()
        return bool(np.any(np.all(X == 1.0, axis=0)))

    def design_matrix(self) -> NDArray[np.floating[Any]]:
        """Fixed-effects design matrix (n x p)."""
        return np.asarray(self._model.exog, dtype=np.float64)

    def term_slices(self) -> dict[str, slice]:
        """
        Map each model term to its columns in the design matrix.

        Formula-fitted models carry a patsy DesignInfo that groups the
        dummy columns of a factor under one term; otherwise every column
        is its own term. statsmodels 0.15 stores it as ``model_spec``,
        earlier releases as ``design_info``.
        """
        data = self._model.data
        spec = getattr(data, 'model_spec', None) or getattr(data, 'design_info', None)
        term_name_slices = getattr(spec, 'term_name_slices', None)
        if term_name_slices is not None:
            return dict(term_name_slices)
        return {name: slice(i, i + 1) for i, name in enumerate(self.term_names)}

    # === Family metadata ===

    @property
    @abstractmethod
    def model_type(self) -> str:
        """Human-readable model description for the summary header."""
        ...

    @property
    def family_name(self) -> str | None:
        return None

    @property
    def link_name(self) -> str | None:
        return None

    @property
    def df_resid(self) -> float | None:
        """
        Degrees of freedom of the reference t distribution.

        None means inference uses the standard normal.
        """
        return None

    @abstractmethod
    def fit_statistics(self) -> tuple[FitStatistic, ...]:
        """Family-appropriate model fit statistics."""
        ...

    # === Refit ===

    def refit(self, data: pd.DataFrame) -> ModelAdapter:
        """
        Re-estimate with the same formula, family and weights on new data.

        Returns a new adapter; this one is left untouched.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support refit")

    def _refit_fit_options(self) -> dict[str, Any] | None:
        """
        Keyword arguments that make a refit report the same covariance
        type as this fit, or None when it cannot be reproduced.
        """
        cov_type = getattr(self._results, 'cov_type', 'nonrobust')
        use_t = getattr(self._results, 'use_t', None)
        if cov_type == 'nonrobust':
            return {}
        if cov_type in REFIT_COV_TYPES:
            return {'cov_type': cov_type, 'use_t': use_t}
        if cov_type == 'cluster':
            # groups are row-aligned and refits keep the row order
            kwds = self._results.cov_kwds
            return {
                'cov_type': cov_type,
                'cov_kwds': {
                    'groups': kwds['groups'],
                    'use_correction': kwds.get('use_correction', True),
                },
                'use_t': use_t,
            }
        return None

    def _can_refit(self) -> bool:
        frame = self.data
        return (
            self.formula is not None
            and frame is not None
            and len(frame) == self.n_obs
            and self._refit_fit_options() is not None
        )

    # === Capabilities ===

    def _capabilities(self) -> frozenset[str]:
        caps = {CAPABILITY_DESIGN_MATRIX}
        if self._can_refit():
            caps.add(CAPABILITY_REFIT)
        return frozenset(caps)

    def supports(self, capability: str) -> bool:
        """Check if this model supports a given capability."""
        return capability in self._capabilities()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.source}, n={self.n_obs}, "
            f"terms={len(self.term_names)})"
        )


def prior_weights(*arrays: Any) -> NDArray[np.floating[Any]] | None:
    """
    Combine weight arrays, returning None when every weight is 1.

    statsmodels stores unit weights both as the scalar 1.0 and as arrays
    of ones; both mean "unweighted".
    """
    combined = None
    for array in arrays:
        if array is None or np.ndim(array) == 0:
            continue
        array = np.asarray(array, dtype=np.float64)
        combined = array if combined is None else combined * array
    if combined is None or np.all(combined == 1.0):
        return None
    return combined
