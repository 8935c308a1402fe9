"""
Adapter for linear models (statsmodels OLS / WLS / GLS results).
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from statsmodels.regression.linear_model import OLS, WLS

from pysumm.core.capabilities import (
    CAPABILITY_CLUSTER_COVARIANCE,
    CAPABILITY_SANDWICH,
)
from pysumm.core.protocols import ModelFamily
from pysumm.models.base import (
    FitStatistic,
    ModelAdapter,
    SandwichParts,
    prior_weights,
)

if TYPE_CHECKING:
    import pandas as pd


# HC types statsmodels computes for regression results
STATSMODELS_HC_TYPES = frozenset({'HC0', 'HC1', 'HC2', 'HC3'})


class LinearAdapter(ModelAdapter):
    """
    Linear regression fitted by least squares.

    Inference uses the t distribution with the residual degrees of
    freedom, also when robust standard errors are requested.
    """

    family = ModelFamily.LINEAR

    @property
    def model_type(self) -> str:
        return f"{type(self._model).__name__} linear regression"

    @property
    def family_name(self) -> str:
        return 'gaussian'

    @property
    def link_name(self) -> str:
        return 'identity'

    @property
    def df_resid(self) -> float:
        return float(self._results.df_resid)

    @property
    def weights(self) -> NDArray[np.floating[Any]] | None:
        if type(self._model) is OLS:
            return None
        return prior_weights(getattr(self._model, 'weights', None))

    def sandwich_parts(self) -> SandwichParts:
        X = self.design_matrix()
        w = self.weights
        if w is None:
            w = np.ones(X.shape[0])
        resid = np.asarray(self._results.resid, dtype=np.float64)
        return SandwichParts(
            X=X,
            score=w * resid,
            working_weights=w,
            bread=np.asarray(self._results.normalized_cov_params, dtype=np.float64),
        )

    def statsmodels_hc_covariance(self, hc_type: str) -> NDArray[np.floating[Any]] | None:
        if hc_type not in STATSMODELS_HC_TYPES:
            return None
        robust = self._results.get_robustcov_results(cov_type=hc_type)
        return np.asarray(robust.cov_params(), dtype=np.float64)

    def fit_statistics(self) -> tuple[FitStatistic, ...]:
        res = self._results
        stats = []
        fvalue = getattr(res, 'fvalue', None)
        if fvalue is not None and np.isfinite(fvalue):
            stats.append(FitStatistic(
                label='F',
                value=float(np.squeeze(fvalue)),
                df=(float(res.df_model), float(res.df_resid)),
                p_value=float(np.squeeze(res.f_pvalue)),
            ))
        stats.append(FitStatistic(label='R²', value=float(res.rsquared)))
        stats.append(FitStatistic(label='Adj. R²', value=float(res.rsquared_adj)))
        return tuple(stats)

    def refit(self, data: pd.DataFrame) -> LinearAdapter:
        model_cls = type(self._model)
        kwargs = {}
        if model_cls is WLS:
            kwargs['weights'] = np.asarray(self._model.weights, dtype=np.float64)
        new_model = model_cls.from_formula(self.formula, data=data, **kwargs)
        return LinearAdapter(new_model.fit(**self._refit_fit_options()))

    def _can_refit(self) -> bool:
        # GLS would need its error covariance re-supplied
        return type(self._model) in (OLS, WLS) and super()._can_refit()

    def _capabilities(self) -> frozenset[str]:
        return super()._capabilities() | {
            CAPABILITY_SANDWICH,
            CAPABILITY_CLUSTER_COVARIANCE,
        }
