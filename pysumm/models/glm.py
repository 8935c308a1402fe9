"""
Adapter for generalized linear models (statsmodels GLM results).
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy import stats
from statsmodels.genmod.generalized_linear_model import GLM
from statsmodels.stats.sandwich_covariance import cov_white_simple

from pysumm.core.capabilities import (
    CAPABILITY_CLUSTER_COVARIANCE,
    CAPABILITY_LOG_LINK,
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


# Families whose dispersion is estimated rather than fixed at 1; R reports
# t rather than z statistics for these.
ESTIMATED_DISPERSION_FAMILIES = frozenset({
    'gaussian', 'gamma', 'inversegaussian', 'tweedie',
})

# Links under which exp(beta) is an odds ratio or a rate ratio
RATIO_LINKS = frozenset({'logit', 'log'})


class GLMAdapter(ModelAdapter):
    """Generalized linear model fitted by IRLS."""

    family = ModelFamily.GLM

    @property
    def model_type(self) -> str:
        return "Generalized linear model"

    @property
    def family_name(self) -> str:
        return type(self._model.family).__name__.lower()

    @property
    def link_name(self) -> str:
        return type(self._model.family.link).__name__.lower()

    @property
    def df_resid(self) -> float | None:
        if self.family_name in ESTIMATED_DISPERSION_FAMILIES:
            return float(self._results.df_resid)
        return None

    @property
    def weights(self) -> NDArray[np.floating[Any]] | None:
        return prior_weights(
            getattr(self._model, 'var_weights', None),
            getattr(self._model, 'freq_weights', None),
        )

    def sandwich_parts(self) -> SandwichParts:
        fam = self._model.family
        mu = np.asarray(self._results.mu, dtype=np.float64)
        y = np.asarray(self._model.endog, dtype=np.float64)
        var_weights = prior_weights(getattr(self._model, 'var_weights', None))
        if var_weights is None:
            var_weights = np.ones_like(mu)
        deriv = fam.link.deriv(mu)
        variance = fam.variance(mu)
        return SandwichParts(
            X=self.design_matrix(),
            score=var_weights * (y - mu) / (deriv * variance),
            working_weights=var_weights / (deriv ** 2 * variance),
            bread=np.asarray(self._results.normalized_cov_params, dtype=np.float64),
            frequency_weights=prior_weights(getattr(self._model, 'freq_weights', None)),
        )

    def statsmodels_hc_covariance(self, hc_type: str) -> NDArray[np.floating[Any]] | None:
        # statsmodels reports HC0 for every HC type of a GLM
        if hc_type != 'HC0':
            return None
        results = getattr(self._results, '_results', self._results)
        return np.asarray(cov_white_simple(results, use_correction=False), dtype=np.float64)

    def fit_statistics(self) -> tuple[FitStatistic, ...]:
        res = self._results
        n = float(res.nobs)
        df_model = float(res.df_model)
        llf = float(res.llf)
        llnull = float(res.llnull)

        chi_sq = float(res.null_deviance - res.deviance)
        cragg_uhler = (
            (1.0 - np.exp((2.0 / n) * (llnull - llf)))
            / (1.0 - np.exp((2.0 / n) * llnull))
        )
        mcfadden = 1.0 - llf / llnull
        bic = -2.0 * llf + (df_model + 1.0) * np.log(n)

        return (
            FitStatistic(
                label='χ²',
                value=chi_sq,
                df=(df_model,),
                p_value=float(stats.chi2.sf(chi_sq, df_model)),
            ),
            FitStatistic(label='Pseudo-R² (Cragg-Uhler)', value=float(cragg_uhler)),
            FitStatistic(label='Pseudo-R² (McFadden)', value=float(mcfadden)),
            FitStatistic(label='AIC', value=float(res.aic)),
            FitStatistic(label='BIC', value=float(bic)),
        )

    def refit(self, data: pd.DataFrame) -> GLMAdapter:
        return GLMAdapter(self._refit_glm(data).fit(**self._refit_fit_options()))

    def _refit_glm(self, data: pd.DataFrame) -> GLM:
        model = self._model
        kwargs = {
            'family': model.family,
            'var_weights': getattr(model, 'var_weights', None),
            'freq_weights': getattr(model, 'freq_weights', None),
        }
        offset = getattr(model, 'offset', None)
        if offset is not None:
            kwargs['offset'] = offset
        exposure = getattr(model, 'exposure', None)
        if exposure is not None:
            # stored on the log scale
            kwargs['exposure'] = np.exp(exposure)
        return GLM.from_formula(self.formula, data=data, **kwargs)

    def _capabilities(self) -> frozenset[str]:
        caps = set(super()._capabilities())
        caps |= {CAPABILITY_SANDWICH, CAPABILITY_CLUSTER_COVARIANCE}
        if self.link_name in RATIO_LINKS:
            caps.add(CAPABILITY_LOG_LINK)
        return frozenset(caps)
