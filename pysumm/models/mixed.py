"""
Adapter for linear mixed models (statsmodels MixedLM results).

Only the fixed effects enter the coefficient table. Random-effect variance
components are exposed separately for the groups table and for the
Nakagawa–Schielzeth R-squared decomposition.

statsmodels provides no denominator degrees-of-freedom approximation
(Kenward-Roger, Satterthwaite) for MixedLM, so this adapter does not
advertise CAPABILITY_DF_APPROXIMATION.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from statsmodels.regression.mixed_linear_model import MixedLM

from pysumm.core.capabilities import CAPABILITY_RANDOM_EFFECTS
from pysumm.core.protocols import ModelFamily
from pysumm.models.base import FitStatistic, ModelAdapter

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class RandomEffect:
    """Standard deviation of one random-effect term (or the residual)."""
    group: str
    term: str
    std_dev: float


@dataclass(frozen=True)
class VarianceDecomposition:
    """Variance shares used by the Nakagawa–Schielzeth R-squared."""
    fixed: float
    random: float
    residual: float


class MixedAdapter(ModelAdapter):
    """Linear mixed-effects model fitted by REML or ML."""

    family = ModelFamily.MIXED

    @property
    def model_type(self) -> str:
        return "Mixed effects linear regression"

    @property
    def family_name(self) -> str:
        return 'gaussian'

    @property
    def link_name(self) -> str:
        return 'identity'

    @property
    def _k_fe(self) -> int:
        return int(self._model.k_fe)

    @property
    def term_names(self) -> tuple[str, ...]:
        return tuple(str(name) for name in self._model.exog_names[:self._k_fe])

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return np.asarray(self._results.fe_params, dtype=np.float64)

    def covariance(self) -> NDArray[np.floating[Any]]:
        k = self._k_fe
        return np.asarray(self._results.cov_params(), dtype=np.float64)[:k, :k]

    @property
    def n_obs(self) -> int:
        return int(len(self._model.endog))

    @property
    def reml(self) -> bool:
        return getattr(self._results, 'method', 'REML') == 'REML'

    @property
    def n_groups(self) -> int:
        return int(self._model.n_groups)

    @property
    def group_name(self) -> str:
        names = self._re_names()
        return names[0] if self._re_has_intercept() else 'Group'

    def residual_df(self) -> float:
        """Residual degrees of freedom, n - p."""
        return float(self.n_obs - self._k_fe)

    def _re_names(self) -> list[str]:
        names = getattr(self._model.data, 'exog_re_names', None)
        if names is None:
            names = [f"re{i}" for i in range(self._model.k_re)]
        return [str(name) for name in names]

    def _re_has_intercept(self) -> bool:
        Z = np.asarray(self._model.exog_re, dtype=np.float64)
        return bool(np.all(Z[:, 0] == 1.0))

    def random_effects(self) -> tuple[RandomEffect, ...]:
        """Random-effect standard deviations, residual last."""
        cov_re = np.atleast_2d(np.asarray(self._results.cov_re, dtype=np.float64))
        names = self._re_names()
        group = self.group_name
        rows = []
        for i, name in enumerate(names):
            term = '(Intercept)' if i == 0 and self._re_has_intercept() else name
            rows.append(RandomEffect(
                group=group,
                term=term,
                std_dev=float(np.sqrt(max(cov_re[i, i], 0.0))),
            ))
        rows.append(RandomEffect(
            group='Residual',
            term='',
            std_dev=float(np.sqrt(self._results.scale)),
        ))
        return tuple(rows)

    def variance_decomposition(self) -> VarianceDecomposition:
        """
        Split total variance into fixed, random and residual parts.

        The random part is the mean over observations of z_i' G z_i, which
        reduces to the intercept variance for random-intercept models.
        """
        X = self.design_matrix()
        beta = self.coefficients
        Z = np.asarray(self._model.exog_re, dtype=np.float64)
        G = np.atleast_2d(np.asarray(self._results.cov_re, dtype=np.float64))
        fixed = float(np.var(X @ beta, ddof=1))
        random = float(np.mean(np.einsum('ij,jk,ik->i', Z, G, Z)))
        return VarianceDecomposition(
            fixed=fixed,
            random=random,
            residual=float(self._results.scale),
        )

    def fit_statistics(self) -> tuple[FitStatistic, ...]:
        res = self._results
        stats = []
        if not self.reml:
            stats.append(FitStatistic(label='AIC', value=float(res.aic)))
            stats.append(FitStatistic(label='BIC', value=float(res.bic)))
        stats.append(FitStatistic(label='Log-likelihood', value=float(res.llf)))
        return tuple(stats)

    def refit(self, data: pd.DataFrame) -> MixedAdapter:
        new_model = MixedLM.from_formula(
            self.formula,
            data=data,
            groups=np.asarray(self._model.groups),
            re_formula=self._re_formula(),
        )
        return MixedAdapter(new_model.fit(reml=self.reml))

    def _re_formula(self) -> str | None:
        """Rebuild the random-effects formula from the stored column names."""
        if self._model.k_re == 1 and self._re_has_intercept():
            return None
        names = self._re_names()
        if self._re_has_intercept():
            return ' + '.join(['1'] + names[1:])
        return ' + '.join(['0'] + names)

    def _can_refit(self) -> bool:
        if getattr(self._model, 'k_vc', 0):
            return False
        frame = self.data
        if not super()._can_refit():
            return False
        # random slopes must be plain data columns to be rebuilt
        names = self._re_names()
        slopes = names[1:] if self._re_has_intercept() else names
        return all(name in frame.columns for name in slopes)

    def _capabilities(self) -> frozenset[str]:
        return super()._capabilities() | {CAPABILITY_RANDOM_EFFECTS}
