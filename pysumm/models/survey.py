"""
Survey-weighted generalized linear models.

statsmodels has no design-based GLM, so this module provides a small one:
point estimates come from a GLM with the sampling weights (rescaled to
mean 1) as prior weights, and the coefficient covariance is the Taylor
linearization (Binder 1983) estimate. Estimating-function totals of each
primary sampling unit are centred within their stratum, so strata enter
the variance as well as the design degrees of freedom.

Usage:
    design = SurveyDesign(data=df, weights='pw', ids='school')
    fit = svyglm('y ~ x1 + x2', design, family=sm.families.Binomial())
    summ(fit)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from statsmodels.genmod import families
from statsmodels.genmod.generalized_linear_model import GLM

from pysumm.core.capabilities import (
    CAPABILITY_CLUSTER_COVARIANCE,
    CAPABILITY_DESIGN_BASED_ERRORS,
    CAPABILITY_SANDWICH,
)
from pysumm.core.exceptions import ValidationError
from pysumm.core.protocols import ModelFamily
from pysumm.core.validation import check_length, check_vector
from pysumm.models.base import FitStatistic, SandwichParts
from pysumm.models.glm import GLMAdapter


@dataclass(frozen=True, eq=False)
class SurveyDesign:
    """
    Sampling design of a complex survey.

    Attributes:
        data: Survey data, one row per respondent
        weights: Sampling weights (column name or array)
        ids: Primary sampling unit identifiers (column name or array);
             None means every row is its own PSU
        strata: Stratum identifiers (column name or array), or None
    """
    data: pd.DataFrame
    weights: str | ArrayLike
    ids: str | ArrayLike | None = None
    strata: str | ArrayLike | None = None

    @property
    def n(self) -> int:
        return len(self.data)

    def _column(self, column: str | ArrayLike, name: str) -> NDArray[Any]:
        if isinstance(column, str):
            if column not in self.data.columns:
                raise ValidationError(f"{name}: column {column!r} not found in survey data")
            values = self.data[column].to_numpy()
        else:
            values = check_vector(column, name)
        check_length(values, self.n, name)
        return values

    def weight_values(self) -> NDArray[np.floating[Any]]:
        """Sampling weights as a float array; all must be positive."""
        w = np.asarray(self._column(self.weights, 'weights'), dtype=np.float64)
        if not np.all(np.isfinite(w)) or np.any(w <= 0):
            raise ValidationError("weights: sampling weights must be positive and finite")
        return w

    def strata_codes(self) -> NDArray[np.int64]:
        """Integer stratum code per row (all 0 for an unstratified design)."""
        if self.strata is None:
            return np.zeros(self.n, dtype=np.int64)
        return pd.factorize(self._column(self.strata, 'strata'))[0]

    def psu_codes(self) -> NDArray[np.int64]:
        """Integer code per row identifying its PSU (nested within stratum)."""
        if self.ids is None:
            return np.arange(self.n, dtype=np.int64)
        ids = pd.factorize(self._column(self.ids, 'ids'))[0]
        keys = self.strata_codes() * (ids.max() + 1) + ids
        return np.unique(keys, return_inverse=True)[1].astype(np.int64)

    @property
    def n_psu(self) -> int:
        return int(np.unique(self.psu_codes()).size)

    @property
    def n_strata(self) -> int:
        return int(np.unique(self.strata_codes()).size)

    def degrees_of_freedom(self) -> int:
        """Design degrees of freedom: number of PSUs minus number of strata."""
        return self.n_psu - self.n_strata

    def with_data(self, data: pd.DataFrame) -> SurveyDesign:
        """Same design on a transformed copy of the data (same row order)."""
        return replace(self, data=data)


@dataclass(frozen=True, eq=False)
class SurveyFit:
    """
    A fitted survey-weighted GLM.

    Attributes:
        results: statsmodels GLM results (point estimates and dispersion)
        design: The sampling design the model was fitted under
        formula: Model formula
        covariance: Design-based covariance of the coefficients
    """
    results: Any
    design: SurveyDesign
    formula: str
    covariance: NDArray[np.floating[Any]]

    @property
    def family(self) -> families.Family:
        return self.results.model.family

    @property
    def params(self) -> pd.Series:
        return self.results.params

    @property
    def bse(self) -> NDArray[np.floating[Any]]:
        """Design-based standard errors."""
        return np.sqrt(np.diag(self.covariance))

    def __repr__(self) -> str:
        return (
            f"SurveyFit({self.formula!r}, family={type(self.family).__name__}, "
            f"n={self.design.n}, psu={self.design.n_psu})"
        )


def linearization_covariance(
    parts: SandwichParts,
    design: SurveyDesign,
) -> NDArray[np.floating[Any]]:
    """
    Taylor-linearization covariance of GLM coefficients under a design.

    The estimating-function contributions are summed to PSU totals, the
    totals are centred within each stratum and their cross-products are
    scaled by n_h / (n_h - 1), n_h being the number of PSUs in stratum h.
    The result is sandwiched between the unscaled inverse information.

    Raises:
        ValidationError: If a stratum contains a single PSU
    """
    scores = parts.X * parts.score[:, None]
    psu = design.psu_codes()
    n_psu = int(psu.max()) + 1

    totals = np.zeros((n_psu, scores.shape[1]))
    np.add.at(totals, psu, scores)
    psu_stratum = np.empty(n_psu, dtype=np.int64)
    psu_stratum[psu] = design.strata_codes()

    meat = np.zeros((scores.shape[1], scores.shape[1]))
    for stratum in np.unique(psu_stratum):
        block = totals[psu_stratum == stratum]
        n_h = block.shape[0]
        if n_h < 2:
            raise ValidationError(
                f"strata: stratum {stratum} has a single PSU, so its "
                f"sampling variance cannot be estimated"
            )
        centred = block - block.mean(axis=0)
        meat += n_h / (n_h - 1.0) * centred.T @ centred

    return parts.bread @ meat @ parts.bread


def svyglm(
    formula: str,
    design: SurveyDesign,
    family: families.Family | None = None,
) -> SurveyFit:
    """
    Fit a survey-weighted generalized linear model.

    Args:
        formula: Model formula, e.g. 'y ~ x1 + x2'
        design: Sampling design (data, weights, PSUs, strata)
        family: statsmodels family; Gaussian when None

    Returns:
        SurveyFit with design-based standard errors

    Raises:
        ValidationError: If the weights are invalid or a stratum has one PSU
    """
    if family is None:
        family = families.Gaussian()
    w = design.weight_values()
    model = GLM.from_formula(formula, data=design.data, family=family, var_weights=w / w.mean())
    results = model.fit()
    parts = GLMAdapter(results).sandwich_parts()
    return SurveyFit(
        results=results,
        design=design,
        formula=formula,
        covariance=linearization_covariance(parts, design),
    )


class SurveyAdapter(GLMAdapter):
    """Survey-weighted GLM; standard errors are already design-based."""

    family = ModelFamily.SURVEY

    def __init__(self, fit: SurveyFit):
        super().__init__(fit.results)
        self._fit = fit

    @property
    def survey_fit(self) -> SurveyFit:
        return self._fit

    @property
    def source(self) -> str:
        return "pysumm.svyglm"

    @property
    def model_type(self) -> str:
        return "Survey-weighted generalized linear model"

    @property
    def formula(self) -> str:
        return self._fit.formula

    @property
    def data(self) -> pd.DataFrame:
        return self._fit.design.data

    def covariance(self) -> NDArray[np.floating[Any]]:
        return np.asarray(self._fit.covariance, dtype=np.float64)

    @property
    def df_resid(self) -> float:
        k = len(self.term_names)
        return float(self._fit.design.degrees_of_freedom() + 1 - k)

    def fit_statistics(self) -> tuple[FitStatistic, ...]:
        res = self._results
        r_squared = 1.0 - float(res.deviance) / float(res.null_deviance)
        if self.family_name == 'gaussian':
            n = float(res.nobs)
            k = float(len(self.term_names))
            adj = 1.0 - (1.0 - r_squared) * (n - 1.0) / (n - k)
            stats = [
                FitStatistic(label='R²', value=r_squared),
                FitStatistic(label='Adj. R²', value=float(adj)),
            ]
        else:
            stats = [FitStatistic(label='Pseudo-R² (McFadden)', value=r_squared)]
        stats.append(FitStatistic(label='Dispersion', value=float(res.scale)))
        return tuple(stats)

    def refit(self, data: pd.DataFrame) -> SurveyAdapter:
        design = self._fit.design.with_data(data)
        return SurveyAdapter(svyglm(self.formula, design, family=self._model.family))

    def _capabilities(self) -> frozenset[str]:
        caps = set(super()._capabilities())
        caps -= {CAPABILITY_SANDWICH, CAPABILITY_CLUSTER_COVARIANCE}
        caps.add(CAPABILITY_DESIGN_BASED_ERRORS)
        return frozenset(caps)
