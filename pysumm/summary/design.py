"""
Summary configuration.

SummaryConfig is the immutable set of options controlling what a summary
contains. It is built and validated once, at the API boundary; the builder
trusts it afterwards.

Construction:
    SummaryConfig()                                  # all defaults
    SummaryConfig.build(robust='HC1', confint=True)  # validated
    SummaryConfig.build(exp=True)                    # alias for odds_ratio
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

import numpy as np

from pysumm.core.exceptions import ValidationError
from pysumm.core.validation import (
    check_bool,
    check_choice,
    check_non_negative_int,
    check_open_unit_interval,
    check_positive,
    check_vector,
)

HC_TYPES = ('HC0', 'HC1', 'HC2', 'HC3', 'HC4', 'HC5')

DEFAULT_HC_TYPE = 'HC3'

# Approximations statsmodels cannot supply for MixedLM
UNAVAILABLE_DF_METHODS = ('satterthwaite', 'k-r', 'kenward-roger')

_ALIASES = {
    'exp': 'odds_ratio',
    'transform_response': 'scale_response',
}


@dataclass(frozen=True)
class SummaryConfig:
    """
    Options controlling the shape of a SummaryResult.

    Attributes:
        robust: False, or an HC variant name ('HC0'..'HC5')
        cluster: Column name or per-observation vector for cluster-robust
                 standard errors; requires robust
        scale: Standardize continuous predictors and refit
        center: Mean-center continuous predictors and refit
        scale_response: Apply the same transformation to the response
        n_sd: Number of standard deviations to divide by when scaling
        confint: Report confidence intervals
        ci_width: Confidence level, strictly between 0 and 1
        pvals: Report p-values
        odds_ratio: Exponentiate estimates and intervals (log/logit links)
        vifs: Report variance inflation factors
        digits: Display precision; None defers to the process-wide default
        model_info: Include the model information header
        model_fit: Include the model fit header
        t_df: Mixed models: 'residual' or a fixed number of degrees of
              freedom for t inference; None omits p-values
        r_squared: Mixed models: report Nakagawa–Schielzeth R-squared
        groups_table: Mixed models: report random-effect SDs
    """
    robust: str | bool = False
    cluster: Any = None
    scale: bool = False
    center: bool = False
    scale_response: bool = False
    n_sd: float = 1.0
    confint: bool = False
    ci_width: float = 0.95
    pvals: bool = True
    odds_ratio: bool = False
    vifs: bool = False
    digits: int | None = None
    model_info: bool = True
    model_fit: bool = True
    t_df: str | float | None = None
    r_squared: bool = True
    groups_table: bool = True

    @classmethod
    def build(cls, **options: Any) -> SummaryConfig:
        """
        Build a validated config from keyword options.

        Raises:
            ValidationError: On unknown option names or malformed values
        """
        known = {f.name for f in fields(cls)}
        resolved: dict[str, Any] = {}
        for name, value in options.items():
            key = _ALIASES.get(name, name)
            if key not in known:
                raise ValidationError(f"Unknown summary option: {name!r}")
            if key in resolved:
                raise ValidationError(f"Option {key!r} given twice (via alias {name!r})")
            resolved[key] = value
        return cls(**resolved)._validated()

    def _validated(self) -> SummaryConfig:
        robust = self.robust
        if isinstance(robust, (bool, np.bool_)):
            robust = DEFAULT_HC_TYPE if robust else False
        else:
            robust = check_choice(robust, HC_TYPES, 'robust')

        cluster = self.cluster
        if cluster is not None and not isinstance(cluster, str):
            cluster = check_vector(cluster, 'cluster')

        t_df = self.t_df
        if t_df is not None and not isinstance(t_df, str):
            t_df = check_positive(t_df, 't_df')
        elif isinstance(t_df, str):
            t_df = check_choice(t_df, ('residual',) + UNAVAILABLE_DF_METHODS, 't_df')

        digits = self.digits
        if digits is not None:
            digits = check_non_negative_int(digits, 'digits')

        return replace(
            self,
            robust=robust,
            cluster=cluster,
            scale=check_bool(self.scale, 'scale'),
            center=check_bool(self.center, 'center'),
            scale_response=check_bool(self.scale_response, 'scale_response'),
            n_sd=check_positive(self.n_sd, 'n_sd'),
            confint=check_bool(self.confint, 'confint'),
            ci_width=check_open_unit_interval(self.ci_width, 'ci_width'),
            pvals=check_bool(self.pvals, 'pvals'),
            odds_ratio=check_bool(self.odds_ratio, 'odds_ratio'),
            vifs=check_bool(self.vifs, 'vifs'),
            digits=digits,
            model_info=check_bool(self.model_info, 'model_info'),
            model_fit=check_bool(self.model_fit, 'model_fit'),
            t_df=t_df,
            r_squared=check_bool(self.r_squared, 'r_squared'),
            groups_table=check_bool(self.groups_table, 'groups_table'),
        )

    @property
    def transforms(self) -> bool:
        """True when predictors must be transformed and the model refit."""
        return self.scale or self.center

    @property
    def reports_intervals(self) -> bool:
        """Odds ratios are always reported with their intervals."""
        return self.confint or self.odds_ratio
