"""
Summary builder.

This module provides summ() (public API): classify the model, check the
requested options against its family, optionally transform and refit,
choose the covariance, and assemble the rounded/unrounded result.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pysumm.core.capabilities import (
    CAPABILITY_CLUSTER_COVARIANCE,
    CAPABILITY_DESIGN_BASED_ERRORS,
    CAPABILITY_DESIGN_MATRIX,
    CAPABILITY_DF_APPROXIMATION,
    CAPABILITY_LOG_LINK,
    CAPABILITY_RANDOM_EFFECTS,
    CAPABILITY_REFIT,
    CAPABILITY_SANDWICH,
)
from pysumm.core.compute.timing import Timer
from pysumm.core.exceptions import ConfigurationError, EstimationError, ValidationError
from pysumm.core.options import resolve_digits
from pysumm.core.protocols import FittedModel, ModelFamily
from pysumm.core.result import Result
from pysumm.models.dispatch import as_fitted_model
from pysumm.summary._fit_stats import model_fit, model_info
from pysumm.summary._inference import wald_table
from pysumm.summary._robust import CovarianceChoice, cluster_covariance, robust_covariance
from pysumm.summary._transform import transform_frame
from pysumm.summary._vif import count_predictor_terms, row_vifs, term_vifs
from pysumm.summary.design import UNAVAILABLE_DF_METHODS, SummaryConfig
from pysumm.summary.solution import CoefficientRow, SummaryParams, SummaryResult

logger = logging.getLogger(__name__)


def summ(
    model: Any,
    config: SummaryConfig | Mapping[str, Any] | None = None,
    **options: Any,
) -> SummaryResult:
    """
    Summarize a fitted regression model.

    Args:
        model: statsmodels OLS/WLS/GLS, GLM or MixedLM results, a
            pysumm SurveyFit, or any FittedModel implementation
        config: A SummaryConfig or a mapping of option names to values;
            alternatively pass options as keywords
        **options: SummaryConfig fields (robust, cluster, scale, center,
            scale_response, n_sd, confint, ci_width, pvals, odds_ratio,
            vifs, digits, model_info, model_fit, t_df, r_squared,
            groups_table)

    Returns:
        SummaryResult with rounded and unrounded coefficient rows

    Raises:
        UnsupportedModelError: If the model family is not recognized
        ConfigurationError: If an option is invalid for the model family
        EstimationError: If a refit or covariance computation fails
        ValidationError: If an option value is malformed

    Example:
        >>> import statsmodels.formula.api as smf
        >>> fit = smf.ols('Income ~ Frost + Illiteracy + Murder', data=states).fit()
        >>> print(summ(fit, robust='HC1', confint=True))
    """
    # === Configuration ===
    # This is the boundary - validate here, trust everywhere else
    if config is None:
        config = SummaryConfig.build(**options)
    elif options:
        raise ValidationError("Pass either a SummaryConfig or keyword options, not both")
    elif isinstance(config, Mapping):
        config = SummaryConfig.build(**config)
    elif isinstance(config, SummaryConfig):
        config = config._validated()
    else:
        raise ValidationError(
            f"config: expected a SummaryConfig or a mapping of options, "
            f"got {type(config).__name__}"
        )
    digits = resolve_digits(config.digits)

    # === Classify ===
    fitted = as_fitted_model(model)
    logger.debug("Summarizing %s as %s model", type(model).__name__, fitted.family.value)

    _check_compatibility(fitted, config)

    notes: list[str] = []
    soft_warnings: list[str] = []
    timer = Timer()
    timer.start()

    if not getattr(fitted, 'converged', True):
        notes.append("Warning: the model did not converge; estimates may be unreliable.")

    # === Transform and refit ===
    if config.transforms:
        with timer.section('refit'):
            fitted, transformed = _transform_and_refit(fitted, config)
        notes.extend(_transform_notes(config, transformed))

    # === Covariance ===
    with timer.section('covariance'):
        covariance = _select_covariance(fitted, config, notes, soft_warnings)

    # === Inference ===
    df = _reference_df(fitted, config)
    coefficients = np.asarray(fitted.coefficients, dtype=np.float64)
    table = wald_table(coefficients, covariance.matrix, df, config.ci_width)

    report_p = config.pvals
    statistic_label = table.statistic_label
    if fitted.family is ModelFamily.MIXED:
        statistic_label = 't'
        if df is None:
            report_p = False
            if config.pvals:
                notes.append(
                    "p-values are omitted: no denominator degrees-of-freedom "
                    "approximation is available for this mixed model "
                    "(pass t_df='residual' to use n - p)."
                )
            if config.reports_intervals:
                notes.append("Confidence intervals use the normal approximation (Wald).")

    estimates = coefficients
    conf_low, conf_high = table.conf_low, table.conf_high
    if config.odds_ratio:
        estimates = np.exp(estimates)
        conf_low, conf_high = np.exp(conf_low), np.exp(conf_high)

    # === VIFs ===
    vifs: list[float | None] = [None] * len(coefficients)
    if config.vifs:
        with timer.section('vif'):
            vifs = _compute_vifs(fitted)
        if not getattr(fitted, 'has_intercept', True):
            notes.append("VIFs of a model without an intercept may not be meaningful.")

    rows = tuple(
        CoefficientRow(
            term=term,
            estimate=float(estimates[i]),
            std_error=None if config.odds_ratio else float(table.std_error[i]),
            statistic=float(table.statistic[i]),
            p_value=float(table.p_value[i]) if report_p else None,
            conf_low=float(conf_low[i]) if config.reports_intervals else None,
            conf_high=float(conf_high[i]) if config.reports_intervals else None,
            vif=vifs[i],
        )
        for i, term in enumerate(fitted.term_names)
    )

    # === Header metadata ===
    with timer.section('fit_statistics'):
        info_block = model_info(fitted, covariance.se_type) if config.model_info else {}
        fit_block = model_fit(fitted, r_squared=config.r_squared) if config.model_fit else ()

    random_effects = ()
    if (fitted.family is ModelFamily.MIXED and config.groups_table
            and fitted.supports(CAPABILITY_RANDOM_EFFECTS)):
        random_effects = fitted.random_effects()

    timer.stop()

    for message in soft_warnings:
        warnings.warn(message, UserWarning, stacklevel=2)

    result = Result(
        params=SummaryParams(
            rows=rows,
            model_info=info_block,
            model_fit=fit_block,
            random_effects=random_effects,
            notes=tuple(notes),
        ),
        info={
            'family': fitted.family.value,
            'n_obs': fitted.n_obs,
            'se_type': covariance.se_type,
            'statistic': statistic_label,
            'df': None if df is None else np.asarray(df, dtype=np.float64).tolist(),
            'ci_width': config.ci_width,
        },
        timing=timer.result(),
        source=getattr(fitted, 'source', type(fitted).__name__),
        warnings=tuple(soft_warnings),
    )
    return SummaryResult(_result=result, _config=config, _digits=digits, _model=fitted)


build = summ


def _check_compatibility(fitted: FittedModel, config: SummaryConfig) -> None:
    """
    Raise on every option/family combination that cannot be honoured.

    Runs before any refit so that a bad request fails fast.
    """
    family = fitted.family.value
    survey = fitted.supports(CAPABILITY_DESIGN_BASED_ERRORS)

    if config.cluster is not None and not config.robust:
        raise ConfigurationError(
            f"cluster requires robust standard errors; pass robust=True "
            f"(or an HC type) together with cluster for this {family} model",
            option='cluster',
            family=family,
        )

    if config.robust and fitted.family is ModelFamily.MIXED:
        raise ConfigurationError(
            f"robust={config.robust!r} is not available for {family} models",
            option='robust',
            family=family,
        )

    if config.robust and not survey:
        if config.cluster is None and not fitted.supports(CAPABILITY_SANDWICH):
            raise ConfigurationError(
                f"robust={config.robust!r}: this {family} model does not expose "
                f"the pieces needed for a sandwich covariance",
                option='robust',
                family=family,
            )
        if config.cluster is not None:
            if not fitted.supports(CAPABILITY_CLUSTER_COVARIANCE):
                raise ConfigurationError(
                    f"cluster: cluster-robust standard errors are not available "
                    f"for this {family} model",
                    option='cluster',
                    family=family,
                )
            _cluster_groups(fitted, config.cluster)

    if config.odds_ratio and not fitted.supports(CAPABILITY_LOG_LINK):
        link = getattr(fitted, 'link_name', None) or 'identity'
        raise ConfigurationError(
            f"odds_ratio=True needs a log or logit link; this {family} model "
            f"uses the {link} link",
            option='odds_ratio',
            family=family,
        )

    if config.t_df is not None:
        if fitted.family is not ModelFamily.MIXED:
            raise ConfigurationError(
                f"t_df applies to mixed-effects models only, not {family} models",
                option='t_df',
                family=family,
            )
        if (config.t_df in UNAVAILABLE_DF_METHODS
                and not fitted.supports(CAPABILITY_DF_APPROXIMATION)):
            raise ConfigurationError(
                f"t_df={config.t_df!r}: no such degrees-of-freedom approximation "
                f"is available for this {family} model; use t_df='residual' or a number",
                option='t_df',
                family=family,
            )

    if config.transforms and not fitted.supports(CAPABILITY_REFIT):
        option = 'scale' if config.scale else 'center'
        raise ConfigurationError(
            f"{option}=True needs a formula-fitted model with its complete data "
            f"frame and a covariance type the refit can reproduce; this {family} "
            f"model cannot be refit",
            option=option,
            family=family,
        )

    if config.vifs:
        if not fitted.supports(CAPABILITY_DESIGN_MATRIX):
            raise ConfigurationError(
                f"vifs=True needs a design matrix, which this {family} model does not expose",
                option='vifs',
                family=family,
            )
        n_terms = count_predictor_terms(fitted.design_matrix(), fitted.term_slices())
        if n_terms < 2:
            raise ConfigurationError(
                f"vifs=True needs at least two predictor terms; this {family} "
                f"model has {n_terms}",
                option='vifs',
                family=family,
            )


def _cluster_groups(fitted: FittedModel, cluster: Any) -> NDArray[Any]:
    """Resolve the cluster option to one label per observation."""
    family = fitted.family.value
    if isinstance(cluster, str):
        frame = getattr(fitted, 'data', None)
        if frame is None or cluster not in frame.columns:
            raise ConfigurationError(
                f"cluster={cluster!r}: no such column in the data of this {family} model",
                option='cluster',
                family=family,
            )
        groups = frame[cluster].to_numpy()
    else:
        groups = np.asarray(cluster)
    if groups.shape[0] != fitted.n_obs:
        raise ConfigurationError(
            f"cluster: got {groups.shape[0]} labels for a {family} model "
            f"with {fitted.n_obs} observations",
            option='cluster',
            family=family,
        )
    return groups


def _transform_and_refit(
    fitted: FittedModel,
    config: SummaryConfig,
) -> tuple[FittedModel, tuple[str, ...]]:
    """
    Transform a copy of the model's data and refit on it.

    Raises:
        EstimationError: If the refit throws or does not converge
    """
    frame, transformed = transform_frame(
        fitted.data,
        fitted.formula,
        scale=config.scale,
        n_sd=config.n_sd,
        transform_response=config.scale_response,
        weights=fitted.weights,
    )
    logger.debug("Refitting %s model with transformed %s", fitted.family.value, transformed)

    family = fitted.family.value
    try:
        refit = fitted.refit(frame)
    except EstimationError:
        raise
    except Exception as e:
        raise EstimationError(
            f"Refitting the {family} model on transformed data failed: {e}",
            step='refit',
            cause=e,
        ) from e

    if not getattr(refit, 'converged', True):
        raise EstimationError(
            f"Refitting the {family} model on transformed data did not converge",
            step='refit',
        )
    return refit, transformed


def _transform_notes(config: SummaryConfig, transformed: tuple[str, ...]) -> list[str]:
    if not transformed:
        return ["No continuous variables were found to transform."]
    if config.scale:
        notes = [f"Continuous predictors are mean-centered and scaled by {config.n_sd:g} s.d."]
    else:
        notes = ["Continuous predictors are mean-centered."]
    if config.scale_response:
        notes.append("The outcome variable is transformed the same way.")
    else:
        notes.append("The outcome variable remains in its original units.")
    return notes


def _native_se_label(fitted: FittedModel) -> str:
    if fitted.supports(CAPABILITY_DESIGN_BASED_ERRORS):
        return 'Design-based'
    cov_type = getattr(getattr(fitted, 'results', None), 'cov_type', 'nonrobust')
    if cov_type != 'nonrobust':
        return f"{cov_type} (as fitted)"
    if fitted.family is ModelFamily.LINEAR:
        return 'WLS' if getattr(fitted, 'weights', None) is not None else 'OLS'
    if fitted.family is ModelFamily.MIXED and getattr(fitted, 'reml', False):
        return 'REML'
    return 'MLE'


def _select_covariance(
    fitted: FittedModel,
    config: SummaryConfig,
    notes: list[str],
    soft_warnings: list[str],
) -> CovarianceChoice:
    """
    Pick the covariance used for inference.

    A robust request on a model whose errors are already design-based is
    not an error: it is ignored and reported as a note and a warning.
    """
    if not config.robust:
        return CovarianceChoice(fitted.covariance(), _native_se_label(fitted))

    if fitted.supports(CAPABILITY_DESIGN_BASED_ERRORS):
        message = (
            f"robust={config.robust!r} was ignored: standard errors of this "
            f"{fitted.family.value} model are already design-based."
        )
        notes.append(message)
        soft_warnings.append(message)
        return CovarianceChoice(fitted.covariance(), _native_se_label(fitted))

    if config.cluster is not None:
        groups = _cluster_groups(fitted, config.cluster)
        logger.debug("Cluster-robust covariance over %d clusters", np.unique(groups).size)
        return CovarianceChoice(
            cluster_covariance(fitted.results, groups),
            f"Cluster-robust ({np.unique(groups).size} clusters)",
        )

    logger.debug("Sandwich covariance %s", config.robust)
    return CovarianceChoice(
        robust_covariance(fitted, config.robust),
        f"Robust, type = {config.robust}",
    )


def _reference_df(fitted: FittedModel, config: SummaryConfig):
    """Degrees of freedom for t inference, or None for the normal."""
    if fitted.family is not ModelFamily.MIXED:
        return getattr(fitted, 'df_resid', None)
    if config.t_df is None or config.t_df in UNAVAILABLE_DF_METHODS:
        if fitted.supports(CAPABILITY_DF_APPROXIMATION):
            return fitted.df_approximation()
        return None
    if config.t_df == 'residual':
        return fitted.residual_df()
    return config.t_df


def _compute_vifs(fitted: FittedModel) -> list[float | None]:
    slices = fitted.term_slices()
    family = fitted.family.value
    try:
        vifs = term_vifs(fitted.design_matrix(), slices, family)
    except np.linalg.LinAlgError as e:
        raise EstimationError(
            f"vifs=True failed for this {family} model: {e}",
            step='vif',
            cause=e,
        ) from e
    return row_vifs(fitted.term_names, slices, vifs)
