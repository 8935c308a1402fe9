"""
Header metadata: model information and model fit statistics.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from pysumm.core.capabilities import CAPABILITY_RANDOM_EFFECTS
from pysumm.core.exceptions import EstimationError
from pysumm.core.protocols import ModelFamily
from pysumm.models.base import FitStatistic


def model_info(model: Any, se_type: str) -> dict[str, Any]:
    """Descriptive header: size, outcome, model type, family, SE type."""
    info: dict[str, Any] = {
        'Observations': model.n_obs,
        'Dependent variable': model.response_name,
        'Type': model.model_type,
    }
    if model.family in (ModelFamily.GLM, ModelFamily.SURVEY):
        info['Family'] = getattr(model, 'family_name', None)
        info['Link'] = getattr(model, 'link_name', None)
    if model.supports(CAPABILITY_RANDOM_EFFECTS):
        info['Groups'] = f"{model.group_name} ({model.n_groups})"
    info['Standard errors'] = se_type
    return info


def nakagawa_r_squared(model: Any) -> tuple[FitStatistic, FitStatistic]:
    """
    Marginal and conditional R² (Nakagawa & Schielzeth, 2013).

    Raises:
        EstimationError: If the variance decomposition is degenerate
    """
    try:
        parts = model.variance_decomposition()
    except (np.linalg.LinAlgError, ValueError) as e:
        raise EstimationError(
            f"r_squared=True: variance decomposition failed for this "
            f"{model.family.value} model: {e}",
            step='r_squared',
            cause=e,
        ) from e

    total = parts.fixed + parts.random + parts.residual
    if not np.isfinite(total) or total <= 0:
        raise EstimationError(
            f"r_squared=True: total variance is {total}, cannot form R²",
            step='r_squared',
        )
    return (
        FitStatistic(label='Pseudo-R² (fixed effects)', value=parts.fixed / total),
        FitStatistic(label='Pseudo-R² (total)', value=(parts.fixed + parts.random) / total),
    )


def model_fit(model: Any, *, r_squared: bool) -> tuple[FitStatistic, ...]:
    """Family-appropriate fit statistics, plus mixed-model R² on request."""
    stats = list(model.fit_statistics())
    if model.family is ModelFamily.MIXED and r_squared and hasattr(model, 'variance_decomposition'):
        stats.extend(nakagawa_r_squared(model))
    return tuple(stats)
