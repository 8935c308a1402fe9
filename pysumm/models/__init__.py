"""
Fitted-model adapters.

Each adapter exposes one statsmodels results type through the FittedModel
protocol so the summary builder can stay model-agnostic.

Public API:
    as_fitted_model(model)  -- classify and wrap
    SurveyDesign, svyglm    -- survey-weighted GLMs
"""

from pysumm.models.base import FitStatistic, ModelAdapter, SandwichParts
from pysumm.models.dispatch import as_fitted_model, classify
from pysumm.models.glm import GLMAdapter
from pysumm.models.linear import LinearAdapter
from pysumm.models.mixed import MixedAdapter, RandomEffect, VarianceDecomposition
from pysumm.models.survey import (
    SurveyAdapter,
    SurveyDesign,
    SurveyFit,
    linearization_covariance,
    svyglm,
)

__all__ = [
    "as_fitted_model",
    "classify",
    "FitStatistic",
    "ModelAdapter",
    "SandwichParts",
    "LinearAdapter",
    "GLMAdapter",
    "MixedAdapter",
    "RandomEffect",
    "VarianceDecomposition",
    "SurveyAdapter",
    "SurveyDesign",
    "SurveyFit",
    "linearization_covariance",
    "svyglm",
]
