"""
Model classification.

as_fitted_model() is the single entry point that turns whatever the caller
handed to summ() into a FittedModel adapter. The family is decided once,
here; nothing downstream inspects statsmodels types.
"""

from __future__ import annotations

from typing import Any

from statsmodels.genmod.generalized_linear_model import GLMResults
from statsmodels.regression.linear_model import RegressionResults
from statsmodels.regression.mixed_linear_model import MixedLMResults

from pysumm.core.exceptions import UnsupportedModelError
from pysumm.core.protocols import FittedModel, ModelFamily
from pysumm.models.base import ModelAdapter
from pysumm.models.glm import GLMAdapter
from pysumm.models.linear import LinearAdapter
from pysumm.models.mixed import MixedAdapter
from pysumm.models.survey import SurveyAdapter, SurveyFit


def _qualified_name(obj: Any) -> str:
    cls = type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


def classify(model: Any) -> ModelFamily:
    """Return the family a model would be summarized as."""
    return as_fitted_model(model).family


def as_fitted_model(model: Any) -> FittedModel:
    """
    Wrap a fitted model in the adapter for its family.

    Accepted inputs:
        - statsmodels OLS / WLS / GLS results      -> LINEAR
        - statsmodels GLM results                  -> GLM
        - statsmodels MixedLM results              -> MIXED
        - pysumm.models.survey.SurveyFit           -> SURVEY
        - any object implementing FittedModel with a ModelFamily tag

    Raises:
        UnsupportedModelError: If the model cannot be classified
    """
    if isinstance(model, ModelAdapter):
        return model

    if isinstance(model, SurveyFit):
        return SurveyAdapter(model)

    # statsmodels hands back *ResultsWrapper objects; the class that
    # identifies the model lives on the wrapped _results
    inner = getattr(model, '_results', model)

    if isinstance(inner, MixedLMResults):
        return MixedAdapter(model)
    if isinstance(inner, GLMResults):
        return GLMAdapter(model)
    if isinstance(inner, RegressionResults):
        return LinearAdapter(model)

    if isinstance(model, FittedModel) and isinstance(
        getattr(model, 'family', None), ModelFamily
    ):
        return model

    raise UnsupportedModelError(
        f"Cannot summarize a {_qualified_name(model)}: supported models are "
        f"statsmodels OLS/WLS/GLS, GLM and MixedLM results, pysumm SurveyFit, "
        f"or objects implementing the FittedModel protocol with a ModelFamily tag",
        model_type=_qualified_name(model),
    )
