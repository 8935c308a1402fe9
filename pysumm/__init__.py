"""
pysumm: model-agnostic regression summaries for Python.

Builds coefficient tables with robust or cluster-robust standard errors,
confidence intervals, odds ratios, VIFs and rescaled coefficients from
fitted statsmodels models.

Submodules:
    summary: The summ() builder and its result types
    models: Fitted-model adapters and survey-weighted GLMs
    core: Protocols, exceptions, validation and options
"""

__version__ = "0.1.0"

from pysumm.core.exceptions import (
    ConfigurationError,
    EstimationError,
    PySummError,
    UnsupportedModelError,
    ValidationError,
)
from pysumm.core.options import (
    default_digits,
    get_default_digits,
    reset_default_digits,
    set_default_digits,
)
from pysumm.core.protocols import FittedModel, ModelFamily
from pysumm.models import SurveyDesign, SurveyFit, as_fitted_model, svyglm
from pysumm.summary import CoefficientRow, SummaryConfig, SummaryResult, build, summ

__all__ = [
    "__version__",
    # Builder
    "summ",
    "build",
    "SummaryConfig",
    "SummaryResult",
    "CoefficientRow",
    # Models
    "as_fitted_model",
    "FittedModel",
    "ModelFamily",
    "SurveyDesign",
    "SurveyFit",
    "svyglm",
    # Digits
    "set_default_digits",
    "get_default_digits",
    "reset_default_digits",
    "default_digits",
    # Exceptions
    "PySummError",
    "ValidationError",
    "UnsupportedModelError",
    "ConfigurationError",
    "EstimationError",
]
