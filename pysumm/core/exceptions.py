"""
Exception hierarchy for pysumm.

All exceptions inherit from PySummError to allow catching any
library-specific error.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages name the offending option and model family
    - Never catch and re-raise with less information
"""


class PySummError(Exception):
    """Base exception for all pysumm errors."""
    pass


class ValidationError(PySummError):
    """
    Input validation failed.

    Raised when a single option value is malformed on its own, independent
    of the model it is applied to (e.g. ``ci_width=1.5``).
    """
    pass


class UnsupportedModelError(PySummError):
    """
    The model could not be classified into a supported family.

    Attributes:
        model_type: Qualified class name of the rejected object
    """

    def __init__(self, message: str, model_type: str | None = None):
        super().__init__(message)
        self.model_type = model_type


class ConfigurationError(PySummError):
    """
    Requested options are incompatible with the model family.

    Attributes:
        option: Name of the offending option (e.g. 'odds_ratio')
        family: Model family the option was applied to (e.g. 'linear')
    """

    def __init__(
        self,
        message: str,
        option: str | None = None,
        family: str | None = None,
    ):
        super().__init__(message)
        self.option = option
        self.family = family


class EstimationError(PySummError):
    """
    An external estimation step failed.

    Raised when a refit, covariance computation, VIF computation or
    mixed-model R-squared cannot be completed. The underlying exception is
    kept both as ``cause`` and as ``__cause__`` (raise ... from ...).

    Attributes:
        step: Pipeline step that failed ('refit', 'covariance', 'vif',
              'r_squared')
        cause: The underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        step: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.step = step
        self.cause = cause
