"""
Core infrastructure for pysumm.

This module provides shared abstractions and utilities used by the model
adapters and the summary builder.

Key components:
    protocols: FittedModel protocol, ModelFamily tag
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    options: Process-wide default digits
    compute: Timing
"""

from pysumm.core.protocols import FittedModel, ModelFamily
from pysumm.core.result import Result
from pysumm.core.exceptions import (
    PySummError,
    ValidationError,
    UnsupportedModelError,
    ConfigurationError,
    EstimationError,
)

__all__ = [
    # Protocols
    "FittedModel",
    "ModelFamily",
    # Result
    "Result",
    # Exceptions
    "PySummError",
    "ValidationError",
    "UnsupportedModelError",
    "ConfigurationError",
    "EstimationError",
]
