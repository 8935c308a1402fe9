"""
Core protocols for pysumm.

These define the structural interface a fitted model must satisfy to be
summarized. We use Protocol (structural typing) rather than ABC (nominal
typing) so that callers can hand in their own adapters without inheriting
from pysumm classes.

Design Principles:
    - Minimal contract: coefficients, covariance, refit, family metadata
    - Capability-driven: use supports() for optional features
    - Read-only: the summary builder never mutates a FittedModel
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray


class ModelFamily(Enum):
    """Model families the summary builder knows how to dispatch on."""
    LINEAR = 'linear'
    GLM = 'generalized-linear'
    MIXED = 'mixed-effects'
    SURVEY = 'survey-weighted'


@runtime_checkable
class FittedModel(Protocol):
    """
    Minimal protocol for a fitted regression model.

    Adapters in pysumm.models implement this for statsmodels results.
    Anything else that implements it (and carries a ModelFamily tag) can
    be passed to summ() directly.
    """

    @property
    def family(self) -> ModelFamily:
        """Family tag used for dispatch."""
        ...

    @property
    def term_names(self) -> tuple[str, ...]:
        """Coefficient names in the model's native order."""
        ...

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        """Point estimates (fixed effects only for mixed models)."""
        ...

    def covariance(self) -> NDArray[np.floating[Any]]:
        """The model's native coefficient covariance matrix."""
        ...

    @property
    def n_obs(self) -> int:
        """Number of observations used in the fit."""
        ...

    @property
    def response_name(self) -> str:
        ...

    @property
    def model_type(self) -> str:
        """Human-readable model description for the summary header."""
        ...

    def fit_statistics(self) -> tuple[Any, ...]:
        """Model fit statistics (FitStatistic records), possibly empty."""
        ...

    def refit(self, data: Any) -> 'FittedModel':
        """
        Re-estimate the model with identical structure on new data.

        Must return a new instance; the receiver is left untouched.
        """
        ...

    def supports(self, capability: str) -> bool:
        """
        Check if this model supports a given capability.

        Note:
            Unknown capabilities MUST return False, never raise.
        """
        ...
