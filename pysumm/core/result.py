"""
Generic result container for pysumm computations.

The Result class provides a standardized envelope around a domain payload.
It carries the metadata shared by every summary (timing, which model
produced it, non-fatal warnings) so that rendering code does not have to
know where each piece came from.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (family, covariance type, distribution)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (coefficient rows, fit statistics)
        info: Structured metadata (family, se type, reference distribution)
        timing: Execution timing breakdown, or None if not measured
        source: Identifier of the model object that was summarized
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=SummaryParams(rows=rows, ...),
        ...     info={'family': 'linear', 'se_type': 'OLS'},
        ...     timing={'total_seconds': 0.01},
        ...     source='statsmodels.OLS',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    source: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
