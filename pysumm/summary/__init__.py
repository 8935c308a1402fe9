"""
Regression summaries.

Public API:
    summ(model, **options) -> SummaryResult
    build                  -- alias of summ
    SummaryConfig          -- validated option bundle
"""

from pysumm.summary.design import SummaryConfig
from pysumm.summary.solution import CoefficientRow, SummaryParams, SummaryResult
from pysumm.summary.solvers import build, summ

__all__ = [
    "summ",
    "build",
    "SummaryConfig",
    "SummaryResult",
    "SummaryParams",
    "CoefficientRow",
]
