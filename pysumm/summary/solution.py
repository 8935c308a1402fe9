"""
Summary solution types.

Contains the parameter payload (unrounded, as computed) and the
user-facing SummaryResult wrapper that rounds for display.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, TYPE_CHECKING

import numpy as np
import pandas as pd

from pysumm.core.result import Result
from pysumm.models.base import FitStatistic
from pysumm.models.mixed import RandomEffect

if TYPE_CHECKING:
    from pysumm.summary.design import SummaryConfig


def _round(value: float | None, digits: int) -> float | None:
    if value is None:
        return None
    return float(np.round(value, digits))


@dataclass(frozen=True)
class CoefficientRow:
    """
    One row of the coefficient table.

    Nullable fields are None when the option that produces them is off
    (or, for std_error, when odds ratios are reported).
    """
    term: str
    estimate: float
    std_error: float | None = None
    statistic: float | None = None
    p_value: float | None = None
    conf_low: float | None = None
    conf_high: float | None = None
    vif: float | None = None

    def rounded(self, digits: int) -> CoefficientRow:
        """Copy with every numeric field rounded to ``digits``."""
        return replace(self, **{
            f.name: _round(getattr(self, f.name), digits)
            for f in fields(self) if f.name != 'term'
        })


@dataclass(frozen=True)
class SummaryParams:
    """
    Parameter payload for a model summary. Never rounded.
    """
    rows: tuple[CoefficientRow, ...]
    model_info: dict[str, Any]
    model_fit: tuple[FitStatistic, ...]
    random_effects: tuple[RandomEffect, ...]
    notes: tuple[str, ...]


class SummaryResult:
    """
    User-facing model summary.

    Wraps the Result envelope and provides rounded display values next to
    the unrounded ones. Plotting and export code should read ``unrounded``
    or ``to_frame(rounded=False)``.
    """

    def __init__(
        self,
        _result: Result[SummaryParams],
        _config: SummaryConfig,
        _digits: int,
        _model: Any,
    ):
        self._result = _result
        self._config = _config
        self._digits = _digits
        self._model = _model
        self._rows: tuple[CoefficientRow, ...] | None = None

    @property
    def params(self) -> SummaryParams:
        return self._result.params

    # --- Coefficient table ---

    @property
    def unrounded(self) -> tuple[CoefficientRow, ...]:
        """Rows exactly as computed."""
        return self.params.rows

    @property
    def rows(self) -> tuple[CoefficientRow, ...]:
        """Rows rounded to ``digits`` for display."""
        if self._rows is None:
            self._rows = tuple(row.rounded(self._digits) for row in self.params.rows)
        return self._rows

    @property
    def terms(self) -> tuple[str, ...]:
        return tuple(row.term for row in self.params.rows)

    @property
    def coefficients(self) -> dict[str, float]:
        """Term -> unrounded estimate (exponentiated for odds ratios)."""
        return {row.term: row.estimate for row in self.params.rows}

    # --- Header metadata ---

    @property
    def model_info(self) -> dict[str, Any]:
        return self.params.model_info

    @property
    def fit_statistics(self) -> tuple[FitStatistic, ...]:
        return self.params.model_fit

    @property
    def model_fit_unrounded(self) -> dict[str, float]:
        return {s.label: s.value for s in self.params.model_fit}

    @property
    def model_fit(self) -> dict[str, float]:
        return {s.label: _round(s.value, self._digits) for s in self.params.model_fit}

    @property
    def random_effects(self) -> tuple[RandomEffect, ...]:
        return self.params.random_effects

    @property
    def notes(self) -> tuple[str, ...]:
        return self.params.notes

    # --- Envelope ---

    @property
    def digits(self) -> int:
        return self._digits

    @property
    def config(self) -> SummaryConfig:
        return self._config

    @property
    def model(self) -> Any:
        """The model actually summarized (the refit when transformed)."""
        return self._model

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def source(self) -> str:
        return self._result.source

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Output ---

    def to_frame(self, rounded: bool = True) -> pd.DataFrame:
        """
        Coefficient table as a DataFrame indexed by term.

        Columns whose option is off (all None) are dropped.
        """
        rows = self.rows if rounded else self.unrounded
        columns = [f.name for f in fields(CoefficientRow) if f.name != 'term']
        records = {
            name: [getattr(row, name) for row in rows]
            for name in columns
        }
        frame = pd.DataFrame(records, index=pd.Index(self.terms, name='term'))
        keep = [name for name in columns if any(v is not None for v in records[name])]
        return frame[keep].astype(float)

    def _column_labels(self) -> dict[str, str]:
        width = self.info['ci_width']
        low = f"{100 * (1 - width) / 2:g}%"
        high = f"{100 * (1 + width) / 2:g}%"
        return {
            'estimate': 'exp(Est.)' if self._config.odds_ratio else 'Est.',
            'std_error': 'S.E.',
            'conf_low': low,
            'conf_high': high,
            'statistic': f"{self.info['statistic']} val.",
            'p_value': 'p',
            'vif': 'VIF',
        }

    def _format_statistic(self, stat: FitStatistic) -> str:
        d = self._digits
        text = stat.label
        if stat.df is not None:
            df = ','.join(f"{v:g}" for v in stat.df)
            text += f"({df})"
        text += f" = {stat.value:.{d}f}"
        if stat.p_value is not None:
            text += f", p = {stat.p_value:.{d}f}"
        return text

    def summary(self) -> str:
        """Console rendering of the summary."""
        d = self._digits
        lines: list[str] = []

        if self.model_info:
            lines.append("MODEL INFO:")
            for key, value in self.model_info.items():
                if key != 'Standard errors':
                    lines.append(f"{key}: {value}")
            lines.append("")

        if self.fit_statistics:
            lines.append("MODEL FIT:")
            lines.extend(self._format_statistic(s) for s in self.fit_statistics)
            lines.append("")

        lines.append(f"Standard errors: {self.info['se_type']}")

        frame = self.to_frame(rounded=True)
        labels = self._column_labels()
        order = [c for c in ('estimate', 'std_error', 'conf_low', 'conf_high',
                             'statistic', 'p_value', 'vif') if c in frame.columns]
        term_width = max([len(t) for t in self.terms] + [4])
        header = ' ' * term_width + ''.join(f" {labels[c]:>10s}" for c in order)
        rule = '-' * len(header)
        lines.extend([rule, header, rule])
        for term, row in frame.iterrows():
            cells = ''.join(
                f" {'':>10s}" if np.isnan(row[c]) else f" {row[c]:>10.{d}f}"
                for c in order
            )
            lines.append(f"{term:<{term_width}s}{cells}")
        lines.append(rule)

        if self.random_effects:
            lines.append("")
            lines.append("RANDOM EFFECTS:")
            for re in self.random_effects:
                lines.append(f" {re.group:<12s} {re.term:<15s} {re.std_dev:10.{d}f}")

        if self.notes:
            lines.append("")
            lines.extend(self.notes)

        return '\n'.join(lines)

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return (
            f"SummaryResult({self.info['family']}, n={self.info['n_obs']}, "
            f"terms={len(self.params.rows)}, digits={self._digits})"
        )
