"""
Tests for input validation utilities.

Validates every function in core/validation.py.
"""

import numpy as np
import pytest

from pysumm.core.exceptions import ValidationError
from pysumm.core.validation import (
    check_bool,
    check_choice,
    check_length,
    check_non_negative_int,
    check_open_unit_interval,
    check_positive,
    check_vector,
)


# ═══════════════════════════════════════════════════════════════════════
# Scalars
# ═══════════════════════════════════════════════════════════════════════


class TestCheckBool:

    def test_accepts_python_and_numpy_bools(self):
        assert check_bool(True, 'confint') is True
        assert check_bool(np.bool_(False), 'confint') is False

    @pytest.mark.parametrize("value", [1, 0, 'yes', None])
    def test_rejects_non_bool(self, value):
        with pytest.raises(ValidationError, match="confint"):
            check_bool(value, 'confint')


class TestCheckOpenUnitInterval:

    def test_accepts_interior(self):
        assert check_open_unit_interval(0.95, 'ci_width') == 0.95

    @pytest.mark.parametrize("value", [0, 1, 0.0, 1.0, 1.5, -0.1])
    def test_rejects_boundary_and_outside(self, value):
        with pytest.raises(ValidationError, match="ci_width"):
            check_open_unit_interval(value, 'ci_width')

    def test_rejects_bool(self):
        with pytest.raises(ValidationError):
            check_open_unit_interval(True, 'ci_width')


class TestCheckNonNegativeInt:

    def test_accepts_zero(self):
        assert check_non_negative_int(0, 'digits') == 0

    def test_accepts_numpy_int(self):
        assert check_non_negative_int(np.int64(3), 'digits') == 3

    @pytest.mark.parametrize("value", [-1, 2.5, '2', True])
    def test_rejects(self, value):
        with pytest.raises(ValidationError, match="digits"):
            check_non_negative_int(value, 'digits')


class TestCheckPositive:

    def test_accepts_float(self):
        assert check_positive(2, 'n_sd') == 2.0

    @pytest.mark.parametrize("value", [0, -1.0, np.inf, np.nan, 'two'])
    def test_rejects(self, value):
        with pytest.raises(ValidationError, match="n_sd"):
            check_positive(value, 'n_sd')


class TestCheckChoice:

    def test_case_insensitive_returns_canonical(self):
        assert check_choice('hc1', ('HC0', 'HC1'), 'robust') == 'HC1'

    def test_rejects_unknown(self):
        with pytest.raises(ValidationError, match="'HC0', 'HC1'"):
            check_choice('HC9', ('HC0', 'HC1'), 'robust')

    def test_rejects_non_string(self):
        with pytest.raises(ValidationError):
            check_choice(3, ('HC0',), 'robust')


# ═══════════════════════════════════════════════════════════════════════
# Vectors
# ═══════════════════════════════════════════════════════════════════════


class TestCheckVector:

    def test_string_labels_allowed(self):
        result = check_vector(['a', 'b', 'a'], 'cluster')
        assert result.shape == (3,)

    def test_rejects_2d(self):
        with pytest.raises(ValidationError, match="1D"):
            check_vector(np.zeros((3, 2)), 'cluster')

    def test_rejects_nan(self):
        with pytest.raises(ValidationError, match="non-finite"):
            check_vector([1.0, np.nan], 'cluster')


class TestCheckLength:

    def test_matching_length_passes(self):
        check_length(np.arange(5), 5, 'weights')

    def test_mismatch_raises(self):
        with pytest.raises(ValidationError, match="expected 5 entries"):
            check_length(np.arange(4), 5, 'weights')
