"""
Input validation utilities for pysumm.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from numbers import Integral, Real
from typing import Any, Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pysumm.core.exceptions import ValidationError


def check_bool(value: Any, name: str) -> bool:
    """
    Verify value is a boolean flag.

    numpy booleans are accepted; integers are not, because ``digits=2``
    passed to the wrong keyword should not silently become ``True``.

    Raises:
        ValidationError: If value is not a bool
    """
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    raise ValidationError(f"{name}: expected True or False, got {value!r}")


def check_open_unit_interval(value: Any, name: str) -> float:
    """
    Verify value is a real number strictly between 0 and 1.

    Raises:
        ValidationError: If value is not real or lies outside (0, 1)
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name}: expected a number in (0, 1), got {value!r}")
    value = float(value)
    if not 0.0 < value < 1.0:
        raise ValidationError(f"{name}: must lie strictly between 0 and 1, got {value}")
    return value


def check_non_negative_int(value: Any, name: str) -> int:
    """
    Verify value is an integer >= 0.

    Raises:
        ValidationError: If value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(f"{name}: expected a non-negative integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name}: must be >= 0, got {value}")
    return int(value)


def check_positive(value: Any, name: str) -> float:
    """
    Verify value is a finite real number > 0.

    Raises:
        ValidationError: If value is not a positive finite number
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name}: expected a positive number, got {value!r}")
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ValidationError(f"{name}: must be a positive finite number, got {value}")
    return value


def check_choice(value: Any, choices: Iterable[str], name: str) -> str:
    """
    Verify value is one of a fixed set of strings (case-insensitive).

    Returns:
        The matching choice, in its canonical spelling

    Raises:
        ValidationError: If value is not one of choices
    """
    choices = tuple(choices)
    if isinstance(value, str):
        for choice in choices:
            if value.upper() == choice.upper():
                return choice
    valid = ', '.join(repr(c) for c in choices)
    raise ValidationError(f"{name}: expected one of {valid}, got {value!r}")


def check_vector(array: ArrayLike, name: str) -> NDArray[Any]:
    """
    Validate a 1D vector of labels or values.

    Unlike numeric inputs, group labels may be strings, so object and
    string dtypes are allowed here.

    Raises:
        ValidationError: If input is not 1D or contains missing values
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.ndim != 1:
        raise ValidationError(
            f"{name}: expected 1D array, got {result.ndim}D with shape {result.shape}"
        )

    if np.issubdtype(result.dtype, np.floating) and not np.all(np.isfinite(result)):
        raise ValidationError(f"{name}: contains missing or non-finite values")

    return result


def check_length(array: NDArray[Any], expected: int, name: str) -> None:
    """
    Verify a vector has the expected number of entries.

    Raises:
        ValidationError: If lengths differ
    """
    if array.shape[0] != expected:
        raise ValidationError(
            f"{name}: expected {expected} entries (one per observation), "
            f"got {array.shape[0]}"
        )
