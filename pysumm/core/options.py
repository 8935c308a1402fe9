"""
Process-wide defaults.

Only one setting lives here: the default number of display digits used
when a summary is built without an explicit ``digits`` option. It is read
exactly once per build, at configuration-resolution time.
"""

from contextlib import contextmanager
from typing import Iterator

from pysumm.core.validation import check_non_negative_int

FALLBACK_DIGITS = 2

_default_digits: int | None = None


def set_default_digits(digits: int) -> None:
    """Set the process-wide default number of display digits."""
    global _default_digits
    _default_digits = check_non_negative_int(digits, 'digits')


def get_default_digits() -> int | None:
    """Return the process-wide default, or None if it has not been set."""
    return _default_digits


def reset_default_digits() -> None:
    """Clear the process-wide default so the fallback applies again."""
    global _default_digits
    _default_digits = None


@contextmanager
def default_digits(digits: int) -> Iterator[None]:
    """
    Temporarily override the process-wide default.

    Usage:
        with default_digits(4):
            print(summ(model))
    """
    global _default_digits
    previous = _default_digits
    set_default_digits(digits)
    try:
        yield
    finally:
        _default_digits = previous


def resolve_digits(digits: int | None) -> int:
    """
    Resolve the digits to use for a build.

    Order: explicit config value, process-wide default, FALLBACK_DIGITS.
    """
    if digits is not None:
        return digits
    if _default_digits is not None:
        return _default_digits
    return FALLBACK_DIGITS
