"""Calendar and unit helpers."""

from ._common import MICROS_PER_MILLI, MICROS_PER_SECOND


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


# 1-indexed days per month. Index 0 is used when the month is unknown,
# so it takes the largest bound.
_MONTHDAYS = [31, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def days_in_month(year: int, month: int) -> int:
    return _MONTHDAYS[month] + (month == 2 and is_leap(year))


UNIT_MICROS = {
    "hour": 3_600 * MICROS_PER_SECOND,
    "minute": 60 * MICROS_PER_SECOND,
    "second": MICROS_PER_SECOND,
    "millisecond": MICROS_PER_MILLI,
    "microsecond": 1,
}


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero (``//`` floors instead)."""
    q = abs(a) // b
    return q if a >= 0 else -q
