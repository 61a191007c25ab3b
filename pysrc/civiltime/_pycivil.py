# The MIT License (MIT)
#
# Copyright (c) Arie Bovenberg
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

# Maintainer's notes:
#
# - The value type, the instant conversion and the arithmetic live in one
#   file, since all comparisons and arithmetic go through the instant.
#   The template language is in ``_template``; it only works on fields.
# - Instances are mutable: ``add()`` shifts the receiver in place.
#   ``plus()`` is the non-mutating twin.
from __future__ import annotations

__version__ = "0.1.0"

import enum
from calendar import timegm as _timegm
from datetime import datetime as _datetime, timedelta as _timedelta
from time import gmtime as _gmtime, localtime as _localtime, mktime as _mktime
from time import time_ns
from typing import TYPE_CHECKING, Any, no_type_check

from ._common import (
    MICROS_PER_MILLI,
    MICROS_PER_SECOND,
    UTC,
    Micros,
    fields_from_py,
)
from ._math import UNIT_MICROS, truncating_div
from ._template import (
    TOKENS,
    FieldOutOfRange,
    Fields,
    TemplateError,
    UnparseableField,
    format_fields,
    parse_fields,
)

__all__ = [
    "DateTime",
    "Unit",
    "diff",
    # Template language
    "TOKENS",
    # Exceptions
    "TemplateError",
    "UnparseableField",
    "FieldOutOfRange",
]


class Unit(enum.Enum):
    """The units of :meth:`DateTime.add` and :meth:`DateTime.diff`.

    Wherever a unit is expected, its name as a string works too.

    >>> Unit("hour") is Unit.HOUR
    True
    """

    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    MILLISECOND = "millisecond"
    MICROSECOND = "microsecond"


_EPOCH = _datetime(1970, 1, 1, tzinfo=UTC)
_DEFAULT_TEMPLATE = "yyyy-mm-dd hh:nn:ss.zzzzzz"
_object_new = object.__new__


if TYPE_CHECKING:
    from typing import final
else:

    def final(cls):

        def init_subclass_not_allowed(cls, **kwargs):  # pragma: no cover
            raise TypeError("Subclassing not allowed")

        cls.__init_subclass__ = init_subclass_not_allowed
        return cls


def _unit_micros(unit: Unit | str, /) -> int:
    return UNIT_MICROS[Unit(unit).value]


@final
class DateTime:
    """A civil date and time with microsecond precision.

    The fields are stored exactly as given. Only parsing
    (:meth:`from_str`) and the instant-based constructors guarantee
    that they form a valid date and time.

    Example
    -------
    >>> d = DateTime(2024, 2, 29, 12, 30, millisecond=7, microsecond=8)
    DateTime(2024-02-29 12:30:00.007008)
    >>> d.to_str("dd/mm/yyyy hh:nn")
    '29/02/2024 12:30'
    >>> d.add(90, Unit.MINUTE)
    >>> d
    DateTime(2024-02-29 14:00:00.007008)
    """

    __slots__ = (
        "_year",
        "_month",
        "_day",
        "_hour",
        "_minute",
        "_second",
        "_millisecond",
        "_microsecond",
    )

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        millisecond: int = 0,
        microsecond: int = 0,
    ) -> None:
        self._set_fields(
            (year, month, day, hour, minute, second, millisecond, microsecond)
        )

    @classmethod
    def now(cls) -> DateTime:
        """Create an instance from the current time, in UTC."""
        return cls.from_instant(time_ns() // 1_000)

    @classmethod
    def from_instant(cls, i: Micros, /) -> DateTime:
        """Create an instance from microseconds since the UNIX epoch, in UTC.

        The inverse of :meth:`to_instant` for dates in standard time.
        """
        if not isinstance(i, int):
            raise TypeError("method requires an integer")
        return cls._from_fields_unchecked(
            fields_from_py(_EPOCH + _timedelta(microseconds=i))
        )

    @classmethod
    def from_str(cls, text: str, template: str, /) -> DateTime:
        """Parse text laid out according to a template.

        See :data:`TOKENS` for the available tokens. Tokens missing from
        the template leave their field at its default: 1970 for the year,
        0 for the others.

        Raises
        ------
        UnparseableField
            If a token's position in the text doesn't hold digits
        FieldOutOfRange
            If a value falls outside its range. The day's range depends
            on the year and month.

        Example
        -------
        >>> DateTime.from_str("29/02/2024", "dd/mm/yyyy")
        DateTime(2024-02-29 00:00:00.000000)
        >>> DateTime.from_str("29/02/2023", "dd/mm/yyyy")
        Traceback (most recent call last):
          ...
        FieldOutOfRange: Cannot parse '29/02/2023' with template 'dd/mm/yyyy'. 29 is out of range for dd (1 - 28)
        """
        try:
            fields = parse_fields(text, template)
        except TemplateError as e:
            raise e._in_context(text, template) from e
        return cls._from_fields_unchecked(fields)

    @classmethod
    def from_py_datetime(cls, d: _datetime, /) -> DateTime:
        """Create an instance from a standard library ``datetime``.

        Aware datetimes are converted to UTC first. Naive datetimes
        are taken as-is.
        """
        if d.tzinfo is not None and d.utcoffset() is not None:
            d = d.astimezone(UTC)
        return cls._from_fields_unchecked(fields_from_py(d))

    @property
    def year(self) -> int:
        return self._year

    @property
    def month(self) -> int:
        return self._month

    @property
    def day(self) -> int:
        return self._day

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def minute(self) -> int:
        return self._minute

    @property
    def second(self) -> int:
        return self._second

    @property
    def millisecond(self) -> int:
        return self._millisecond

    @property
    def microsecond(self) -> int:
        return self._microsecond

    def copy(self) -> DateTime:
        """A new instance with the same fields"""
        return self._from_fields_unchecked(self._fields())

    @no_type_check
    def __copy__(self):
        return self.copy()

    @no_type_check
    def __deepcopy__(self, _):
        return self.copy()

    def to_str(self, template: str, /) -> str:
        """Format the fields according to a template.

        Every occurrence of a token is replaced, other characters are
        kept. Fields are rendered as they are, even if out of range.

        Example
        -------
        >>> DateTime(2021, 3, 4, 5, 6, 7).to_str("yyyymmdd-hhnnss")
        '20210304-050607'
        """
        return format_fields(template, self._fields())

    def to_instant(self) -> Micros:
        """The number of microseconds since the UNIX epoch.

        The fields are read as UTC. They are converted with the platform's
        local time rules first, and then corrected by the difference between
        ``localtime(now)`` and ``gmtime(now)``, both read back with
        :func:`time.mktime`. Since ``gmtime`` always reports standard time,
        that difference is the zone's *standard* UTC offset, whatever the
        current moment. Dates in daylight saving time therefore come out
        early by the DST shift (usually an hour). Without DST, the result
        is exact.

        Fields outside their ranges are normalized the way
        :func:`time.mktime` does it.
        """
        secs = int(
            _mktime(
                (
                    self._year,
                    self._month,
                    self._day,
                    self._hour,
                    self._minute,
                    self._second,
                    0,
                    0,
                    -1,
                )
            )
        )
        now = time_ns() // 1_000_000_000
        secs += int(_mktime(_localtime(now)) - _mktime(_gmtime(now)))
        return (
            secs * MICROS_PER_SECOND
            + self._millisecond * MICROS_PER_MILLI
            + self._microsecond
        )

    def py_datetime(self) -> _datetime:
        """Convert to an aware standard library ``datetime`` in UTC.

        Raises ``ValueError`` if the fields don't form a valid datetime.
        """
        return _datetime(
            self._year,
            self._month,
            self._day,
            self._hour,
            self._minute,
            self._second,
            self._millisecond * MICROS_PER_MILLI + self._microsecond,
            UTC,
        )

    def add(self, amount: int, unit: Unit | str = Unit.MILLISECOND) -> None:
        """Shift this instance in place. Negative amounts go back in time.

        Use :meth:`plus` to get a new instance instead.

        Example
        -------
        >>> d = DateTime(2024, 2, 28, 23)
        >>> d.add(2, Unit.HOUR)
        >>> d
        DateTime(2024-02-29 01:00:00.000000)
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError("amount must be an integer")
        self._set_fields(
            DateTime.from_instant(
                self.to_instant() + amount * _unit_micros(unit)
            )._fields()
        )

    def plus(
        self, amount: int, unit: Unit | str = Unit.MILLISECOND
    ) -> DateTime:
        """Like :meth:`add`, but return a new instance and leave this one
        unchanged.

        Example
        -------
        >>> d = DateTime(2024, 2, 28, 23)
        >>> DateTime.plus(d, 2, Unit.HOUR)
        DateTime(2024-02-29 01:00:00.000000)
        >>> d
        DateTime(2024-02-28 23:00:00.000000)
        """
        result = self.copy()
        result.add(amount, unit)
        return result

    @staticmethod
    def diff(
        lhs: DateTime, rhs: DateTime, unit: Unit | str = Unit.MILLISECOND
    ) -> int:
        """The time from ``rhs`` to ``lhs``, truncated toward zero in the
        given unit. Positive if ``lhs`` is later.

        Example
        -------
        >>> a = DateTime(2024, 1, 1, 12)
        >>> b = DateTime(2024, 1, 1, 10, 30)
        >>> DateTime.diff(a, b, Unit.HOUR)
        1
        >>> DateTime.diff(b, a, Unit.MINUTE)
        -90
        """
        if not (isinstance(lhs, DateTime) and isinstance(rhs, DateTime)):
            raise TypeError("diff() requires two DateTime instances")
        return truncating_div(
            lhs.to_instant() - rhs.to_instant(), _unit_micros(unit)
        )

    def __eq__(self, other: object) -> bool:
        """Compare by instant, not field by field.

        Example
        -------
        >>> DateTime(2020, 1, 1, 24) == DateTime(2020, 1, 2)
        True
        """
        if not isinstance(other, DateTime):
            return NotImplemented
        return self.to_instant() == other.to_instant()

    # Instances are mutable
    __hash__ = None  # type: ignore[assignment]

    def __lt__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self.to_instant() < other.to_instant()

    def __le__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self.to_instant() <= other.to_instant()

    def __gt__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self.to_instant() > other.to_instant()

    def __ge__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self.to_instant() >= other.to_instant()

    def __str__(self) -> str:
        """Format as ``yyyy-mm-dd hh:nn:ss.zzzzzz``"""
        return self.to_str(_DEFAULT_TEMPLATE)

    def __repr__(self) -> str:
        return f"DateTime({self})"

    def __reduce__(self) -> tuple[Any, ...]:
        return (DateTime, self._fields())

    def _fields(self) -> Fields:
        return (
            self._year,
            self._month,
            self._day,
            self._hour,
            self._minute,
            self._second,
            self._millisecond,
            self._microsecond,
        )

    def _set_fields(self, fields: Fields, /) -> None:
        (
            self._year,
            self._month,
            self._day,
            self._hour,
            self._minute,
            self._second,
            self._millisecond,
            self._microsecond,
        ) = fields

    def _utc_micros(self) -> Micros:
        # exact UTC, unlike to_instant(). Days, hours etc. may overflow,
        # timegm() only needs the month in range.
        years, month = divmod(self._month - 1, 12)
        secs = _timegm(
            (
                self._year + years,
                month + 1,
                self._day,
                self._hour,
                self._minute,
                self._second,
            )
        )
        return (
            secs * MICROS_PER_SECOND
            + self._millisecond * MICROS_PER_MILLI
            + self._microsecond
        )

    @classmethod
    def _from_fields_unchecked(cls, fields: Fields, /) -> DateTime:
        self = _object_new(cls)
        self._set_fields(fields)
        return self


def diff(
    lhs: DateTime, rhs: DateTime, unit: Unit | str = Unit.MILLISECOND
) -> int:
    """Same as :meth:`DateTime.diff`"""
    return DateTime.diff(lhs, rhs, unit)


for name in __all__:
    member = locals()[name]
    if getattr(member, "__module__", None) == __name__:
        member.__module__ = "civiltime"

# clear up loop variables so they don't leak into the namespace
del name
del member

for _cls in (TemplateError, UnparseableField, FieldOutOfRange):
    _cls.__module__ = "civiltime"
del _cls


def _patch_time_frozen(dt: DateTime) -> None:
    global time_ns

    pinned = dt._utc_micros() * 1_000

    def time_ns() -> int:
        return pinned


def _patch_time_keep_ticking(dt: DateTime) -> None:
    global time_ns

    pinned = dt._utc_micros() * 1_000
    _patched_at = time_ns()
    _time_ns = time_ns

    def time_ns() -> int:
        return pinned + _time_ns() - _patched_at


def _unpatch_time() -> None:
    global time_ns

    from time import time_ns
