"""Formatting and parsing of the positional template language.

A template is plain text in which fixed-width tokens stand for fields:

======== ===== ==============================
token    width field
======== ===== ==============================
yyyy     4     year (not padded)
mm       2     month
dd       2     day
hh       2     hour
nn       2     minute
ss       2     second
zzzzzz   6     millisecond * 1000 + microsecond
zzz      3     millisecond
======== ===== ==============================

Wider tokens always take priority over narrower ones, so ``zzzzzz`` is never
read as two ``zzz`` tokens.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from ._common import DEFAULT_YEAR, MICROS_PER_MILLI
from ._math import days_in_month

Fields = tuple[int, int, int, int, int, int, int, int]


class Token(NamedTuple):
    pattern: str
    field: str

    @property
    def width(self) -> int:
        return len(self.pattern)


TOKENS = (
    Token("yyyy", "year"),
    Token("mm", "month"),
    Token("dd", "day"),
    Token("hh", "hour"),
    Token("nn", "minute"),
    Token("ss", "second"),
    Token("zzzzzz", "millisecond+microsecond"),
    Token("zzz", "millisecond"),
)

# sorted() is stable, so equally wide tokens keep their table order
_BY_PRIORITY = sorted(TOKENS, key=lambda t: -t.width)
_find_tokens = re.compile(
    "|".join(re.escape(t.pattern) for t in _BY_PRIORITY)
).sub

# Inclusive bounds. The upper bound of 'dd' depends on year and month.
_BOUNDS = {
    "yyyy": (1970, 2300),
    "mm": (1, 12),
    "hh": (0, 23),
    "nn": (0, 59),
    "ss": (0, 59),
    "zzzzzz": (0, 999_999),
    "zzz": (0, 999),
}


class TemplateError(ValueError):
    """A string doesn't match the given template"""

    text: str | None = None
    template: str | None = None

    def _in_context(self, text: str, template: str) -> TemplateError:
        wrapped = type(self)(
            f"Cannot parse {text!r} with template {template!r}. {self}"
        )
        wrapped.__dict__.update(self.__dict__)
        wrapped.text = text
        wrapped.template = template
        return wrapped


class UnparseableField(TemplateError):
    """The text at a token's position is not an unsigned integer"""

    substring: str
    token: str

    @classmethod
    def _for_token(cls, substring: str, token: str) -> UnparseableField:
        self = cls(f"Cannot convert {substring!r} to {token}")
        self.substring = substring
        self.token = token
        return self


class FieldOutOfRange(TemplateError):
    """A parsed field falls outside its valid range"""

    value: int
    token: str
    low: int
    high: int

    @classmethod
    def _for_token(
        cls, value: int, token: str, low: int, high: int
    ) -> FieldOutOfRange:
        self = cls(f"{value} is out of range for {token} ({low} - {high})")
        self.value = value
        self.token = token
        self.low = low
        self.high = high
        return self


def format_fields(template: str, fields: Fields, /) -> str:
    year, month, day, hour, minute, second, millis, micros = fields
    rendered = {
        "yyyy": str(year),
        "mm": str(month).zfill(2),
        "dd": str(day).zfill(2),
        "hh": str(hour).zfill(2),
        "nn": str(minute).zfill(2),
        "ss": str(second).zfill(2),
        "zzzzzz": str(millis * MICROS_PER_MILLI + micros).zfill(6),
        "zzz": str(millis).zfill(3),
    }
    return _find_tokens(lambda m: rendered[m[0]], template)


def locate_tokens(template: str, /) -> dict[str, list[int]]:
    """Find the start of every token occurrence in the template.

    Tokens are claimed in priority order. A span that overlaps an already
    claimed span is skipped, and the template itself is left untouched.
    """
    claimed = [False] * len(template)
    found: dict[str, list[int]] = {}
    for token in _BY_PRIORITY:
        width = token.width
        starts = found[token.pattern] = []
        pos = template.find(token.pattern)
        while pos != -1:
            if any(claimed[pos : pos + width]):
                pos = template.find(token.pattern, pos + 1)
                continue
            claimed[pos : pos + width] = [True] * width
            starts.append(pos)
            pos = template.find(token.pattern, pos + width)
    return found


def parse_fields(text: str, template: str, /) -> Fields:
    """Extract the fields from text laid out like the template.

    Raises
    ------
    UnparseableField
        If a token's position in the text doesn't hold an unsigned integer
    FieldOutOfRange
        If a parsed value is outside its range
    """
    starts = locate_tokens(template)

    def read(token: str, default: int, low: int, high: int) -> int:
        value = default
        width = len(token)
        for start in starts[token]:
            raw = text[start : start + width]
            if len(raw) != width or not (raw.isascii() and raw.isdigit()):
                raise UnparseableField._for_token(raw, token)
            value = int(raw)
            if value < low or value > high:
                raise FieldOutOfRange._for_token(value, token, low, high)
        return value

    year = read("yyyy", DEFAULT_YEAR, *_BOUNDS["yyyy"])
    month = read("mm", 0, *_BOUNDS["mm"])
    day = read("dd", 0, 1, days_in_month(year, month))
    hour = read("hh", 0, *_BOUNDS["hh"])
    minute = read("nn", 0, *_BOUNDS["nn"])
    second = read("ss", 0, *_BOUNDS["ss"])
    millis, micros = divmod(
        read("zzzzzz", 0, *_BOUNDS["zzzzzz"]), MICROS_PER_MILLI
    )
    millis = read("zzz", millis, *_BOUNDS["zzz"])
    return (year, month, day, hour, minute, second, millis, micros)
