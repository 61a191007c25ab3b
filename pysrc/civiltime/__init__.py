from __future__ import annotations

from ._pycivil import *
from ._pycivil import (  # for the docs
    __all__,
    __version__,
    _patch_time_frozen,
    _patch_time_keep_ticking,
    _unit_micros,
    _unpatch_time,
)

from contextlib import contextmanager as _contextmanager
from dataclasses import dataclass as _dataclass
from typing import Iterator as _Iterator

__all__ = [*__all__, "patch_current_time"]


@_dataclass
class _TimePatch:
    _pin: DateTime
    _keep_ticking: bool

    def shift(self, amount: int, unit: Unit | str = Unit.MILLISECOND) -> None:
        # exact UTC arithmetic: plus() goes through to_instant()
        start = DateTime.now() if self._keep_ticking else self._pin
        self._pin = new = DateTime.from_instant(
            start._utc_micros() + amount * _unit_micros(unit)
        )
        if self._keep_ticking:
            _patch_time_keep_ticking(new)
        else:
            _patch_time_frozen(new)


@_contextmanager
def patch_current_time(
    dt: DateTime, /, *, keep_ticking: bool
) -> _Iterator[_TimePatch]:
    """Patch the current time to a fixed value (for testing purposes).
    Behaves as a context manager or decorator, with similar semantics to
    ``unittest.mock.patch``.

    Both :meth:`DateTime.now` and the UTC offset correction of
    :meth:`DateTime.to_instant` see the patched time.

    Important
    ---------

    * This function should be used only for testing purposes. It is not
      thread-safe or part of the stable API.
    * It doesn't affect the standard library's time functions or any
      other libraries. Use the ``time_machine`` package if you also want
      to patch other libraries.
    * It doesn't affect the system timezone. If you need to patch it, set
      the ``TZ`` environment variable in combination with ``time.tzset``.
      Be aware that this only works on Unix-like systems.

    Example
    -------

    >>> from civiltime import DateTime, Unit, patch_current_time
    >>> d = DateTime(1980, 3, 2, 2)
    >>> with patch_current_time(d, keep_ticking=False) as p:
    ...     assert DateTime.now() == d
    ...     p.shift(4, Unit.HOUR)
    ...     assert DateTime.now() == d.plus(4, Unit.HOUR)
    ...
    >>> assert DateTime.now() != d
    """
    if keep_ticking:
        _patch_time_keep_ticking(dt)
    else:
        _patch_time_frozen(dt)

    try:
        yield _TimePatch(dt, keep_ticking)
    finally:
        _unpatch_time()

