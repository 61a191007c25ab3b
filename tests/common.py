import os
import time
from contextlib import contextmanager
from unittest.mock import patch

# The POSIX TZ string for the Amsterdam timezone. Unlike a zoneinfo key,
# this works without the timezone database installed.
AMS_TZ_POSIX = "CET-1CEST,M3.5.0,M10.5.0/3"


class AlwaysEqual:
    def __eq__(self, _):
        return True


class NeverEqual:
    def __eq__(self, _):
        return False


class AlwaysLarger:
    def __lt__(self, _):
        return False

    def __le__(self, _):
        return False

    def __gt__(self, _):
        return True

    def __ge__(self, _):
        return True


class AlwaysSmaller:
    def __lt__(self, _):
        return True

    def __le__(self, _):
        return True

    def __gt__(self, _):
        return False

    def __ge__(self, _):
        return False


@contextmanager
def system_tz(name):
    try:
        with patch.dict(os.environ, {"TZ": name}):
            time.tzset()
            yield
    finally:
        time.tzset()  # don't forget to reset the timezone after the patch!


def micros(dt):
    """Microseconds since the epoch, for a naive datetime taken as UTC"""
    return (
        (dt.toordinal() - 719_163) * 86_400
        + dt.hour * 3_600
        + dt.minute * 60
        + dt.second
    ) * 1_000_000 + dt.microsecond
