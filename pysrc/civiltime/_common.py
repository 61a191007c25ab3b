from datetime import datetime as _datetime, timezone as _timezone

UTC = _timezone.utc
Micros = int  # microseconds since the UNIX epoch

MICROS_PER_SECOND = 1_000_000
MICROS_PER_MILLI = 1_000

# The defaults of fields that a template doesn't mention
DEFAULT_YEAR = 1970


def fields_from_py(
    dt: _datetime, /
) -> tuple[int, int, int, int, int, int, int, int]:
    millis, micros = divmod(dt.microsecond, MICROS_PER_MILLI)
    return (
        dt.year,
        dt.month,
        dt.day,
        dt.hour,
        dt.minute,
        dt.second,
        millis,
        micros,
    )
