import os
import time

import pytest


# The local UTC offset feeds into instant conversion. Pin it to UTC,
# so the results don't depend on the machine running the tests.
# Tests that need another timezone use ``common.system_tz``.
@pytest.fixture(scope="session", autouse=True)
def utc_system_tz():
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    time.tzset()
    yield
    if previous is None:
        del os.environ["TZ"]
    else:
        os.environ["TZ"] = previous
    time.tzset()
