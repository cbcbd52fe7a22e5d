"""Shared builders for Test Intel tests."""

from datetime import datetime, timedelta, timezone

import pytest

from test_intel.models import (
    AssertionFailure,
    LocatorRecord,
    LocatorType,
    RunStatus,
    TestRunRecord,
)

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_locator():
    """Build a LocatorRecord from a type name, expression and test names."""

    def _make(locator_type: str, expression: str, tests=()) -> LocatorRecord:
        return LocatorRecord(
            locator_type=LocatorType.parse(locator_type),
            expression=expression,
            used_in_tests=frozenset(tests),
        )

    return _make


@pytest.fixture
def make_run():
    """Build a TestRunRecord started `minute` minutes after a fixed base time."""

    def _make(
        test_name: str,
        status: str = "passed",
        minute: int = 0,
        assertion_type: str | None = None,
        target: str | None = None,
        duration_s: int | None = None,
    ) -> TestRunRecord:
        started = BASE_TIME + timedelta(minutes=minute)
        failures = ()
        if assertion_type is not None or target is not None:
            failures = (AssertionFailure(assertion_type=assertion_type, target=target),)
        return TestRunRecord(
            test_name=test_name,
            status=RunStatus(status),
            started_at=started,
            run_id=f"{test_name}-{minute}",
            finished_at=started + timedelta(seconds=duration_s) if duration_s is not None else None,
            assertion_failures=failures,
        )

    return _make
