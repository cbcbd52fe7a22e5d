"""Test Intel - advisory analytics for UI test suites."""

from .locators import (
    DuplicateClusterer,
    HealthScorer,
    are_likely_duplicates,
    find_duplicates,
    score_locator,
    summarize_health,
)
from .models import (
    AssertionFailure,
    DuplicateGroup,
    FailureAnalysis,
    FailureCategory,
    FailureTrend,
    FlakyTestReport,
    HealthScore,
    HealthStatus,
    LocatorRecord,
    LocatorType,
    RunStatus,
    TestRunRecord,
    Trend,
)
from .runs import (
    FailureAnalyzer,
    analyze_failures,
    categorize,
    detect_flaky_tests,
    get_failure_trend,
    summarize_runs,
)

__all__ = [
    "AssertionFailure",
    "DuplicateClusterer",
    "DuplicateGroup",
    "FailureAnalysis",
    "FailureAnalyzer",
    "FailureCategory",
    "FailureTrend",
    "FlakyTestReport",
    "HealthScore",
    "HealthScorer",
    "HealthStatus",
    "LocatorRecord",
    "LocatorType",
    "RunStatus",
    "TestRunRecord",
    "Trend",
    "analyze_failures",
    "are_likely_duplicates",
    "categorize",
    "detect_flaky_tests",
    "find_duplicates",
    "get_failure_trend",
    "score_locator",
    "summarize_health",
    "summarize_runs",
]
