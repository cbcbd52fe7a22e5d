"""Runs module - failure categorization, flakiness and trend analysis."""

from .analyzer import (
    FailureAnalyzer,
    analyze_failures,
    categorize,
    detect_flaky_tests,
    get_failure_trend,
)
from .stats import summarize_runs

__all__ = [
    "FailureAnalyzer",
    "analyze_failures",
    "categorize",
    "detect_flaky_tests",
    "get_failure_trend",
    "summarize_runs",
]
