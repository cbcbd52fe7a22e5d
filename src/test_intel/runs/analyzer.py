"""Failure analysis - categorize failed runs, find flaky tests and trends."""

import logging
import math
from collections import defaultdict
from typing import Sequence

from ..config import FlakinessConfig, TrendConfig
from ..models import (
    FailureAnalysis,
    FailureCategory,
    FailureTrend,
    FlakyTestReport,
    RunStatus,
    TestRunRecord,
    Trend,
)

logger = logging.getLogger(__name__)


FAILURE_PATTERNS = {
    FailureCategory.TIMEOUT: "Timeout waiting for element or condition",
    FailureCategory.ASSERTION: "Assertion failed - expected value mismatch",
    FailureCategory.ELEMENT_NOT_FOUND: "Element not found - locator issue",
    FailureCategory.NETWORK: "Network error or request failure",
    FailureCategory.JAVASCRIPT_ERROR: "JavaScript error in page",
    FailureCategory.UNKNOWN: "Unknown failure type",
}


class FailureAnalyzer:
    """Analyze run history for failure categories, flaky tests and trends."""

    def __init__(
        self,
        flakiness: FlakinessConfig | None = None,
        trend: TrendConfig | None = None,
    ):
        self.flakiness = flakiness or FlakinessConfig()
        self.trend = trend or TrendConfig()

    @staticmethod
    def categorize(run: TestRunRecord) -> FailureCategory:
        """Classify a run from its first assertion failure."""
        if not run.assertion_failures:
            return FailureCategory.UNKNOWN

        first = run.assertion_failures[0]

        if first.assertion_type:
            kind = first.assertion_type.lower()
            if "timeout" in kind or "wait" in kind:
                return FailureCategory.TIMEOUT
            if "assert" in kind or "expect" in kind:
                return FailureCategory.ASSERTION

        if first.target:
            target = first.target.lower()
            if any(x in target for x in ("locator", "element", "selector")):
                return FailureCategory.ELEMENT_NOT_FOUND

        # NETWORK and JAVASCRIPT_ERROR need trace contents we do not parse
        return FailureCategory.UNKNOWN

    def analyze_failures(self, runs: Sequence[TestRunRecord]) -> list[FailureAnalysis]:
        """
        Group failed runs by category.

        Categories are returned in order of first occurrence. Each category's
        flakiness rewards failures spread over many tests (systemic issues)
        over failures concentrated in a single test.
        """
        occurrences: dict[FailureCategory, list[TestRunRecord]] = {}
        tests: dict[FailureCategory, dict[str, None]] = defaultdict(dict)

        for run in runs:
            if not run.failed:
                continue
            category = self.categorize(run)
            occurrences.setdefault(category, []).append(run)
            tests[category][run.test_name] = None

        results = []
        for category, category_runs in occurrences.items():
            unique_tests = len(tests[category])
            flakiness = (
                min(100.0, unique_tests / len(category_runs) * 50) if unique_tests > 1 else 0.0
            )
            results.append(FailureAnalysis(
                category=category,
                pattern=FAILURE_PATTERNS[category],
                affected_tests=list(tests[category]),
                occurrences=category_runs,
                flakiness=flakiness,
            ))

        logger.debug("Grouped failures into %d categories", len(results))
        return results

    def detect_flaky_tests(self, runs: Sequence[TestRunRecord]) -> list[FlakyTestReport]:
        """Find tests that fail intermittently, most flaky first."""
        by_test: dict[str, list[TestRunRecord]] = {}
        for run in runs:
            by_test.setdefault(run.test_name, []).append(run)

        reports = []
        for test_name, test_runs in by_test.items():
            total = len(test_runs)
            if total < self.flakiness.min_runs:
                continue

            passed = sum(1 for r in test_runs if r.status is RunStatus.PASSED)
            failures = [r for r in test_runs if r.failed]
            failure_rate = len(failures) / total

            score = flakiness_score(failure_rate)
            if score <= self.flakiness.min_score:
                continue

            failures.sort(key=lambda r: r.started_at, reverse=True)
            reports.append(FlakyTestReport(
                test_name=test_name,
                total_runs=total,
                passed_runs=passed,
                failed_runs=len(failures),
                failure_rate=failure_rate,
                flakiness_score=score,
                recent_failures=failures[: self.flakiness.recent_failures],
            ))

        # Stable sort keeps first-seen order among equal scores
        reports.sort(key=lambda r: r.flakiness_score, reverse=True)
        logger.debug("Detected %d flaky tests across %d tests", len(reports), len(by_test))
        return reports

    def get_failure_trend(self, runs: Sequence[TestRunRecord]) -> FailureTrend:
        """Compare the failure rate of the newer half of history to the older half."""
        if len(runs) < self.trend.min_runs:
            return FailureTrend(Trend.STABLE, 0.0, 0.0)

        ordered = sorted(runs, key=lambda r: r.started_at, reverse=True)
        midpoint = len(ordered) // 2
        recent_rate = failure_rate(ordered[:midpoint])
        previous_rate = failure_rate(ordered[midpoint:])

        diff = recent_rate - previous_rate
        if abs(diff) < self.trend.stable_band:
            trend = Trend.STABLE
        elif diff < 0:
            trend = Trend.IMPROVING
        else:
            trend = Trend.WORSENING

        return FailureTrend(trend, recent_rate, previous_rate)


def flakiness_score(rate: float) -> int:
    """0 - 100 score peaking at a 50% failure rate, zero at 0% and 100%."""
    # Half-up rounding: 62.5 scores 63
    return max(0, math.floor((1 - 2 * abs(rate - 0.5)) * 100 + 0.5))


def failure_rate(runs: Sequence[TestRunRecord]) -> float:
    if not runs:
        return 0.0
    return sum(1 for r in runs if r.failed) / len(runs)


_default_analyzer = FailureAnalyzer()


def categorize(run: TestRunRecord) -> FailureCategory:
    return FailureAnalyzer.categorize(run)


def analyze_failures(runs: Sequence[TestRunRecord]) -> list[FailureAnalysis]:
    return _default_analyzer.analyze_failures(runs)


def detect_flaky_tests(runs: Sequence[TestRunRecord]) -> list[FlakyTestReport]:
    return _default_analyzer.detect_flaky_tests(runs)


def get_failure_trend(runs: Sequence[TestRunRecord]) -> FailureTrend:
    return _default_analyzer.get_failure_trend(runs)
