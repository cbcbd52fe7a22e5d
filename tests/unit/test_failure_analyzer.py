"""Tests for failure categorization, flaky test detection and trends."""

from datetime import datetime, timezone

import pytest

from test_intel.config import FlakinessConfig, TrendConfig
from test_intel.models import (
    AssertionFailure,
    FailureCategory,
    RunStatus,
    TestRunRecord,
    Trend,
)
from test_intel.runs import (
    FailureAnalyzer,
    analyze_failures,
    categorize,
    detect_flaky_tests,
    get_failure_trend,
)
from test_intel.runs.analyzer import flakiness_score


class TestCategorize:
    """First-match categorization of a single run."""

    @pytest.mark.parametrize(
        "assertion_type, target, expected",
        [
            ("Timeout waiting for selector", None, FailureCategory.TIMEOUT),
            ("waitForResponse", "page", FailureCategory.TIMEOUT),
            ("toHaveText expect", None, FailureCategory.ASSERTION),
            ("Assert.equal", "locator('#total')", FailureCategory.ASSERTION),
            ("click", "locator('#submit')", FailureCategory.ELEMENT_NOT_FOUND),
            (None, "page.getByRole element", FailureCategory.ELEMENT_NOT_FOUND),
            ("click", "CSS Selector .btn", FailureCategory.ELEMENT_NOT_FOUND),
            ("click", "page", FailureCategory.UNKNOWN),
        ],
    )
    def test_rules(self, make_run, assertion_type, target, expected):
        run = make_run("Login", "failed", assertion_type=assertion_type, target=target)
        assert categorize(run) is expected

    def test_run_without_details_is_unknown(self, make_run):
        assert categorize(make_run("Login", "failed")) is FailureCategory.UNKNOWN

    def test_only_first_failure_counts(self):
        run = TestRunRecord(
            test_name="Login",
            status=RunStatus.FAILED,
            started_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
            assertion_failures=(
                AssertionFailure(assertion_type="click", target="page"),
                AssertionFailure(assertion_type="timeout"),
            ),
        )
        assert categorize(run) is FailureCategory.UNKNOWN


class TestAnalyzeFailures:
    """Aggregation of failed runs per category."""

    def test_empty_history(self):
        assert analyze_failures([]) == []

    def test_passing_runs_are_ignored(self, make_run):
        assert analyze_failures([make_run("Login"), make_run("Checkout", "skipped")]) == []

    def test_groups_by_category(self, make_run):
        runs = [
            make_run("Login", "failed", 0, assertion_type="timeout"),
            make_run("Checkout", "failed", 1, assertion_type="waitFor"),
            make_run("Login", "failed", 2, assertion_type="timeout"),
            make_run("Search", "failed", 3),
            make_run("Search", "passed", 4),
        ]

        analyses = analyze_failures(runs)

        assert [a.category for a in analyses] == [FailureCategory.TIMEOUT, FailureCategory.UNKNOWN]

        timeout, unknown = analyses
        assert timeout.affected_tests == ["Login", "Checkout"]
        assert timeout.count == 3
        assert timeout.occurrences == [runs[0], runs[1], runs[2]]
        assert timeout.pattern == "Timeout waiting for element or condition"
        assert timeout.flakiness == pytest.approx(2 / 3 * 50)

        assert unknown.affected_tests == ["Search"]
        assert unknown.flakiness == 0.0

    def test_spread_flakiness_is_capped(self, make_run):
        runs = [make_run(f"T{i}", "failed", i, assertion_type="expect") for i in range(4)]

        (analysis,) = analyze_failures(runs)

        assert analysis.category is FailureCategory.ASSERTION
        assert analysis.flakiness == 50.0


class TestDetectFlakyTests:
    """Per-test flakiness from full history."""

    def test_even_split_is_maximally_flaky(self, make_run):
        runs = [make_run("Login", "failed" if i % 2 else "passed", i) for i in range(10)]

        (report,) = detect_flaky_tests(runs)

        assert report.test_name == "Login"
        assert report.total_runs == 10
        assert report.passed_runs == 5
        assert report.failed_runs == 5
        assert report.failure_rate == 0.5
        assert report.flakiness_score == 100

    def test_always_passing_is_not_flaky(self, make_run):
        runs = [make_run("Checkout", "passed", i) for i in range(3)]
        assert detect_flaky_tests(runs) == []

    def test_always_failing_is_not_flaky(self, make_run):
        runs = [make_run("Checkout", "failed", i) for i in range(4)]
        assert detect_flaky_tests(runs) == []

    def test_too_few_runs(self, make_run):
        runs = [make_run("Login", "passed", 0), make_run("Login", "failed", 1)]
        assert detect_flaky_tests(runs) == []

    def test_score_threshold_is_exclusive(self, make_run):
        # 1 failure in 10 runs scores exactly 20
        runs = [make_run("Search", "failed" if i == 0 else "passed", i) for i in range(10)]
        assert detect_flaky_tests(runs) == []

    def test_sorted_by_score(self, make_run):
        runs = [make_run("Login", "failed" if i % 2 else "passed", i) for i in range(4)]
        runs += [make_run("Cart", "failed" if i == 0 else "passed", 10 + i) for i in range(4)]
        runs += [make_run("Search", "failed" if i == 0 else "passed", 20 + i) for i in range(6)]

        reports = detect_flaky_tests(runs)

        assert [(r.test_name, r.flakiness_score) for r in reports] == [
            ("Login", 100),
            ("Cart", 50),
            ("Search", 33),
        ]

    def test_recent_failures_newest_first(self, make_run):
        runs = [make_run("Login", "failed" if i % 2 else "passed", i) for i in range(14)]

        (report,) = detect_flaky_tests(runs)

        assert [r.started_at.minute for r in report.recent_failures] == [13, 11, 9, 7, 5]

    def test_running_and_skipped_count_toward_total(self, make_run):
        runs = [
            make_run("Login", "failed", 0),
            make_run("Login", "passed", 1),
            make_run("Login", "running", 2),
            make_run("Login", "skipped", 3),
        ]

        (report,) = detect_flaky_tests(runs)

        assert report.total_runs == 4
        assert report.passed_runs == 1
        assert report.failed_runs == 1
        assert report.flakiness_score == 50

    def test_configurable_thresholds(self, make_run):
        runs = [make_run("Login", "failed" if i else "passed", i) for i in range(2)]
        analyzer = FailureAnalyzer(flakiness=FlakinessConfig(min_runs=2, recent_failures=1))

        (report,) = analyzer.detect_flaky_tests(runs)

        assert report.flakiness_score == 100
        assert len(report.recent_failures) == 1

    @pytest.mark.parametrize(
        "rate, expected",
        [(0.0, 0), (1.0, 0), (0.5, 100), (0.25, 50), (0.3125, 63), (0.9, 20)],
    )
    def test_flakiness_score(self, rate, expected):
        assert flakiness_score(rate) == expected


class TestFailureTrend:
    """Recent against previous failure rate."""

    def test_short_history_is_stable(self, make_run):
        runs = [make_run("Login", "failed", i) for i in range(3)]
        result = get_failure_trend(runs)

        assert result.trend is Trend.STABLE
        assert result.recent_failure_rate == 0
        assert result.previous_failure_rate == 0

    def test_improving(self, make_run):
        runs = [make_run("Login", "failed" if i < 4 else "passed", i) for i in range(8)]
        result = get_failure_trend(runs)

        assert result.trend is Trend.IMPROVING
        assert result.recent_failure_rate == 0.0
        assert result.previous_failure_rate == 1.0

    def test_worsening_regardless_of_input_order(self, make_run):
        runs = [make_run("Login", "failed" if i >= 4 else "passed", i) for i in range(8)]
        result = get_failure_trend(list(reversed(runs)))

        assert result.trend is Trend.WORSENING
        assert result.recent_failure_rate == 1.0
        assert result.previous_failure_rate == 0.0

    def test_equal_rates_are_stable(self, make_run):
        runs = [make_run("Login", "failed" if i % 2 else "passed", i) for i in range(8)]
        assert get_failure_trend(runs).trend is Trend.STABLE

    def test_odd_history_puts_extra_run_in_previous_half(self, make_run):
        statuses = ["failed", "failed", "failed", "passed", "passed"]
        runs = [make_run("Login", s, i) for i, s in enumerate(statuses)]

        result = get_failure_trend(runs)

        assert result.recent_failure_rate == 0.0
        assert result.previous_failure_rate == 1.0

    def test_stable_band_from_config(self, make_run):
        runs = [make_run("Login", "failed" if i < 2 else "passed", i) for i in range(8)]
        analyzer = FailureAnalyzer(trend=TrendConfig(stable_band=0.6))

        assert get_failure_trend(runs).trend is Trend.IMPROVING

        assert analyzer.get_failure_trend(runs).trend is Trend.STABLE
