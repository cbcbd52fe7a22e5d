"""Tests for run statistics."""

from test_intel.runs import summarize_runs


def test_empty_history():
    stats = summarize_runs([])

    assert stats.total == 0
    assert stats.last_run is None
    assert stats.average_duration_ms == 0.0


def test_counts_latest_run_and_duration(make_run):
    runs = [
        make_run("Login", "passed", 5, duration_s=10),
        make_run("Login", "failed", 9, duration_s=30),
        make_run("Login", "running", 12),
        make_run("Login", "skipped", 1),
    ]

    stats = summarize_runs(runs)

    assert stats.total == 4
    assert stats.passed == 1
    assert stats.failed == 1
    assert stats.last_run is runs[2]
    # Only finished runs contribute to the average
    assert stats.average_duration_ms == 20_000.0
