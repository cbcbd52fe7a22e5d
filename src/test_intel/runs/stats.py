"""Run statistics for a test's history."""

from typing import Sequence

from ..models import RunStats, RunStatus, TestRunRecord


def summarize_runs(runs: Sequence[TestRunRecord]) -> RunStats:
    """Totals, latest run and mean duration of finished runs."""
    durations = [r.duration_ms for r in runs if r.duration_ms is not None]

    return RunStats(
        total=len(runs),
        passed=sum(1 for r in runs if r.status is RunStatus.PASSED),
        failed=sum(1 for r in runs if r.status is RunStatus.FAILED),
        last_run=max(runs, key=lambda r: r.started_at) if runs else None,
        average_duration_ms=sum(durations) / len(durations) if durations else 0.0,
    )
