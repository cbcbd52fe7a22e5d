"""Core data models for Test Intel."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable


class LocatorType(Enum):
    """Locator strategies, ordered from most to least structurally stable."""

    ROLE = "role"
    LABEL = "label"
    PLACEHOLDER = "placeholder"
    TEST_ID = "testId"
    TEXT = "text"
    CSS = "css"
    XPATH = "xpath"
    OTHER = "other"  # vendor-specific strategies the scorer knows nothing about

    @classmethod
    def parse(cls, value: "str | LocatorType") -> "LocatorType":
        """Map a host-supplied type name onto a member, falling back to OTHER."""
        if isinstance(value, LocatorType):
            return value
        key = value.strip().lower().replace("-", "").replace("_", "")
        for member in cls:
            if member.value.lower() == key:
                return member
        return cls.OTHER


class HealthStatus(Enum):
    """Advisory health tier of a locator."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class RunStatus(Enum):
    """Outcome of a single test run."""

    PASSED = "passed"
    FAILED = "failed"
    RUNNING = "running"
    SKIPPED = "skipped"


class FailureCategory(Enum):
    """Classification of failed runs."""

    TIMEOUT = "timeout"
    ASSERTION = "assertion"
    ELEMENT_NOT_FOUND = "element_not_found"
    NETWORK = "network"  # needs trace parsing, never produced yet
    JAVASCRIPT_ERROR = "javascript_error"  # needs trace parsing, never produced yet
    UNKNOWN = "unknown"


class Trend(Enum):
    """Direction of the failure rate over time."""

    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


@dataclass(frozen=True)
class LocatorRecord:
    """One distinct element-locating expression used by the test suite."""

    locator_type: LocatorType
    expression: str
    used_in_tests: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "locator_type", LocatorType.parse(self.locator_type))
        object.__setattr__(self, "used_in_tests", frozenset(self.used_in_tests))

    @property
    def usage_count(self) -> int:
        """Number of tests referencing this locator."""
        return len(self.used_in_tests)

    @property
    def key(self) -> str:
        """Stable identity used by hosts when persisting decisions."""
        return f"{self.locator_type.value}:{self.expression.strip()}"


@dataclass(frozen=True)
class HealthFactors:
    """The four independent sub-scores of a health score."""

    type_score: int  # 0 - 40
    complexity_score: int  # 0 - 30
    stability_score: int  # 0 - 25
    usage_score: int  # 0 - 10

    @property
    def total(self) -> int:
        return self.type_score + self.complexity_score + self.stability_score + self.usage_score


@dataclass(frozen=True)
class HealthScore:
    """Quality assessment of a single locator."""

    factors: HealthFactors
    total: int  # 0 - 105
    status: HealthStatus
    recommendations: list[str]


@dataclass(frozen=True)
class ScoredLocator:
    """A locator paired with its health score."""

    locator: LocatorRecord
    health: HealthScore


@dataclass
class HealthSummary:
    """Aggregate health of a locator set."""

    total_locators: int
    status_counts: dict[HealthStatus, int]
    average_score: float
    critical: list[ScoredLocator] = field(default_factory=list)


@dataclass
class DuplicateGroup:
    """A cluster of locators judged to target the same element."""

    id: str
    members: list[LocatorRecord]
    similarity: float  # 0 - 100
    canonical: LocatorRecord
    rationale: str

    @property
    def redundant(self) -> list[LocatorRecord]:
        """Members the canonical locator would replace."""
        return [m for m in self.members if m is not self.canonical]


@dataclass(frozen=True)
class AssertionFailure:
    """Assertion-level detail of a failed run."""

    assertion_type: str | None = None
    target: str | None = None
    expected: str | None = None
    actual: str | None = None
    line: int | None = None


@dataclass(frozen=True)
class TestRunRecord:
    """One historical execution of a named test."""

    __test__ = False  # not a pytest class

    test_name: str
    status: RunStatus
    started_at: datetime
    run_id: str | None = None
    finished_at: datetime | None = None
    assertion_failures: tuple[AssertionFailure, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "assertion_failures", tuple(self.assertion_failures))

    @property
    def failed(self) -> bool:
        return self.status is RunStatus.FAILED

    @property
    def duration_ms(self) -> float | None:
        """Wall-clock duration, when the run has finished."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds() * 1000


@dataclass
class FailureAnalysis:
    """Failed runs sharing one detected category."""

    category: FailureCategory
    pattern: str
    affected_tests: list[str]
    occurrences: list[TestRunRecord]
    flakiness: float  # 0 - 100

    @property
    def count(self) -> int:
        return len(self.occurrences)


@dataclass
class FlakyTestReport:
    """Pass/fail history of a test that fails intermittently."""

    test_name: str
    total_runs: int
    passed_runs: int
    failed_runs: int
    failure_rate: float  # 0.0 - 1.0
    flakiness_score: int  # 0 - 100
    recent_failures: list[TestRunRecord] = field(default_factory=list)


@dataclass(frozen=True)
class FailureTrend:
    """Failure rate of the recent half of history against the older half."""

    trend: Trend
    recent_failure_rate: float
    previous_failure_rate: float


@dataclass
class RunStats:
    """Headline numbers for a set of runs."""

    total: int
    passed: int
    failed: int
    last_run: TestRunRecord | None
    average_duration_ms: float


def freeze_tests(tests: Iterable[str]) -> frozenset[str]:
    """Normalize a host-supplied test list into a set of non-empty names."""
    return frozenset(t for t in tests if t)
