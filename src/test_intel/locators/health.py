"""Locator health scoring - rate locator quality by type, complexity and usage."""

import logging
import re
from typing import Iterable

from ..models import (
    HealthFactors,
    HealthScore,
    HealthStatus,
    HealthSummary,
    LocatorRecord,
    LocatorType,
    ScoredLocator,
)

logger = logging.getLogger(__name__)

_SIMPLE_CSS = re.compile(r"^[#.][A-Za-z][\w-]*$")
_MULTI_DIGIT = re.compile(r"\d{2,}")
_CHAIN_CHARS = re.compile(r"[.#\[]")

EXCELLENT_MESSAGE = "This locator is in excellent condition. No changes needed."
ACCEPTABLE_MESSAGE = "Minor improvements could be made, but this locator is acceptable"


class HealthScorer:
    """Score locators on a 0 - 105 scale from four independent factors."""

    TYPE_SCORES = {
        LocatorType.ROLE: 40,
        LocatorType.LABEL: 40,
        LocatorType.PLACEHOLDER: 40,
        LocatorType.TEST_ID: 35,
        LocatorType.TEXT: 25,
    }

    # Lower bound of each tier, best first
    STATUS_TIERS = [
        (90, HealthStatus.EXCELLENT),
        (75, HealthStatus.GOOD),
        (60, HealthStatus.FAIR),
        (40, HealthStatus.POOR),
    ]

    def score(self, locator: LocatorRecord) -> HealthScore:
        """Compute the health score of a single locator."""
        factors = HealthFactors(
            type_score=self._score_type(locator),
            complexity_score=self._score_complexity(locator.expression),
            stability_score=self._score_stability(locator),
            usage_score=self._score_usage(locator.usage_count),
        )
        total = factors.total
        status = self.status_for(total)

        return HealthScore(
            factors=factors,
            total=total,
            status=status,
            recommendations=self._recommend(locator, factors, status),
        )

    @classmethod
    def status_for(cls, total: int) -> HealthStatus:
        """Map a total score onto its tier."""
        for lower_bound, status in cls.STATUS_TIERS:
            if total >= lower_bound:
                return status
        return HealthStatus.CRITICAL

    def _score_type(self, locator: LocatorRecord) -> int:
        """Score based on locator type (0 - 40)."""
        if locator.locator_type in self.TYPE_SCORES:
            return self.TYPE_SCORES[locator.locator_type]

        if locator.locator_type is LocatorType.CSS:
            # A bare #id or .class is the least fragile CSS there is
            return 20 if _SIMPLE_CSS.match(locator.expression) else 15

        if locator.locator_type is LocatorType.XPATH:
            return 5 if _is_complex_xpath(locator.expression) else 10

        return 10

    @staticmethod
    def _score_complexity(expression: str) -> int:
        """Score based on structural complexity (0 - 30)."""
        score = 30

        if "nth-child" in expression:
            score -= 10
        if "nth-of-type" in expression:
            score -= 10
        for marker in ("::", ">", "~", "+"):
            if marker in expression:
                score -= 5
        if _MULTI_DIGIT.search(expression):
            score -= 5  # likely positional indices
        if len(expression) > 100:
            score -= 5
        if len(_CHAIN_CHARS.findall(expression)) > 3:
            score -= 5

        return max(0, score)

    @staticmethod
    def _score_stability(locator: LocatorRecord) -> int:
        """Score based on volatility indicators (0 - 25)."""
        score = 20

        if locator.usage_count >= 5:
            score += 5
        elif locator.usage_count == 0:
            score -= 10

        lowered = locator.expression.lower()
        if "dynamic" in lowered or "temp" in lowered:
            score -= 10
        if "div" in lowered and "role" not in lowered and "testid" not in lowered:
            score -= 5

        return max(0, min(25, score))

    @staticmethod
    def _score_usage(usage_count: int) -> int:
        """Score based on how many tests rely on the locator (0 - 10)."""
        if usage_count >= 10:
            return 10
        if usage_count >= 5:
            return 8
        if usage_count >= 2:
            return 6
        if usage_count == 1:
            return 4
        return 2

    @staticmethod
    def _recommend(
        locator: LocatorRecord,
        factors: HealthFactors,
        status: HealthStatus,
    ) -> list[str]:
        """Build advisory messages rule by rule."""
        if status is HealthStatus.EXCELLENT:
            return [EXCELLENT_MESSAGE]

        recommendations = []
        expression = locator.expression

        if factors.type_score < 20:
            if locator.locator_type is LocatorType.XPATH:
                recommendations.append(
                    "Consider using role-based or test-id locators instead of XPath"
                )
            else:
                recommendations.append(
                    "Prefer role, label, or test-id locators for better reliability"
                )

        if factors.complexity_score < 20:
            recommendations.append(
                "Simplify the locator - avoid nth-child, complex selectors, or long chains"
            )

        if factors.stability_score < 15:
            if locator.usage_count == 0:
                recommendations.append(
                    "This locator is unused - consider removing or verifying it works"
                )
            else:
                recommendations.append("Add test-id or role attributes to improve stability")

        if factors.usage_score < 5:
            recommendations.append(
                "This locator is only used in a few tests - verify it's still needed"
            )

        if locator.locator_type is LocatorType.XPATH and _is_complex_xpath(expression):
            recommendations.append(
                "Avoid descendant (//), predicate ([...]) and attribute (@) XPath steps; "
                "anchor on an accessible role or data-testid instead"
            )

        if "nth-child" in expression:
            recommendations.append(
                "Replace nth-child with more stable selectors (role, test-id, or data attributes)"
            )

        if len(expression) > 100:
            recommendations.append(
                "Break down this long locator into smaller, more maintainable parts"
            )

        return recommendations or [ACCEPTABLE_MESSAGE]


def _is_complex_xpath(expression: str) -> bool:
    return "//" in expression or "[" in expression or "@" in expression


_default_scorer = HealthScorer()


def score_locator(locator: LocatorRecord) -> HealthScore:
    """Score one locator with the default scorer."""
    return _default_scorer.score(locator)


def score_locators(locators: Iterable[LocatorRecord]) -> list[ScoredLocator]:
    """Score every locator in a snapshot, preserving input order."""
    scored = [ScoredLocator(locator=loc, health=_default_scorer.score(loc)) for loc in locators]
    logger.debug("Scored %d locators", len(scored))
    return scored


def summarize_health(locators: Iterable[LocatorRecord]) -> HealthSummary:
    """Count locators per tier and collect the critical ones."""
    scored = score_locators(locators)
    counts = {status: 0 for status in HealthStatus}
    for item in scored:
        counts[item.health.status] += 1

    average = sum(item.health.total for item in scored) / len(scored) if scored else 0.0

    return HealthSummary(
        total_locators=len(scored),
        status_counts=counts,
        average_score=average,
        critical=[item for item in scored if item.health.status is HealthStatus.CRITICAL],
    )


def filter_scored(
    scored: Iterable[ScoredLocator],
    status: HealthStatus | None = None,
    locator_type: LocatorType | None = None,
    search: str | None = None,
) -> list[ScoredLocator]:
    """Filter scored locators by tier, type and a free-text query.

    The query matches case-insensitively against the expression and the
    names of the tests using the locator.
    """
    query = search.lower() if search else None
    results = []

    for item in scored:
        if status and item.health.status is not status:
            continue
        if locator_type and item.locator.locator_type is not locator_type:
            continue
        if query and query not in item.locator.expression.lower() and not any(
            query in test.lower() for test in item.locator.used_in_tests
        ):
            continue
        results.append(item)

    return results
