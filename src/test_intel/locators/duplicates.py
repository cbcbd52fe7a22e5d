"""Duplicate locator detection - cluster near-identical locators for merging."""

import logging
from itertools import combinations
from typing import Sequence

from ..config import DuplicateConfig
from ..models import DuplicateGroup, LocatorRecord, LocatorType
from .similarity import normalize_expression, string_similarity

logger = logging.getLogger(__name__)


class DuplicateClusterer:
    """Group locators that probably target the same UI element."""

    # Priority order for canonical selection (higher = better)
    TYPE_PRIORITY = {
        LocatorType.ROLE: 7,
        LocatorType.LABEL: 6,
        LocatorType.TEST_ID: 5,
        LocatorType.PLACEHOLDER: 4,
        LocatorType.TEXT: 3,
        LocatorType.CSS: 2,
        LocatorType.XPATH: 1,
    }

    def __init__(
        self,
        similarity_threshold: float = 80.0,
        cross_type_floor: float = 70.0,
        cross_type_penalty: float = 0.8,
    ):
        self.similarity_threshold = similarity_threshold
        self.cross_type_floor = cross_type_floor
        self.cross_type_penalty = cross_type_penalty

    @classmethod
    def from_config(cls, config: DuplicateConfig) -> "DuplicateClusterer":
        return cls(
            similarity_threshold=config.similarity_threshold,
            cross_type_floor=config.cross_type_floor,
            cross_type_penalty=config.cross_type_penalty,
        )

    def similarity(self, a: LocatorRecord, b: LocatorRecord) -> float:
        """Similarity of two locators on a 0 - 100 scale (symmetric)."""
        if a.locator_type is b.locator_type:
            if a.expression == b.expression:
                return 100.0
            return string_similarity(a.expression, b.expression)

        # Different strategies can still point at the same element
        similarity = string_similarity(
            normalize_expression(a.expression),
            normalize_expression(b.expression),
        )
        if similarity > self.cross_type_floor:
            return similarity * self.cross_type_penalty
        return 0.0

    def are_likely_duplicates(
        self,
        a: LocatorRecord,
        b: LocatorRecord,
        threshold: float | None = None,
    ) -> bool:
        """Check whether two locators clear the duplicate threshold."""
        limit = self.similarity_threshold if threshold is None else threshold
        return self.similarity(a, b) >= limit

    def find_duplicates(self, locators: Sequence[LocatorRecord]) -> list[DuplicateGroup]:
        """
        Partition locators into duplicate groups.

        Each unplaced locator seeds a group and pulls in every later unplaced
        locator whose similarity to the seed clears the threshold. Locators are
        scanned in a canonical order so that permuting the input never changes
        group membership.

        Returns:
            Groups with at least two members, in scan order
        """
        ordered = sorted(locators, key=self._scan_key)
        placed: set[int] = set()
        groups: list[DuplicateGroup] = []

        for i, seed in enumerate(ordered):
            if i in placed:
                continue

            members = [seed]
            for j in range(i + 1, len(ordered)):
                if j in placed:
                    continue
                if self.similarity(seed, ordered[j]) >= self.similarity_threshold:
                    members.append(ordered[j])
                    placed.add(j)

            if len(members) < 2:
                continue

            placed.add(i)
            canonical = self.select_canonical(members)
            groups.append(DuplicateGroup(
                id=f"group-{len(groups)}",
                members=members,
                similarity=self.group_similarity(members),
                canonical=canonical,
                rationale=self._rationale(members, canonical),
            ))

        logger.debug("Found %d duplicate groups among %d locators", len(groups), len(ordered))
        return groups

    def group_similarity(self, members: Sequence[LocatorRecord]) -> float:
        """Mean pairwise similarity across a group."""
        if len(members) < 2:
            return 100.0
        scores = [self.similarity(a, b) for a, b in combinations(members, 2)]
        return sum(scores) / len(scores)

    def select_canonical(self, members: Sequence[LocatorRecord]) -> LocatorRecord:
        """Pick the most reliable type, then the most used locator."""
        return max(
            members,
            key=lambda loc: (self.priority(loc), loc.usage_count),
        )

    def priority(self, locator: LocatorRecord) -> int:
        return self.TYPE_PRIORITY.get(locator.locator_type, 0)

    def _scan_key(self, locator: LocatorRecord) -> tuple:
        # Strongest candidates seed groups first
        return (
            -self.priority(locator),
            -locator.usage_count,
            locator.locator_type.value,
            locator.expression,
            tuple(sorted(locator.used_in_tests)),
        )

    def _rationale(self, members: Sequence[LocatorRecord], canonical: LocatorRecord) -> str:
        """Explain why the canonical locator was chosen."""
        types = {m.locator_type for m in members}
        others = [m for m in members if m is not canonical]

        if len(types) == 1:
            return (
                f"All {len(members)} locators use the same {canonical.locator_type.value} "
                "strategy and are near-identical. Use the one with highest test coverage."
            )

        best_other_priority = max(self.priority(m) for m in others)
        if self.priority(canonical) > best_other_priority:
            other_types = sorted({m.locator_type.value for m in others})
            return (
                f"Recommended locator uses {canonical.locator_type.value}-based selection, "
                f"which is more reliable than {' or '.join(other_types)}."
            )

        tied = [m for m in others if self.priority(m) == self.priority(canonical)]
        if canonical.usage_count > max(m.usage_count for m in tied):
            return (
                f"Recommended locator is used in more tests ({canonical.usage_count}), "
                "indicating better stability."
            )

        return "Recommended locator has the best type and usage combination."


_default_clusterer = DuplicateClusterer()


def find_duplicates(locators: Sequence[LocatorRecord]) -> list[DuplicateGroup]:
    """Cluster locators with the default thresholds."""
    return _default_clusterer.find_duplicates(locators)


def are_likely_duplicates(
    a: LocatorRecord,
    b: LocatorRecord,
    threshold: float = 80.0,
) -> bool:
    """Check whether two locators are similar enough to merge."""
    return _default_clusterer.are_likely_duplicates(a, b, threshold)
