"""Locator module - health scoring and duplicate detection."""

from .duplicates import DuplicateClusterer, are_likely_duplicates, find_duplicates
from .health import HealthScorer, filter_scored, score_locator, score_locators, summarize_health

__all__ = [
    "DuplicateClusterer",
    "HealthScorer",
    "are_likely_duplicates",
    "filter_scored",
    "find_duplicates",
    "score_locator",
    "score_locators",
    "summarize_health",
]
