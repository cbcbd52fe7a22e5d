"""String similarity primitives for locator comparison."""

import re

_NORMALIZE_PATTERN = re.compile(r"""\s+|['".#]""")


def levenshtein_distance(s1: str, s2: str) -> int:
    """Minimum number of single-character edits turning s1 into s2."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            if c1 == c2:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current

    return previous[-1]


def string_similarity(s1: str, s2: str) -> float:
    """Levenshtein similarity normalized to 0 - 100 by the longer length."""
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 100.0
    return (longest - levenshtein_distance(s1, s2)) / longest * 100


def normalize_expression(expression: str) -> str:
    """Reduce a locator to the characters that identify its target.

    Lower-cases and strips whitespace, quotes and the ``.``/``#`` prefixes so
    that ``#Submit-Btn`` and ``"submit-btn"`` compare as equal.
    """
    return _NORMALIZE_PATTERN.sub("", expression.lower())
