"""String similarity for near-duplicate pattern detection.

Patterns are compared with the classic Levenshtein edit distance (unit cost
insert, delete and substitute) normalised by the longer string's length::

    similarity(a, b) = 1 - edit_distance(a, b) / max(len(a), len(b))

Both functions are pure and deterministic.
"""

from __future__ import annotations


def edit_distance(a: str, b: str) -> int:
    """Return the Levenshtein distance between *a* and *b*.

    Uses a rolling pair of rows over the shorter string, so memory is
    ``O(min(len(a), len(b)))`` while the result matches the full matrix.
    """
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalised similarity in ``[0, 1]``; two empty strings score 1.0."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / longest
