"""String distance helpers used for tag autocompletion."""

from __future__ import annotations

import heapq
from collections.abc import Iterable


def edit_distance(source: str, destination: str) -> int:
    """Levenshtein distance between two strings.

    Args:
        source: String to transform.
        destination: Target string.

    Returns:
        Minimal number of single-character insertions, deletions and
        substitutions turning ``source`` into ``destination``.
    """
    return _distance_row(source, destination)[-1]


def prefix_edit_distance(prefix: str, destination: str) -> int:
    """Edit distance between ``prefix`` and the closest prefix of ``destination``.

    Typing ``"jav"`` is distance 0 from ``"javadoc"``, which is what makes this
    useful for ranking autocomplete candidates while the user is still typing.

    Args:
        prefix: Partial user input.
        destination: Full candidate.

    Returns:
        The minimal edit distance to any prefix of ``destination``.
    """
    return min(_distance_row(prefix, destination))


def _distance_row(source: str, destination: str) -> list[int]:
    """Last row of the Wagner-Fischer table.

    Entry ``j`` is the edit distance between ``source`` and
    ``destination[:j]``.
    """
    previous = list(range(len(destination) + 1))
    for i, source_char in enumerate(source, start=1):
        current = [i]
        for j, destination_char in enumerate(destination, start=1):
            substitution = previous[j - 1] + (source_char != destination_char)
            current.append(min(previous[j] + 1, current[j - 1] + 1, substitution))
        previous = current
    return previous


def close_matches(prefix: str, candidates: Iterable[str], limit: int) -> list[str]:
    """Rank candidates by how closely they match a typed prefix.

    Matching ignores case. Ties are broken alphabetically so the result is
    stable for a given candidate set.

    Args:
        prefix: Partial user input.
        candidates: Strings to choose from.
        limit: Maximum number of matches to return.

    Returns:
        Up to ``limit`` candidates, best match first.
    """
    if limit <= 0:
        return []

    needle = prefix.casefold()
    scored = (
        (prefix_edit_distance(needle, candidate.casefold()), candidate)
        for candidate in candidates
    )
    return [candidate for _, candidate in heapq.nsmallest(limit, scored)]
