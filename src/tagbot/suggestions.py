"""Autocomplete suggestions for tag ids."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from discord import app_commands

from tagbot.distances import close_matches

MAX_SUGGESTIONS = 5

Matcher = Callable[[str, Iterable[str], int], list[str]]


def suggest(
    fragment: str,
    known_ids: Iterable[str],
    limit: int = MAX_SUGGESTIONS,
    matcher: Matcher = close_matches,
) -> list[str]:
    """Suggest tag ids for a partially typed id.

    The matcher decides the order; this only enforces the cap.

    Args:
        fragment: What the user typed so far.
        known_ids: All existing tag ids.
        limit: Maximum number of suggestions.
        matcher: Ranking function, ``(fragment, candidates, limit) -> ids``.

    Returns:
        At most ``limit`` ids, in the matcher's order.
    """
    return list(matcher(fragment, known_ids, limit))[:limit]


def suggestion_choices(
    fragment: str,
    known_ids: Iterable[str],
    limit: int = MAX_SUGGESTIONS,
    matcher: Matcher = close_matches,
) -> list[app_commands.Choice[str]]:
    """Suggestions as autocomplete choices, labelled by the id itself."""
    return [
        app_commands.Choice(name=tag_id, value=tag_id)
        for tag_id in suggest(fragment, known_ids, limit, matcher)
    ]
