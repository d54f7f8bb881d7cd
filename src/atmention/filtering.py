"""Candidate filtering: exclusion of selected values, then query match."""

from __future__ import annotations

from collections.abc import Sequence

from atmention.options import MentionOption


def unselected_options(
    options: Sequence[MentionOption] | None,
    selected: Sequence[str],
) -> list[MentionOption]:
    if not options:
        return []
    taken = set(selected)
    return [option for option in options if option.value not in taken]


def matches_query(option: MentionOption, query: str) -> bool:
    """Case-insensitive substring match on the label or the value."""
    q = query.lower()
    return q in option.display_label.lower() or q in option.value.lower()


def filter_options(
    options: Sequence[MentionOption] | None,
    selected: Sequence[str],
    query: str,
) -> list[MentionOption]:
    """Return the unselected options matching *query* in catalog order.

    There is no ranking; an empty query returns every unselected option.
    """
    candidates = unselected_options(options, selected)
    if not query:
        return candidates
    return [option for option in candidates if matches_query(option, query)]


def limit_suggestions(options: Sequence[MentionOption], limit: int | None) -> list[MentionOption]:
    if limit is None:
        return list(options)
    return list(options[: max(0, limit)])
