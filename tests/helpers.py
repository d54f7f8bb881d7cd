"""Shared fixtures data for component tests."""

from __future__ import annotations

from atmention.components.renderers import DefaultMentionTheme


def _plain(text: str) -> str:
    return text


def plain_theme() -> DefaultMentionTheme:
    """A theme that adds no escape codes, so rendered lines compare as text."""
    return DefaultMentionTheme(
        badge=_plain,
        suggestion=_plain,
        row=_plain,
        row_active=_plain,
        search=_plain,
        empty=_plain,
        placeholder=_plain,
    )


OPTIONS = [
    {"value": "alice", "label": "Alice Liddell"},
    {"value": "bob", "label": "Bob Builder"},
    {"value": "carol", "label": "Carol Danvers"},
]
