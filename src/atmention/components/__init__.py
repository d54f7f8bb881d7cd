"""Mention field components."""

from atmention.components.mention_input import MentionInput
from atmention.components.mention_menu import MentionMenu
from atmention.components.renderers import (
    BadgeRenderer,
    DefaultMentionTheme,
    MentionTheme,
    RowRenderer,
    Span,
    SuggestionRenderer,
    render_badge,
    render_row,
    render_suggestion,
)
from atmention.components.text_field import TextField

__all__ = [
    "BadgeRenderer",
    "DefaultMentionTheme",
    "MentionInput",
    "MentionMenu",
    "MentionTheme",
    "RowRenderer",
    "Span",
    "SuggestionRenderer",
    "TextField",
    "render_badge",
    "render_row",
    "render_suggestion",
]
