"""atmention: inline @-mention input for terminal UIs."""

# Components (re-exported from components package)
from atmention.components import (
    BadgeRenderer,
    DefaultMentionTheme,
    MentionInput,
    MentionMenu,
    MentionTheme,
    RowRenderer,
    Span,
    SuggestionRenderer,
    TextField,
    render_badge,
    render_row,
    render_suggestion,
)

# Settings
from atmention.config import MentionSettings, load_settings

# Headless core
from atmention.controller import InputState, MentionController, QueryState
from atmention.filtering import filter_options, limit_suggestions, unselected_options
from atmention.geometry import (
    MIRRORED_STYLE_PROPERTIES,
    CaretPoint,
    FieldStyle,
    MeasurableField,
    Rect,
    caret_offset_from_anchor,
    get_caret_coordinates,
)

# Keybindings
from atmention.keybindings import (
    DEFAULT_MENTION_KEYBINDINGS,
    MentionAction,
    MentionKeybindingsManager,
    get_mention_keybindings,
    set_mention_keybindings,
)

# Keyboard and mouse input
from atmention.keys import Key, KeyId, is_key_release, matches_key, parse_key
from atmention.listeners import ListenerScope
from atmention.mouse import MouseEvent, parse_mouse_event
from atmention.options import MentionOption, coerce_options, resolve_selected
from atmention.placement import (
    DEFAULT_MENU_HEIGHT,
    DEFAULT_MENU_WIDTH,
    MENU_GAP,
    MENU_MARGIN,
    MIN_MENU_HEIGHT,
    MenuGeometry,
    place_menu,
)
from atmention.scheduler import MeasurementScheduler
from atmention.selection import SelectionController

# Input buffering
from atmention.stdin_buffer import StdinBuffer

# Terminal interface and implementations
from atmention.terminal import ProcessTerminal, Terminal
from atmention.tokenizer import TriggerMatch, find_trigger

# Core TUI
from atmention.tui import (
    CURSOR_MARKER,
    TUI,
    Component,
    Container,
    Focusable,
    OverlayHandle,
    OverlayOptions,
    is_focusable,
)

# Utilities
from atmention.utils import truncate_to_width, visible_width

__all__ = [
    # Components
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
    # Settings
    "MentionSettings",
    "load_settings",
    # Headless core
    "InputState",
    "MentionController",
    "QueryState",
    "filter_options",
    "limit_suggestions",
    "unselected_options",
    "MIRRORED_STYLE_PROPERTIES",
    "CaretPoint",
    "FieldStyle",
    "MeasurableField",
    "Rect",
    "caret_offset_from_anchor",
    "get_caret_coordinates",
    "ListenerScope",
    "MentionOption",
    "coerce_options",
    "resolve_selected",
    "DEFAULT_MENU_HEIGHT",
    "DEFAULT_MENU_WIDTH",
    "MENU_GAP",
    "MENU_MARGIN",
    "MIN_MENU_HEIGHT",
    "MenuGeometry",
    "place_menu",
    "MeasurementScheduler",
    "SelectionController",
    "TriggerMatch",
    "find_trigger",
    # Keybindings
    "DEFAULT_MENTION_KEYBINDINGS",
    "MentionAction",
    "MentionKeybindingsManager",
    "get_mention_keybindings",
    "set_mention_keybindings",
    # Keys and mouse
    "Key",
    "KeyId",
    "is_key_release",
    "matches_key",
    "parse_key",
    "MouseEvent",
    "parse_mouse_event",
    # Stdin buffer
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # TUI core
    "CURSOR_MARKER",
    "Component",
    "Container",
    "Focusable",
    "OverlayHandle",
    "OverlayOptions",
    "TUI",
    "is_focusable",
    # Utilities
    "truncate_to_width",
    "visible_width",
]
