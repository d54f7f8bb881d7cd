"""Keyboard input parsing and matching for terminal applications.

Provides ``matches_key`` which checks whether raw terminal input corresponds
to a named key identifier such as ``"ctrl+a"`` or ``"alt+left"``, and
``parse_key`` which goes the other way.  Legacy xterm/VT sequences are
understood, as is the ``CSI <codepoint> ; <modifier> u`` form sent by
terminals with an enhanced keyboard protocol enabled.
"""

from __future__ import annotations

import re

KeyId = str


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

CODEPOINTS: dict[str, int] = {
    "escape": 27,
    "tab": 9,
    "enter": 13,
    "space": 32,
    "backspace": 127,
}

# Final byte of ``CSI 1 ; <mod> <final>`` / ``CSI <final>`` sequences
_ARROW_FINALS: dict[str, str] = {
    "up": "A",
    "down": "B",
    "right": "C",
    "left": "D",
    "home": "H",
    "end": "F",
}

# Numeric parameter of ``CSI <n> ; <mod> ~`` sequences
_TILDE_NUMBERS: dict[str, tuple[int, ...]] = {
    "home": (1, 7),
    "delete": (3,),
    "end": (4, 8),
    "pageUp": (5,),
    "pageDown": (6,),
}

_UNMODIFIED_SEQUENCES: dict[str, tuple[str, ...]] = {
    "escape": ("\x1b",),
    "enter": ("\r", "\n"),
    "tab": ("\t",),
    "space": (" ",),
    "backspace": ("\x7f", "\x08"),
}

_ALT_SEQUENCES: dict[str, tuple[str, ...]] = {
    "escape": ("\x1b\x1b",),
    "enter": ("\x1b\r",),
    "backspace": ("\x1b\x7f", "\x1b\x08"),
    # Many terminals report alt+arrows as word motions
    "left": ("\x1bb",),
    "right": ("\x1bf",),
}

_CSI_U_RE = re.compile(r"^\x1b\[(\d+)(?::\d+)*(?:;(\d+)(?::(\d+))?)?u$")
_CSI_MOD_RE = re.compile(r"^\x1b\[1;(\d+)(?::\d+)?([A-DHF])$")
_CSI_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+)(?::\d+)?)?~$")
_RELEASE_RE = re.compile(r"^\x1b\[[\d;]*:3[u~A-DHF]$")


# ---------------------------------------------------------------------------
# Key id parsing
# ---------------------------------------------------------------------------


def parse_key_id(key_id: str) -> tuple[str, int] | None:
    """Split ``"ctrl+shift+a"`` into ``("a", modifier_bits)``."""
    if not key_id:
        return None
    parts = key_id.split("+")
    # "ctrl++" style ids bind the plus key itself
    if key_id.endswith("++"):
        parts = key_id[:-2].split("+") + ["+"]
    key = parts[-1]
    bits = 0
    for name in parts[:-1]:
        bit = MODIFIERS.get(name.lower())
        if bit is None:
            return None
        bits |= bit
    if key == "esc":
        key = "escape"
    elif key == "return":
        key = "enter"
    return key, bits


def raw_ctrl_char(key: str) -> str | None:
    """Return the control character produced by ``ctrl+<key>`` in legacy mode."""
    if len(key) != 1:
        return None
    lower = key.lower()
    if "a" <= lower <= "z":
        return chr(ord(lower) - ord("a") + 1)
    specials = {"[": "\x1b", "\\": "\x1c", "]": "\x1d", "^": "\x1e", "_": "\x1f", "-": "\x1f"}
    return specials.get(key)


def is_key_release(data: str) -> bool:
    """Return ``True`` for key-release events of the enhanced protocol."""
    return bool(_RELEASE_RE.match(data))


# ---------------------------------------------------------------------------
# matches_key
# ---------------------------------------------------------------------------


def _key_codepoint(key: str) -> int | None:
    if key in CODEPOINTS:
        return CODEPOINTS[key]
    if len(key) == 1:
        return ord(key.lower())
    return None


def _matches_csi_u(data: str, key: str, bits: int) -> bool:
    m = _CSI_U_RE.match(data)
    if m is None:
        return False
    cp = _key_codepoint(key)
    if cp is None:
        return False
    got_cp = int(m.group(1))
    got_bits = (int(m.group(2)) - 1) if m.group(2) else 0
    if key == "enter" and got_cp == 57414:  # keypad enter
        got_cp = 13
    return got_cp == cp and got_bits == bits


def _matches_csi_navigation(data: str, key: str, bits: int) -> bool:
    final = _ARROW_FINALS.get(key)
    if final is not None:
        if bits == 0 and data in (f"\x1b[{final}", f"\x1bO{final}"):
            return True
        m = _CSI_MOD_RE.match(data)
        if m is not None and m.group(2) == final and int(m.group(1)) - 1 == bits:
            return True

    numbers = _TILDE_NUMBERS.get(key)
    if numbers is not None:
        m = _CSI_TILDE_RE.match(data)
        if m is not None and int(m.group(1)) in numbers:
            got_bits = (int(m.group(2)) - 1) if m.group(2) else 0
            return got_bits == bits
    return False


def matches_key(data: str, key_id: KeyId) -> bool:
    """Return ``True`` if *data* (raw terminal input) matches the named *key_id*."""
    parsed = parse_key_id(key_id)
    if parsed is None or not data:
        return False
    key, bits = parsed

    if _matches_csi_u(data, key, bits):
        return True
    if _matches_csi_navigation(data, key, bits):
        return True

    has_ctrl = bool(bits & MODIFIERS["ctrl"])
    has_shift = bool(bits & MODIFIERS["shift"])
    has_alt = bool(bits & MODIFIERS["alt"])

    if bits == 0:
        if key in _UNMODIFIED_SEQUENCES:
            return data in _UNMODIFIED_SEQUENCES[key]
        return len(key) == 1 and data == key

    if has_alt and not has_ctrl and not has_shift:
        if key in _ALT_SEQUENCES:
            return data in _ALT_SEQUENCES[key]
        return len(key) == 1 and data == "\x1b" + key

    if has_ctrl and not has_shift:
        if key == "backspace" and not has_alt:
            return data == "\x08"
        ctrl = raw_ctrl_char(key)
        if ctrl is None:
            return False
        return data == ("\x1b" + ctrl if has_alt else ctrl)

    if has_shift and not has_ctrl and not has_alt:
        if key == "tab":
            return data == "\x1b[Z"
        return len(key) == 1 and key.isalpha() and data == key.upper()

    return False


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------

_PARSE_ORDER: tuple[str, ...] = (
    "escape",
    "enter",
    "tab",
    "backspace",
    "delete",
    "home",
    "end",
    "pageUp",
    "pageDown",
    "up",
    "down",
    "left",
    "right",
)


def parse_key(data: str) -> str | None:
    """Parse raw terminal input and return its key identifier, or ``None``.

    Plain printable characters are returned as-is.
    """
    if not data:
        return None

    for prefix in ("", "shift+", "alt+", "ctrl+", "ctrl+alt+"):
        for key in _PARSE_ORDER:
            if matches_key(data, prefix + key):
                return prefix + key

    if len(data) == 1:
        cp = ord(data)
        if 1 <= cp <= 26:
            return f"ctrl+{chr(cp + ord('a') - 1)}"
        if cp >= 32 and cp != 127:
            return data
        return None

    if len(data) == 2 and data[0] == "\x1b" and data[1].isprintable():
        return f"alt+{data[1]}"

    m = _CSI_U_RE.match(data)
    if m is not None:
        cp = int(m.group(1))
        bits = (int(m.group(2)) - 1) if m.group(2) else 0
        mods = [name for name, bit in (("ctrl", 4), ("alt", 2), ("shift", 1)) if bits & bit]
        if 32 < cp < 127:
            return "+".join(mods + [chr(cp)])
    return None
