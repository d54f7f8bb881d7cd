"""Terminal text utilities: ANSI handling, width measurement and slicing.

Widths are measured per grapheme cluster so that combining marks, emoji
sequences and wide CJK characters occupy the same number of cells the
terminal will give them.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth


# ---------------------------------------------------------------------------
# Grapheme segmenter
# ---------------------------------------------------------------------------


class _GraphemeSegmenter:
    """Thin wrapper around ``grapheme.graphemes``."""

    @staticmethod
    def segment(text: str) -> list[str]:
        return list(grapheme.graphemes(text))


def get_segmenter() -> _GraphemeSegmenter:
    """Return a grapheme segmenter instance."""
    return _GraphemeSegmenter()


# ---------------------------------------------------------------------------
# Escape sequence patterns
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"  # CSI
    r"|\x1b\]8;;[^\x07]*\x07"  # OSC 8
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"  # APC
)

_PUNCTUATION_REGEX = re.compile(r"[(){}\[\]<>.,;:'\"!?\+\-=*/\\|&%\^$#@~`]")

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Width measurement
# ---------------------------------------------------------------------------


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Control and format characters are zero width, emoji sequences are two
    cells wide, everything else is delegated to ``wcwidth``.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tones, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    ANSI and APC sequences are ignored and tabs count as three cells.
    """
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if not stripped:
        return 0
    stripped = stripped.replace("\t", "   ")

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# Escape sequence extraction
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Extract an escape sequence starting at *pos* in *text*.

    Returns ``(code, length)`` or ``None`` when *pos* does not start a
    CSI (SGR / erase), OSC or APC sequence.
    """
    if pos + 1 >= len(text) or text[pos] != "\x1b":
        return None

    next_ch = text[pos + 1]

    if next_ch == "[":
        i = pos + 2
        while i < len(text):
            ch = text[i]
            if ch in "mGKHJ":
                return text[pos : i + 1], i + 1 - pos
            if not (ch.isdigit() or ch == ";"):
                break
            i += 1
        return None

    if next_ch in "]_":
        i = pos + 2
        while i < len(text):
            ch = text[i]
            if ch == "\x07":
                return text[pos : i + 1], i + 1 - pos
            if ch == "\x1b" and i + 1 < len(text) and text[i + 1] == "\\":
                return text[pos : i + 2], i + 2 - pos
            i += 1
        return None

    return None


def _tokens(text: str) -> list[tuple[str, bool]]:
    """Split *text* into ``(token, is_escape)`` pairs of escapes and graphemes."""
    tokens: list[tuple[str, bool]] = []
    plain_start = 0
    i = 0
    while i < len(text):
        extracted = extract_ansi_code(text, i)
        if extracted is None:
            i += 1
            continue
        if plain_start < i:
            tokens.extend((g, False) for g in grapheme.graphemes(text[plain_start:i]))
        code, length = extracted
        tokens.append((code, True))
        i += length
        plain_start = i
    if plain_start < len(text):
        tokens.extend((g, False) for g in grapheme.graphemes(text[plain_start:]))
    return tokens


# ---------------------------------------------------------------------------
# Truncation and padding
# ---------------------------------------------------------------------------


def _take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* fitting in *max_cols* cells, escapes kept."""
    result: list[str] = []
    cols = 0
    for token, is_escape in _tokens(text):
        if is_escape:
            result.append(token)
            continue
        w = grapheme_width(token)
        if cols + w > max_cols:
            break
        result.append(token)
        cols += w
    return "".join(result)


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    The ellipsis counts towards the width. With *pad* the result is
    right-padded with spaces to exactly *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return _take_columns(ellipsis, max_width)

    result = _take_columns(text, target_width) + ellipsis
    if pad:
        result += " " * max(0, max_width - visible_width(result))
    return result


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces up to *width* visible columns."""
    return text + " " * max(0, width - visible_width(text))


# ---------------------------------------------------------------------------
# Overlay compositing
# ---------------------------------------------------------------------------


def extract_segments(
    line: str,
    before_end: int,
    after_start: int,
    after_len: int,
) -> tuple[str, str]:
    """Extract the segments of *line* around a region being replaced.

    * ``before``: columns ``[0, before_end)``, space-padded when the line is
      shorter so whatever follows starts exactly at *before_end*.
    * ``after``: columns ``[after_start, after_start + after_len)``.

    Wide characters that straddle a boundary are replaced by spaces.
    """
    before_parts: list[str] = []
    after_parts: list[str] = []
    before_width = 0
    after_end = after_start + after_len
    col = 0

    for token, is_escape in _tokens(line):
        if is_escape:
            if col < before_end:
                before_parts.append(token)
            elif after_start <= col < after_end:
                after_parts.append(token)
            continue

        w = grapheme_width(token)
        char_end = col + w

        if col < before_end:
            if char_end <= before_end:
                before_parts.append(token)
                before_width += w
            else:
                before_parts.append(" " * (before_end - col))
                before_width += before_end - col

        if char_end > after_start and col < after_end:
            if col < after_start or char_end > after_end:
                overlap = min(char_end, after_end) - max(col, after_start)
                after_parts.append(" " * overlap)
            else:
                after_parts.append(token)

        col = char_end

    if before_width < before_end:
        before_parts.append(" " * (before_end - before_width))

    return "".join(before_parts), "".join(after_parts)


# ---------------------------------------------------------------------------
# Character classification
# ---------------------------------------------------------------------------


def is_whitespace_char(char: str) -> bool:
    """Return ``True`` if *char* is a whitespace character."""
    return char in (" ", "\t", "\n", "\r", "\f", "\v")


def is_punctuation_char(char: str) -> bool:
    """Return ``True`` if *char* is a punctuation character."""
    return bool(_PUNCTUATION_REGEX.match(char))


def is_printable(data: str) -> bool:
    """``True`` for plain text input: non-empty and free of C0/C1 controls."""
    return bool(data) and not any(
        ord(ch) < 32 or ord(ch) == 0x7F or 0x80 <= ord(ch) <= 0x9F for ch in data
    )
