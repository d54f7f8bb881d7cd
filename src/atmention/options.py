"""Mention option catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MentionOption:
    """One candidate of the catalog, identified by ``value``."""

    value: str
    label: str
    icon: str | None = None

    @property
    def display_label(self) -> str:
        return self.label or self.value


def _coerce_one(raw: object) -> MentionOption | None:
    if isinstance(raw, MentionOption):
        return raw
    if isinstance(raw, str):
        return MentionOption(value=raw, label=raw)
    if isinstance(raw, Mapping):
        value = raw.get("value", raw.get("id"))
        if value is None:
            return None
        value = str(value)
        label = raw.get("label")
        icon = raw.get("icon")
        return MentionOption(
            value=value,
            label=str(label) if label is not None else value,
            icon=str(icon) if icon is not None else None,
        )
    return None


def coerce_options(raw: Iterable[object] | None) -> list[MentionOption]:
    """Build a catalog from options, dicts or bare strings.

    Entries that cannot be turned into an option, and repeated values, are
    skipped with a warning.  ``None`` is an empty catalog.
    """
    if raw is None:
        return []

    options: list[MentionOption] = []
    seen: set[str] = set()
    for entry in raw:
        option = _coerce_one(entry)
        if option is None:
            logger.warning("Skipping invalid mention option: %r", entry)
            continue
        if option.value in seen:
            logger.warning("Skipping duplicate mention option: %s", option.value)
            continue
        seen.add(option.value)
        options.append(option)
    return options


def resolve_selected(options: Sequence[MentionOption], selected: Sequence[str]) -> list[MentionOption]:
    """Return the options for *selected* in selection order.

    Ids missing from the catalog are skipped; hosts may pass values that are
    not synced with the catalog yet.
    """
    by_value = {option.value: option for option in options}
    resolved: list[MentionOption] = []
    for value in selected:
        option = by_value.get(value)
        if option is None:
            logger.debug("Selected value %r has no catalog entry", value)
            continue
        resolved.append(option)
    return resolved
