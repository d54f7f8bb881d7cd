"""Tests for option coercion and candidate filtering."""

from __future__ import annotations

import logging

import pytest

from atmention.filtering import filter_options, limit_suggestions, matches_query, unselected_options
from atmention.options import MentionOption, coerce_options, resolve_selected

CATALOG = [
    MentionOption("alice", "Alice Liddell"),
    MentionOption("bob", "Bob Builder"),
    MentionOption("carol", "Carol Danvers"),
    MentionOption("dave", "Dave"),
]


class TestCoerceOptions:
    def test_none_is_empty(self) -> None:
        assert coerce_options(None) == []

    def test_strings_and_dicts(self) -> None:
        options = coerce_options(["x", {"value": "y", "label": "Why"}, {"id": 3}])
        assert options == [
            MentionOption("x", "x"),
            MentionOption("y", "Why"),
            MentionOption("3", "3"),
        ]

    def test_icon(self) -> None:
        (option,) = coerce_options([{"value": "a", "label": "A", "icon": "*"}])
        assert option.icon == "*"

    def test_invalid_entries_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="atmention.options"):
            options = coerce_options([{"label": "no id"}, 42, "ok"])
        assert [o.value for o in options] == ["ok"]
        assert "invalid mention option" in caplog.text

    def test_duplicates_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="atmention.options"):
            options = coerce_options(["a", {"value": "a", "label": "Other"}])
        assert options == [MentionOption("a", "a")]
        assert "duplicate" in caplog.text

    def test_display_label_falls_back_to_value(self) -> None:
        assert MentionOption("v", "").display_label == "v"


class TestResolveSelected:
    def test_selection_order(self) -> None:
        assert [o.value for o in resolve_selected(CATALOG, ["carol", "alice"])] == ["carol", "alice"]

    def test_unknown_ids_skipped(self) -> None:
        assert [o.value for o in resolve_selected(CATALOG, ["ghost", "bob"])] == ["bob"]


class TestFiltering:
    def test_unselected_excludes_selected(self) -> None:
        assert [o.value for o in unselected_options(CATALOG, ["bob"])] == ["alice", "carol", "dave"]

    def test_unselected_with_no_options(self) -> None:
        assert unselected_options(None, []) == []

    def test_empty_query_returns_all_unselected(self) -> None:
        assert filter_options(CATALOG, ["alice"], "") == CATALOG[1:]

    def test_case_insensitive_label_match(self) -> None:
        assert [o.value for o in filter_options(CATALOG, [], "builder")] == ["bob"]

    def test_value_match(self) -> None:
        assert matches_query(MentionOption("xyz-1", "Label"), "XYZ")

    def test_substring_not_prefix(self) -> None:
        assert [o.value for o in filter_options(CATALOG, [], "ar")] == ["carol"]

    def test_catalog_order_kept(self) -> None:
        assert [o.value for o in filter_options(CATALOG, [], "a")] == ["alice", "carol", "dave"]

    def test_selected_never_matches(self) -> None:
        assert filter_options(CATALOG, ["carol"], "carol") == []

    def test_no_match(self) -> None:
        assert filter_options(CATALOG, [], "zzz") == []


class TestLimitSuggestions:
    def test_limit(self) -> None:
        assert limit_suggestions(CATALOG, 2) == CATALOG[:2]

    def test_none_means_all(self) -> None:
        assert limit_suggestions(CATALOG, None) == CATALOG

    def test_zero_and_negative(self) -> None:
        assert limit_suggestions(CATALOG, 0) == []
        assert limit_suggestions(CATALOG, -3) == []
