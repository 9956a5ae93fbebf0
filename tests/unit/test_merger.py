"""Tests for import chain merging.

Each output layer has its own strategy:
- colors: independent keys, later wins
- tokenColors: append, equal scope sets replaced in place
- semanticTokenColors: bare replaces, record deep-merges
"""

from __future__ import annotations

import pytest

from sassy.core.errors import MergeConflictError
from sassy.core.ir import ColorLiteral, LayerKind, Reference, SemanticStyle
from sassy.core.merger import deep_merge, merge_chain, merge_layer, merge_semantic_value


class TestMetadata:
    def test_last_writer_wins(self, document_factory) -> None:
        base = document_factory("base", config={"name": "Base", "type": "dark"})
        override = document_factory("override", config={"name": "Override"})
        effective = merge_chain([base, override])
        assert effective.name == "Override"
        assert effective.type == "dark"
        assert effective.sources == ("base", "override")
        assert effective.origin == "base"

    def test_custom_deep_merges(self, document_factory) -> None:
        base = document_factory("base", config={"custom": {"a": {"x": 1, "y": 2}}})
        override = document_factory("override", config={"custom": {"a": {"y": 3}}})
        assert merge_chain([base, override]).custom == {"a": {"x": 1, "y": 3}}

    def test_empty_chain(self) -> None:
        with pytest.raises(ValueError):
            merge_chain([])


class TestVariables:
    def test_later_overrides(self, document_factory) -> None:
        base = document_factory("base", vars={"fg": "#111", "bg": "#000"})
        override = document_factory("override", vars={"fg": "#222"})
        effective = merge_chain([base, override])
        assert effective.variables == {
            "fg": ColorLiteral(text="#222"),
            "bg": ColorLiteral(text="#000"),
        }
        assert effective.definitions["vars.fg"] == "override"
        assert effective.definitions["vars.bg"] == "base"

    def test_group_versus_leaf(self, document_factory) -> None:
        base = document_factory("base", vars={"std": {"fg": "#111"}})
        override = document_factory("override", vars={"std": "#222"})
        with pytest.raises(MergeConflictError, match="vars.std"):
            merge_chain([base, override])

    def test_leaf_versus_group(self, document_factory) -> None:
        base = document_factory("base", palette={"ink": "#111"})
        override = document_factory("override", palette={"ink": {"dark": "#222"}})
        with pytest.raises(MergeConflictError):
            merge_chain([base, override])


class TestColorsLayer:
    def test_precedence(self, document_factory) -> None:
        base = document_factory("base", colors={"editor.background": "#111111"})
        override = document_factory("override", colors={"editor.background": "#222222"})
        effective = merge_chain([base, override])
        assert len(effective.colors) == 1
        assert effective.colors[0].value == ColorLiteral(text="#222222")
        assert effective.colors[0].origin == "override"

    def test_independent_keys_accumulate_in_order(self, document_factory) -> None:
        base = document_factory("base", colors={"a": "#111", "b": "#222"})
        override = document_factory("override", colors={"c": "#333", "a": "#444"})
        effective = merge_chain([base, override])
        assert [e.key for e in effective.colors] == ["a", "b", "c"]

    def test_shape_conflict(self, document_factory) -> None:
        base = document_factory("base", colors={"editor": "#111"})
        override = document_factory("override", colors={"editor.background": "#222"})
        with pytest.raises(MergeConflictError):
            merge_chain([base, override])


class TestTokenColorsLayer:
    def test_append(self, document_factory) -> None:
        base = document_factory("base", tokenColors=[{"scope": "comment"}])
        override = document_factory("override", tokenColors=[{"scope": "string"}])
        rules = merge_chain([base, override]).token_colors
        assert [r.scopes for r in rules] == [("comment",), ("string",)]

    def test_equal_scope_set_replaces_in_place(self, document_factory) -> None:
        base = document_factory(
            "base",
            tokenColors=[
                {"scope": "keyword, storage", "settings": {"foreground": "#111"}},
                {"scope": "comment"},
            ],
        )
        override = document_factory(
            "override",
            tokenColors=[{"scope": ["storage", "keyword"], "settings": {"foreground": "#222"}}],
        )
        rules = merge_chain([base, override]).token_colors
        assert len(rules) == 2
        assert rules[0].settings.foreground == ColorLiteral(text="#222")
        assert rules[0].origin == "override"
        assert rules[1].scopes == ("comment",)

    def test_same_document_duplicates_are_kept(self, document_factory) -> None:
        doc = document_factory("doc", tokenColors=[{"scope": "a"}, {"scope": "a"}])
        assert len(merge_chain([doc]).token_colors) == 2

    def test_each_earlier_rule_replaced_once(self, document_factory) -> None:
        base = document_factory("base", tokenColors=[{"scope": "a"}])
        override = document_factory(
            "override",
            tokenColors=[
                {"scope": "a", "settings": {"fontStyle": "bold"}},
                {"scope": "a", "settings": {"fontStyle": "italic"}},
            ],
        )
        rules = merge_chain([base, override]).token_colors
        assert [r.settings.font_style for r in rules] == ["bold", "italic"]


class TestSemanticLayer:
    def test_record_deep_merges(self, document_factory) -> None:
        base = document_factory(
            "base",
            semanticTokenColors={
                "variable.declaration": {"foreground": "#aaa", "fontStyle": "italic"}
            },
        )
        override = document_factory(
            "override", semanticTokenColors={"variable.declaration": {"fontStyle": "bold"}}
        )
        entry = merge_chain([base, override]).semantic_token_colors[0]
        assert entry.value == SemanticStyle(foreground=ColorLiteral(text="#aaa"), font_style="bold")

    def test_bare_replaces(self, document_factory) -> None:
        base = document_factory("base", semanticTokenColors={"string:escape": "#ffd93d"})
        override = document_factory("override", semanticTokenColors={"string:escape": "#000000"})
        entry = merge_chain([base, override]).semantic_token_colors[0]
        assert entry.value == ColorLiteral(text="#000000")

    def test_bare_replaces_record(self) -> None:
        earlier = SemanticStyle(foreground=ColorLiteral(text="#aaa"), font_style="italic")
        assert merge_semantic_value(earlier, Reference(name="x")) == Reference(name="x")

    def test_record_over_bare_promotes(self) -> None:
        merged = merge_semantic_value(ColorLiteral(text="#aaa"), SemanticStyle(font_style="bold"))
        assert merged == SemanticStyle(foreground=ColorLiteral(text="#aaa"), font_style="bold")

    def test_null_removes(self) -> None:
        assert merge_semantic_value(ColorLiteral(text="#aaa"), None) is None


class TestHelpers:
    def test_merge_layer_dispatch(self, document_factory) -> None:
        base = document_factory("base", colors={"a": "#111"})
        override = document_factory("override", colors={"a": "#222"})
        merged = merge_layer(LayerKind.COLORS, base.colors, override.colors, "override")
        assert merged == override.colors

    def test_deep_merge_conflict(self) -> None:
        with pytest.raises(MergeConflictError, match="config.custom.a"):
            deep_merge({"a": {"x": 1}}, {"a": 2}, path="config.custom")

    def test_inputs_are_not_modified(self, document_factory) -> None:
        base = document_factory("base", colors={"a": "#111"})
        override = document_factory("override", colors={"a": "#222"})
        merge_chain([base, override])
        assert base.colors[0].value == ColorLiteral(text="#111")
