"""Tests for theme artifact emission."""

from __future__ import annotations

import json

import pytest

from sassy.core.emitter import emit, emit_json
from sassy.core.errors import DuplicateKeyError
from sassy.core.ir import (
    ColorValue,
    ResolvedDocument,
    ResolvedSemanticStyle,
    ResolvedTokenColorRule,
    ResolvedTokenSettings,
    ThemeType,
)

RED = ColorValue(r=255, g=0, b=0)
HALF_BLUE = ColorValue(r=0, g=0, b=255, a=128)


class TestEmit:
    def test_root_field_order(self) -> None:
        doc = ResolvedDocument(
            name="T",
            type=ThemeType.DARK,
            semantic_highlighting=True,
            schema_url="vscode://schemas/color-theme",
            custom={"author": "me"},
        )
        artifact = emit(doc)
        assert list(artifact) == [
            "$schema",
            "name",
            "type",
            "semanticHighlighting",
            "author",
            "colors",
            "tokenColors",
        ]
        assert artifact["type"] == "dark"

    def test_colors(self) -> None:
        doc = ResolvedDocument(colors=(("editor.background", RED), ("x", None), ("y", HALF_BLUE)))
        assert emit(doc)["colors"] == {"editor.background": "#ff0000", "y": "#0000ff80"}

    def test_token_rules(self) -> None:
        doc = ResolvedDocument(
            token_colors=(
                ResolvedTokenColorRule(
                    name="Comment",
                    scopes=("comment",),
                    settings=ResolvedTokenSettings(foreground=RED, font_style="italic"),
                ),
                ResolvedTokenColorRule(scopes=("a", "b")),
            )
        )
        assert emit(doc)["tokenColors"] == [
            {
                "name": "Comment",
                "scope": "comment",
                "settings": {"foreground": "#ff0000", "fontStyle": "italic"},
            },
            {"scope": ["a", "b"], "settings": {}},
        ]

    def test_written_scope_is_kept(self) -> None:
        doc = ResolvedDocument(
            token_colors=(
                ResolvedTokenColorRule(scopes=("a", "b"), written_scope="a, b"),
                ResolvedTokenColorRule(scopes=("c",), written_scope=("c",)),
            )
        )
        assert [rule["scope"] for rule in emit(doc)["tokenColors"]] == ["a, b", ["c"]]

    def test_semantic(self) -> None:
        doc = ResolvedDocument(
            semantic_token_colors=(
                ("variable", RED),
                ("parameter", ResolvedSemanticStyle(foreground=HALF_BLUE, font_style="bold")),
                ("removed", None),
            )
        )
        assert emit(doc)["semanticTokenColors"] == {
            "variable": "#ff0000",
            "parameter": {"foreground": "#0000ff80", "fontStyle": "bold"},
        }

    def test_semantic_omitted_when_absent(self) -> None:
        assert "semanticTokenColors" not in emit(ResolvedDocument())

    def test_transparent_is_explicit(self) -> None:
        doc = ResolvedDocument(colors=(("x", ColorValue(r=0, g=0, b=0, a=0)),))
        assert emit(doc)["colors"] == {"x": "#00000000"}

    def test_duplicate_key(self) -> None:
        doc = ResolvedDocument(colors=(("a", RED), ("a", HALF_BLUE)))
        with pytest.raises(DuplicateKeyError, match="colors.a"):
            emit(doc)

    def test_custom_field_collision(self) -> None:
        doc = ResolvedDocument(custom={"colors": {}})
        with pytest.raises(DuplicateKeyError, match="collides"):
            emit(doc)


class TestEmitJson:
    def test_json_text(self) -> None:
        text = emit_json(emit(ResolvedDocument(name="Ünïcode", colors=(("a", RED),))))
        assert text.endswith("\n")
        assert "Ünïcode" in text
        assert json.loads(text)["colors"] == {"a": "#ff0000"}

    def test_deterministic(self) -> None:
        doc = ResolvedDocument(name="T", colors=(("b", RED), ("a", HALF_BLUE)))
        assert emit_json(emit(doc)) == emit_json(emit(doc))
        assert list(json.loads(emit_json(emit(doc)))["colors"]) == ["b", "a"]
