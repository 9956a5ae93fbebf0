"""Tests for theme source parsing and dot-key flattening."""

from __future__ import annotations

import pytest

from sassy.core.errors import DuplicateKeyError, ParseError
from sassy.core.flatten import flatten_mapping, is_group_of
from sassy.core.ir import (
    ColorLiteral,
    FuncCall,
    Reference,
    SemanticStyle,
    ThemeType,
)
from sassy.core.source import parse_document


class TestFlatten:
    def test_nested_and_dotted_are_equivalent(self) -> None:
        nested = flatten_mapping({"editor": {"background": 1, "foreground": 2}})
        dotted = flatten_mapping({"editor.background": 1, "editor.foreground": 2})
        assert nested == dotted == {"editor.background": 1, "editor.foreground": 2}

    def test_mixed_forms_keep_declaration_order(self) -> None:
        flat = flatten_mapping({"a": {"b.c": 1}, "a.d": 2, "e": 3})
        assert list(flat) == ["a.b.c", "a.d", "e"]

    def test_collision_raises(self) -> None:
        with pytest.raises(DuplicateKeyError) as exc_info:
            flatten_mapping(
                {"editor": {"background": 1}, "editor.background": 2},
                document="theme.yaml",
                section="colors",
            )
        assert exc_info.value.context is not None
        assert exc_info.value.context.key == "colors.editor.background"
        assert "theme.yaml" in str(exc_info.value)

    def test_deep_nesting(self) -> None:
        data: dict = {"leaf": 1}
        for i in range(2000):
            data = {f"n{i}": data}
        flat = flatten_mapping(data)
        assert len(flat) == 1
        assert next(iter(flat)).endswith(".leaf")

    def test_is_group_of(self) -> None:
        assert is_group_of("editor", "editor.background")
        assert not is_group_of("editor", "editorCursor.foreground")
        assert not is_group_of("editor", "editor")


class TestParseDocument:
    def test_sections(self) -> None:
        doc = parse_document(
            {
                "config": {"name": "T", "type": "light", "$schema": "vscode://x"},
                "vars": {"std": {"fg": "#fff"}},
                "palette": {"ink": "$std.fg"},
                "theme": {
                    "colors": {"editor": {"background": "alpha($$ink, 0.5)"}},
                    "tokenColors": [{"scope": "comment", "settings": {"fontStyle": "italic"}}],
                    "semanticTokenColors": {"variable": "#000"},
                },
            },
            origin="t.yaml",
        )
        assert doc.name == "T"
        assert doc.type == ThemeType.LIGHT
        assert doc.schema_url == "vscode://x"
        assert doc.variables == {"std.fg": ColorLiteral(text="#fff")}
        assert doc.palette == {"ink": Reference(name="std.fg")}
        assert doc.colors[0].key == "editor.background"
        assert isinstance(doc.colors[0].value, FuncCall)
        assert doc.colors[0].origin == "t.yaml"
        assert doc.token_colors[0].scopes == ("comment",)
        assert doc.token_colors[0].settings.foreground is None
        assert doc.semantic_token_colors[0].value == ColorLiteral(text="#000")
        assert doc.origin == "t.yaml"

    def test_comma_separated_scope(self) -> None:
        doc = parse_document({"theme": {"tokenColors": [{"scope": "a, b ,c"}]}})
        assert doc.token_colors[0].scopes == ("a", "b", "c")
        assert doc.token_colors[0].written_scope == "a, b ,c"

    def test_scope_list(self) -> None:
        doc = parse_document({"theme": {"tokenColors": [{"name": "n", "scope": ["a", "b"]}]}})
        assert doc.token_colors[0].scopes == ("a", "b")
        assert doc.token_colors[0].label == "'n'"

    def test_semantic_style_record(self) -> None:
        doc = parse_document(
            {
                "theme": {
                    "semanticTokenColors": {
                        "variable.declaration": {"foreground": "#aaa", "fontStyle": "bold"}
                    }
                }
            }
        )
        value = doc.semantic_token_colors[0].value
        assert value == SemanticStyle(foreground=ColorLiteral(text="#aaa"), font_style="bold")

    def test_semantic_unknown_field(self) -> None:
        with pytest.raises(ParseError, match="Unknown semantic style field"):
            parse_document({"theme": {"semanticTokenColors": {"x": {"background": "#000"}}}})

    def test_null_values(self) -> None:
        doc = parse_document(
            {
                "vars": {"fg": None},
                "theme": {"colors": {"editor.background": None}},
            }
        )
        assert doc.variables == {}
        assert doc.colors[0].value is None

    def test_imports_string(self) -> None:
        doc = parse_document({"config": {"import": "./base.yaml"}})
        assert doc.imports == ("./base.yaml",)

    def test_imports_sections(self) -> None:
        doc = parse_document({"config": {"import": {"ui": "./ui", "syntax": ["./a", "./b"]}}})
        assert doc.imports == ("./ui", "./a", "./b")

    def test_imports_invalid(self) -> None:
        with pytest.raises(ParseError, match="'import'"):
            parse_document({"config": {"import": 3}})

    def test_semantic_highlighting_in_custom(self) -> None:
        doc = parse_document({"config": {"custom": {"semanticHighlighting": True, "x": 1}}})
        assert doc.semantic_highlighting is True
        assert doc.custom == {"x": 1}

    def test_plain_editor_theme(self) -> None:
        doc = parse_document(
            {
                "name": "Plain",
                "type": "dark",
                "colors": {"editor.background": "#111111"},
                "tokenColors": [],
            }
        )
        assert doc.name == "Plain"
        assert doc.type == ThemeType.DARK
        assert doc.colors[0].value == ColorLiteral(text="#111111")


class TestParseErrors:
    def test_not_a_mapping(self) -> None:
        with pytest.raises(ParseError, match="must be a mapping"):
            parse_document(["a"], origin="list.yaml")

    def test_unknown_type(self) -> None:
        with pytest.raises(ParseError, match="Unknown theme type"):
            parse_document({"config": {"type": "sepia"}})

    def test_bad_expression_names_key(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_document({"vars": {"fg": "fade($a,"}}, origin="bad.yaml")
        assert exc_info.value.context is not None
        assert exc_info.value.context.document == "bad.yaml"
        assert exc_info.value.context.key == "vars.fg"

    def test_non_string_expression(self) -> None:
        with pytest.raises(ParseError, match="Expected a color expression string"):
            parse_document({"vars": {"fg": 12}})

    def test_token_colors_must_be_list(self) -> None:
        with pytest.raises(ParseError, match="must be a list"):
            parse_document({"theme": {"tokenColors": {"scope": "a"}}})

    def test_flattened_duplicate(self) -> None:
        with pytest.raises(DuplicateKeyError):
            parse_document({"vars": {"std": {"fg": "#fff"}, "std.fg": "#000"}})
