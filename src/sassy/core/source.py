"""
Theme source parsing.

Turns one raw mapping (as loaded from YAML or JSON) into a ThemeDocument.
Expression strings are parsed here so later stages only see ASTs.

Source shape:

    config:
      name: My Theme
      type: dark
      $schema: vscode://schemas/color-theme
      import: [./base.yaml]
      custom: {...}
    vars: {...}
    palette: {...}
    theme:
      colors: {...}
      tokenColors: [...]
      semanticTokenColors: {...}

A plain editor theme (``name``/``type``/``colors``/``tokenColors`` at the
root) is accepted too, so emitted artifacts can be compiled again.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .errors import ErrorContext, ParseError, make_parse_error
from .expression_lang import ExpressionParseError, parse_expr
from .flatten import flatten_mapping
from .ir import (
    ColorEntry,
    Expr,
    SemanticEntry,
    SemanticStyle,
    ThemeDocument,
    ThemeType,
    TokenColorRule,
    TokenSettings,
)

logger = logging.getLogger(__name__)

_LAYER_KEYS = ("colors", "tokenColors", "semanticTokenColors")
_STYLE_KEYS = {"foreground", "fontStyle"}


def parse_expression(text: Any, *, document: str, key: str) -> Expr:
    """Parse one color expression, attaching document context on failure."""
    if not isinstance(text, str):
        raise make_parse_error(
            f"Expected a color expression string, got {type(text).__name__} ({text!r})",
            document=document,
            key=key,
        )
    try:
        return parse_expr(text)
    except ExpressionParseError as e:
        raise make_parse_error(f"Invalid expression {text!r}: {e}", document, key) from e


def _require_mapping(value: Any, *, document: str, key: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise make_parse_error(
            f"'{key}' must be a mapping, got {type(value).__name__}", document, key
        )
    return value


def _parse_imports(value: Any, *, document: str) -> tuple[str, ...]:
    """Normalize ``import`` to an ordered tuple of references.

    Accepts a string, a list of strings, or a mapping of named sections
    whose values are strings or lists (applied in section order).
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Mapping):
        refs: list[str] = []
        for section, target in value.items():
            refs.extend(_parse_imports(target, document=f"{document} (import.{section})"))
        return tuple(refs)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise make_parse_error(
        "'import' must be a string, a list of strings, or a mapping of those",
        document,
        "config.import",
    )


def _parse_expr_map(value: Any, *, document: str, section: str) -> dict[str, Expr]:
    flat = flatten_mapping(
        _require_mapping(value, document=document, key=section),
        document=document,
        section=section,
    )
    result: dict[str, Expr] = {}
    for key, raw in flat.items():
        if raw is None:
            continue
        result[key] = parse_expression(raw, document=document, key=f"{section}.{key}")
    return result


def _parse_colors(value: Any, *, document: str) -> tuple[ColorEntry, ...]:
    flat = flatten_mapping(
        _require_mapping(value, document=document, key="colors"),
        document=document,
        section="colors",
    )
    entries = []
    for key, raw in flat.items():
        expr = None
        if raw is not None:
            expr = parse_expression(raw, document=document, key=f"colors.{key}")
        entries.append(ColorEntry(key=key, value=expr, origin=document))
    return tuple(entries)


def _parse_scopes(value: Any, *, document: str, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        items = value
    else:
        raise make_parse_error("'scope' must be a string or a list of strings", document, key)
    return tuple(s.strip() for s in items if s.strip())


def _parse_font_style(value: Any, *, document: str, key: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise make_parse_error(f"'fontStyle' must be a string, got {value!r}", document, key)


def _parse_token_colors(value: Any, *, document: str) -> tuple[TokenColorRule, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise make_parse_error("'tokenColors' must be a list of rules", document, "tokenColors")

    rules = []
    for i, raw in enumerate(value):
        key = f"tokenColors[{i}]"
        if not isinstance(raw, Mapping):
            raise make_parse_error(f"{key} must be a mapping", document, key)
        name = raw.get("name")
        if name is not None and not isinstance(name, str):
            raise make_parse_error(f"{key}.name must be a string", document, key)
        settings_raw = _require_mapping(
            raw.get("settings"), document=document, key=f"{key}.settings"
        )
        foreground = settings_raw.get("foreground")
        settings = TokenSettings(
            foreground=None
            if foreground is None
            else parse_expression(foreground, document=document, key=f"{key}.settings.foreground"),
            font_style=_parse_font_style(
                settings_raw.get("fontStyle"), document=document, key=f"{key}.settings.fontStyle"
            ),
        )
        scope = raw.get("scope")
        rules.append(
            TokenColorRule(
                name=name,
                scopes=_parse_scopes(scope, document=document, key=f"{key}.scope"),
                written_scope=tuple(scope) if isinstance(scope, list) else scope,
                settings=settings,
                origin=document,
            )
        )
    return tuple(rules)


def _parse_semantic(value: Any, *, document: str) -> tuple[SemanticEntry, ...]:
    entries = []
    section = _require_mapping(value, document=document, key="semanticTokenColors")
    for selector, raw in section.items():
        key = f"semanticTokenColors.{selector}"
        semantic_value: Expr | SemanticStyle | None
        if raw is None:
            semantic_value = None
        elif isinstance(raw, Mapping):
            unknown = set(raw) - _STYLE_KEYS
            if unknown:
                raise make_parse_error(
                    f"Unknown semantic style field(s): {', '.join(sorted(unknown))}",
                    document,
                    key,
                )
            foreground = raw.get("foreground")
            semantic_value = SemanticStyle(
                foreground=None
                if foreground is None
                else parse_expression(foreground, document=document, key=f"{key}.foreground"),
                font_style=_parse_font_style(
                    raw.get("fontStyle"), document=document, key=f"{key}.fontStyle"
                ),
            )
        else:
            semantic_value = parse_expression(raw, document=document, key=key)
        entries.append(SemanticEntry(selector=str(selector), value=semantic_value, origin=document))
    return tuple(entries)


def parse_document(data: Any, origin: str = "<memory>") -> ThemeDocument:
    """Parse a raw source mapping into a ThemeDocument.

    Args:
        data: Mapping as produced by ``yaml.safe_load`` or ``json.load``
        origin: Identity of the document (usually its path)

    Returns:
        Parsed ThemeDocument.

    Raises:
        ParseError: If the document shape or an expression is malformed.
        DuplicateKeyError: If two nestings of a section flatten to the same key.
    """
    if not isinstance(data, Mapping):
        raise ParseError(
            f"Theme source must be a mapping, got {type(data).__name__}",
            ErrorContext(document=origin),
        )

    config = _require_mapping(data.get("config"), document=origin, key="config")
    theme = data.get("theme")
    if theme is None and any(k in data for k in _LAYER_KEYS):
        # Plain editor theme: layers and metadata live at the root.
        theme = data
        if not config:
            config = data
    theme = _require_mapping(theme, document=origin, key="theme")

    theme_type = config.get("type")
    if theme_type is not None:
        try:
            theme_type = ThemeType(theme_type)
        except ValueError as e:
            raise make_parse_error(
                f"Unknown theme type {theme_type!r} (expected 'dark' or 'light')",
                origin,
                "config.type",
            ) from e

    custom = dict(_require_mapping(config.get("custom"), document=origin, key="config.custom"))
    semantic_highlighting = config.get("semanticHighlighting", theme.get("semanticHighlighting"))
    if "semanticHighlighting" in custom:
        semantic_highlighting = custom.pop("semanticHighlighting")
    if semantic_highlighting is not None and not isinstance(semantic_highlighting, bool):
        raise make_parse_error(
            "'semanticHighlighting' must be a boolean", origin, "semanticHighlighting"
        )

    name = config.get("name")
    if name is not None and not isinstance(name, str):
        raise make_parse_error("'name' must be a string", origin, "config.name")

    document = ThemeDocument(
        name=name,
        type=theme_type,
        semantic_highlighting=semantic_highlighting,
        schema_url=config.get("$schema", config.get("schema")),
        custom=custom,
        variables=_parse_expr_map(data.get("vars"), document=origin, section="vars"),
        palette=_parse_expr_map(data.get("palette"), document=origin, section="palette"),
        colors=_parse_colors(theme.get("colors"), document=origin),
        token_colors=_parse_token_colors(theme.get("tokenColors"), document=origin),
        semantic_token_colors=_parse_semantic(theme.get("semanticTokenColors"), document=origin),
        imports=_parse_imports(config.get("import"), document=origin),
        origin=origin,
    )
    logger.debug(
        f"Parsed {origin}: {len(document.variables)} vars, {len(document.palette)} palette, "
        f"{len(document.colors)} colors, {len(document.token_colors)} rules, "
        f"{len(document.semantic_token_colors)} semantic entries"
    )
    return document
