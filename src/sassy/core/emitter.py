"""
Theme artifact emission.

Serializes a ResolvedDocument into the editor's color theme structure:

    {
      "$schema": ...,              (when set)
      "name": ..., "type": ...,
      "semanticHighlighting": ...,  (when set)
      ...custom root fields...,
      "colors": {flat key: hex},
      "tokenColors": [{name?, scope, settings: {foreground?, fontStyle?}}],
      "semanticTokenColors": {selector: hex | {foreground?, fontStyle?}}
    }

Declaration order is kept. Values that were not provided are omitted;
an explicit transparent color is emitted as ``#00000000``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import DuplicateKeyError, ErrorContext
from .ir import (
    ColorValue,
    ResolvedDocument,
    ResolvedSemanticStyle,
    ResolvedTokenColorRule,
    TokenColorRule,
)

RESERVED_KEYS = (
    "$schema",
    "name",
    "type",
    "semanticHighlighting",
    "colors",
    "tokenColors",
    "semanticTokenColors",
)


def _put(
    target: dict[str, Any], key: str, value: Any, *, section: str, document: str | None
) -> None:
    if key in target:
        where = f"{section}.{key}" if section else key
        raise DuplicateKeyError(
            f"Output key '{where}' would be written twice",
            ErrorContext(document=document, key=where),
        )
    target[key] = value


def _style(foreground: ColorValue | None, font_style: str | None) -> dict[str, str]:
    settings: dict[str, str] = {}
    if foreground is not None:
        settings["foreground"] = foreground.hex
    if font_style is not None:
        settings["fontStyle"] = font_style
    return settings


def scope_field(rule: TokenColorRule | ResolvedTokenColorRule) -> str | list[str] | None:
    """The rule's ``scope`` value: as written when known, else one string or a list."""
    if isinstance(rule.written_scope, str):
        return rule.written_scope
    if rule.written_scope is not None:
        return list(rule.written_scope)
    if len(rule.scopes) == 1:
        return rule.scopes[0]
    return list(rule.scopes) or None


def _emit_rule(rule: ResolvedTokenColorRule) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if rule.name is not None:
        out["name"] = rule.name
    scope = scope_field(rule)
    if scope is not None:
        out["scope"] = scope
    out["settings"] = _style(rule.settings.foreground, rule.settings.font_style)
    return out


def emit(document: ResolvedDocument) -> dict[str, Any]:
    """Build the output artifact as an ordered dict.

    Raises:
        DuplicateKeyError: If two entries collapse to the same output key.
    """
    origin = document.sources[0] if document.sources else None
    out: dict[str, Any] = {}

    if document.schema_url is not None:
        out["$schema"] = document.schema_url
    if document.name is not None:
        out["name"] = document.name
    if document.type is not None:
        out["type"] = str(document.type)
    if document.semantic_highlighting is not None:
        out["semanticHighlighting"] = document.semantic_highlighting
    for key, value in document.custom.items():
        if key in RESERVED_KEYS:
            raise DuplicateKeyError(
                f"Custom field '{key}' collides with a theme field of the same name",
                ErrorContext(document=origin, key=f"config.custom.{key}"),
            )
        _put(out, key, value, section="", document=origin)

    colors: dict[str, str] = {}
    for key, color in document.colors:
        if color is not None:
            _put(colors, key, color.hex, section="colors", document=origin)
    _put(out, "colors", colors, section="", document=origin)

    _put(
        out,
        "tokenColors",
        [_emit_rule(rule) for rule in document.token_colors],
        section="",
        document=origin,
    )

    semantic: dict[str, Any] = {}
    for selector, value in document.semantic_token_colors:
        if isinstance(value, ResolvedSemanticStyle):
            style = _style(value.foreground, value.font_style)
            if style:
                _put(semantic, selector, style, section="semanticTokenColors", document=origin)
        elif value is not None:
            _put(semantic, selector, value.hex, section="semanticTokenColors", document=origin)
    if semantic or document.semantic_token_colors:
        _put(out, "semanticTokenColors", semantic, section="", document=origin)

    return out


def emit_json(artifact: Mapping[str, Any], *, indent: int = 2) -> str:
    """Render an emitted artifact as JSON text (trailing newline included)."""
    return json.dumps(artifact, indent=indent, ensure_ascii=False) + "\n"
