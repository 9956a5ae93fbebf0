"""
Theme document types for Sassy IR.

A ThemeDocument is one parsed source file. Merging an import chain yields
an EffectiveDocument of the same shape, and resolving that yields a
ResolvedDocument where every expression has become a ColorValue.

Three output layers:
- colors: flat UI chrome map (key -> color)
- tokenColors: ordered syntax-highlighting rules (first match wins)
- semanticTokenColors: selector -> bare color or style record
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .colors import ColorValue
from .expressions import Expr

# =============================================================================
# Enums
# =============================================================================


class ThemeType(StrEnum):
    """Base type of the theme."""

    DARK = "dark"
    LIGHT = "light"


class LayerKind(StrEnum):
    """Output layers, each with its own merge strategy."""

    COLORS = "colors"
    TOKEN_COLORS = "tokenColors"
    SEMANTIC_TOKEN_COLORS = "semanticTokenColors"


# =============================================================================
# Layer entries (expression form)
# =============================================================================


class ColorEntry(BaseModel):
    """One UI color: a flat dot-joined key and its expression."""

    key: str = Field(description="Dot-joined key, e.g. editor.background")
    value: Expr | None = Field(default=None, description="Expression, None when not provided")
    origin: str = Field(default="<memory>", description="Document that declared the value")

    model_config = ConfigDict(frozen=True)


class TokenSettings(BaseModel):
    """Settings block of a tokenColors rule."""

    foreground: Expr | None = Field(default=None, description="Foreground color expression")
    font_style: str | None = Field(default=None, description="fontStyle text, e.g. 'bold italic'")

    model_config = ConfigDict(frozen=True)


class TokenColorRule(BaseModel):
    """
    One syntax-highlighting rule.

    Position in the rule list is significant: the editor applies the first
    rule whose selector matches a token.
    """

    name: str | None = Field(default=None, description="Optional label")
    scopes: tuple[str, ...] = Field(description="Scope selectors in declaration order")
    written_scope: str | tuple[str, ...] | None = Field(
        default=None, description="scope as it appeared in the source, emitted unchanged"
    )
    settings: TokenSettings = Field(default_factory=TokenSettings)
    origin: str = Field(default="<memory>", description="Document that declared the rule")

    model_config = ConfigDict(frozen=True)

    @property
    def scope_set(self) -> frozenset[str]:
        return frozenset(self.scopes)

    @property
    def label(self) -> str:
        """Human-readable identity used in findings."""
        if self.name:
            return f"'{self.name}'"
        return f"[{', '.join(self.scopes)}]"


class SemanticStyle(BaseModel):
    """Full semantic token style record."""

    foreground: Expr | None = Field(default=None, description="Foreground color expression")
    font_style: str | None = Field(default=None, description="fontStyle text")

    model_config = ConfigDict(frozen=True)


class SemanticEntry(BaseModel):
    """
    One semanticTokenColors entry.

    ``value`` is a bare color expression (foreground shorthand), a
    SemanticStyle record, or None when not provided.
    """

    selector: str = Field(description="Selector key as written")
    value: Expr | SemanticStyle | None = Field(default=None)
    origin: str = Field(default="<memory>")

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Semantic selectors
# =============================================================================

_SELECTOR_RE = re.compile(r"^(\*|[A-Za-z][\w-]*)((?:\.[A-Za-z][\w-]*)*)(?::([A-Za-z][\w-]*))?$")


class SemanticSelector(BaseModel):
    """Parsed ``type[.modifier]*[:language]`` selector."""

    token_type: str = Field(description="Token type, or '*' for any")
    modifiers: tuple[str, ...] = Field(default=())
    language: str | None = Field(default=None)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, text: str) -> SemanticSelector:
        """
        Parse a selector string.

        Raises:
            ValueError: If the selector has an empty or malformed segment.
        """
        match = _SELECTOR_RE.match(text.strip())
        if not match:
            raise ValueError(f"Malformed semantic selector: {text!r}")
        token_type, modifier_text, language = match.groups()
        modifiers = tuple(m for m in modifier_text.split(".") if m)
        return cls(token_type=token_type, modifiers=modifiers, language=language)

    def __str__(self) -> str:
        text = self.token_type + "".join(f".{m}" for m in self.modifiers)
        if self.language:
            text += f":{self.language}"
        return text


# =============================================================================
# Documents
# =============================================================================


class ThemeDocument(BaseModel):
    """
    One parsed theme source.

    Invariant: variable and palette names are unique within one document.
    """

    name: str | None = Field(default=None, description="Theme display name")
    type: ThemeType | None = Field(default=None, description="Base type (dark/light)")
    semantic_highlighting: bool | None = Field(default=None)
    schema_url: str | None = Field(default=None, description="Emitted as $schema")
    custom: dict[str, Any] = Field(
        default_factory=dict, description="Extra root fields copied to the output"
    )
    variables: dict[str, Expr] = Field(default_factory=dict, description="Flat variable map")
    palette: dict[str, Expr] = Field(default_factory=dict, description="Flat palette map")
    colors: tuple[ColorEntry, ...] = Field(default=())
    token_colors: tuple[TokenColorRule, ...] = Field(default=())
    semantic_token_colors: tuple[SemanticEntry, ...] = Field(default=())
    imports: tuple[str, ...] = Field(default=(), description="Import references, in order")
    origin: str = Field(default="<memory>", description="Identity used in errors")
    imported_via: tuple[str, ...] = Field(
        default=(), description="Documents that imported this one, outermost first"
    )

    model_config = ConfigDict(frozen=True)


class EffectiveDocument(BaseModel):
    """
    Result of merging an import chain. Same shape as ThemeDocument, with
    layers already combined and no imports left to apply.
    """

    name: str | None = None
    type: ThemeType | None = None
    semantic_highlighting: bool | None = None
    schema_url: str | None = None
    custom: dict[str, Any] = Field(default_factory=dict)
    variables: dict[str, Expr] = Field(default_factory=dict)
    palette: dict[str, Expr] = Field(default_factory=dict)
    colors: tuple[ColorEntry, ...] = Field(default=())
    token_colors: tuple[TokenColorRule, ...] = Field(default=())
    semantic_token_colors: tuple[SemanticEntry, ...] = Field(default=())
    sources: tuple[str, ...] = Field(default=(), description="Origins of the merged chain")
    definitions: dict[str, str] = Field(
        default_factory=dict,
        description="Qualified vars/palette name -> document that last defined it",
    )
    import_chains: dict[str, tuple[str, ...]] = Field(
        default_factory=dict,
        description="Imported document origin -> documents that imported it",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def origin(self) -> str:
        return self.sources[0] if self.sources else "<memory>"

    def as_document(self) -> ThemeDocument:
        """View this effective document as an import-free source document."""
        return ThemeDocument(
            name=self.name,
            type=self.type,
            semantic_highlighting=self.semantic_highlighting,
            schema_url=self.schema_url,
            custom=self.custom,
            variables=self.variables,
            palette=self.palette,
            colors=self.colors,
            token_colors=self.token_colors,
            semantic_token_colors=self.semantic_token_colors,
            origin=self.origin,
        )


# =============================================================================
# Resolved form
# =============================================================================


class ResolvedTokenSettings(BaseModel):
    foreground: ColorValue | None = None
    font_style: str | None = None

    model_config = ConfigDict(frozen=True)


class ResolvedTokenColorRule(BaseModel):
    name: str | None = None
    scopes: tuple[str, ...]
    written_scope: str | tuple[str, ...] | None = None
    settings: ResolvedTokenSettings = Field(default_factory=ResolvedTokenSettings)

    model_config = ConfigDict(frozen=True)


class ResolvedSemanticStyle(BaseModel):
    foreground: ColorValue | None = None
    font_style: str | None = None

    model_config = ConfigDict(frozen=True)


class ResolvedDocument(BaseModel):
    """
    EffectiveDocument with every expression replaced by its ColorValue.

    Immutable once produced; lint and emit read it concurrently.
    """

    name: str | None = None
    type: ThemeType | None = None
    semantic_highlighting: bool | None = None
    schema_url: str | None = None
    custom: dict[str, Any] = Field(default_factory=dict)
    variables: dict[str, ColorValue] = Field(default_factory=dict)
    palette: dict[str, ColorValue] = Field(default_factory=dict)
    colors: tuple[tuple[str, ColorValue | None], ...] = Field(default=())
    token_colors: tuple[ResolvedTokenColorRule, ...] = Field(default=())
    semantic_token_colors: tuple[
        tuple[str, ColorValue | ResolvedSemanticStyle | None], ...
    ] = Field(default=())
    sources: tuple[str, ...] = Field(default=())

    model_config = ConfigDict(frozen=True)
