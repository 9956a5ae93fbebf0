"""
Color expression types for Sassy IR.

Every color-valued slot in a theme source (variables, palette entries,
UI colors, token foregrounds, semantic foregrounds) holds one of these.

Supports:
- Hex literals: #fff, #ffff, #336699, #33669980
- Named colors: tomato, rebeccapurple
- Numbers: 0.5, 40%, 210
- References: $std.fg, $(std.fg), ${std.fg}, $palette.ink, $$ink
- Function calls: alpha($std.fg, 0.5), fade(css(tomato), 0.4), hsl(210, 50%, 40%)
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Reference namespaces
# ---------------------------------------------------------------------------


class RefNamespace(StrEnum):
    """Explicit namespace a reference is pinned to."""

    PALETTE = "palette"


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class ColorLiteral(BaseModel):
    """A hex color literal, kept as written (without validation)."""

    text: str = Field(description="Hex text including the leading '#'")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.text


class NameLiteral(BaseModel):
    """A bare word, looked up as a CSS color name."""

    name: str = Field(description="Color name")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class NumberLiteral(BaseModel):
    """A numeric argument, optionally written as a percentage."""

    value: float = Field(description="Numeric value as written")
    percent: bool = Field(default=False, description="True when written with a trailing '%'")

    model_config = ConfigDict(frozen=True)

    @property
    def fraction(self) -> float:
        """Value as a 0..1 fraction when written as a percentage."""
        return self.value / 100 if self.percent else self.value

    def __str__(self) -> str:
        text = f"{self.value:g}"
        return f"{text}%" if self.percent else text


class Reference(BaseModel):
    """
    Reference to a variable, palette entry or layer key.

    Examples:
        - Reference(name="std.fg") → $std.fg
        - Reference(name="ink", namespace=RefNamespace.PALETTE) → $palette.ink
    """

    name: str = Field(description="Dot-joined name being referenced")
    namespace: RefNamespace | None = Field(
        default=None, description="Pinned namespace, None for scoped lookup"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def qualified(self) -> str:
        if self.namespace is None:
            return self.name
        return f"{self.namespace}.{self.name}"

    def __str__(self) -> str:
        return f"${self.qualified}"


class FuncCall(BaseModel):
    """
    Function call: name(arg1, arg2, ...).

    Built-in functions:
    - Alpha: alpha(c, f), fade(c, f), solidify(c, f)
    - Construction: rgb(r, g, b), rgba(r, g, b, a), hsl(h, s, l), hsla(h, s, l, a), css(name)
    - Adjustment: lighten(c, f), darken(c, f), invert(c), mix(a, b, f?)
    """

    name: str = Field(description="Function name")
    args: list[Expr] = Field(default_factory=list, description="Arguments")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.name}({args_str})"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = ColorLiteral | NameLiteral | NumberLiteral | Reference | FuncCall

# Rebuild models for recursive forward references
FuncCall.model_rebuild()


def iter_references(expr: Expr) -> list[Reference]:
    """Collect references in evaluation order (arguments left to right)."""
    if isinstance(expr, Reference):
        return [expr]
    if isinstance(expr, FuncCall):
        refs: list[Reference] = []
        for arg in expr.args:
            refs.extend(iter_references(arg))
        return refs
    return []
