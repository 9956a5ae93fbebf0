"""
Sassy Internal Representation (IR).

Pydantic models for theme sources, expressions, resolved colors and
lint findings. All models are frozen.
"""

from .colors import ColorValue
from .document import (
    ColorEntry,
    EffectiveDocument,
    LayerKind,
    ResolvedDocument,
    ResolvedSemanticStyle,
    ResolvedTokenColorRule,
    ResolvedTokenSettings,
    SemanticEntry,
    SemanticSelector,
    SemanticStyle,
    ThemeDocument,
    ThemeType,
    TokenColorRule,
    TokenSettings,
)
from .expressions import (
    ColorLiteral,
    Expr,
    FuncCall,
    NameLiteral,
    NumberLiteral,
    Reference,
    RefNamespace,
    iter_references,
)
from .findings import FindingKind, LintFinding, Severity

__all__ = [
    # Colors
    "ColorValue",
    # Expressions
    "ColorLiteral",
    "Expr",
    "FuncCall",
    "NameLiteral",
    "NumberLiteral",
    "Reference",
    "RefNamespace",
    "iter_references",
    # Documents
    "ColorEntry",
    "EffectiveDocument",
    "LayerKind",
    "ResolvedDocument",
    "ResolvedSemanticStyle",
    "ResolvedTokenColorRule",
    "ResolvedTokenSettings",
    "SemanticEntry",
    "SemanticSelector",
    "SemanticStyle",
    "ThemeDocument",
    "ThemeType",
    "TokenColorRule",
    "TokenSettings",
    # Findings
    "FindingKind",
    "LintFinding",
    "Severity",
]
