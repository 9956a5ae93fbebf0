"""
Sassy - a compiler for editor color themes.

Turns a theme source built from variables, palettes and color functions
into the flat three-layer color theme an editor consumes.
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import get_version
from .core import ir
from .core.compiler import CompileResult, compile_theme, lint, proof, resolve_trace
from .core.errors import (
    ColorTypeError,
    CyclicReferenceError,
    DuplicateKeyError,
    MergeConflictError,
    ParseError,
    SassyError,
    UnresolvedReferenceError,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "CompileResult",
    "compile_theme",
    "lint",
    "proof",
    "resolve_trace",
    "SassyError",
    "ParseError",
    "UnresolvedReferenceError",
    "CyclicReferenceError",
    "ColorTypeError",
    "DuplicateKeyError",
    "MergeConflictError",
]
