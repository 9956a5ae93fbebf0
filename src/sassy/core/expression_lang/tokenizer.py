"""
Tokenizer for Sassy color expressions.

Converts an expression string into a sequence of typed tokens.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto


class TokenKind(StrEnum):
    """Token types for the color expression language."""

    # Literals
    HEX = auto()
    NUMBER = auto()

    # Names
    IDENT = auto()
    REF = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the expression tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: int) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


# Number pattern: int or float, optional sign and percent suffix
_NUMBER_RE = re.compile(r"-?(\d+(\.\d*)?|\.\d+)%?")
# Identifier: letter or underscore followed by alphanumerics/underscores/dashes
_IDENT_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_-]*")
_HEX_RE = re.compile(r"#[0-9a-zA-Z]*")
_PATH = r"[\w-]+(?:\.[\w-]+)*"
# $$name (palette alias), $(path), ${path}, $path
_PALETTE_ALIAS_RE = re.compile(rf"\$\$({_PATH})")
_PARENS_REF_RE = re.compile(rf"\$\(\s*({_PATH})\s*\)")
_BRACES_REF_RE = re.compile(rf"\$\{{\s*({_PATH})\s*\}}")
_BARE_REF_RE = re.compile(rf"\$({_PATH})")

PALETTE_PREFIX = "palette."


class ExpressionTokenError(Exception):
    """Error during expression tokenization."""

    def __init__(self, message: str, pos: int) -> None:
        super().__init__(message)
        self.pos = pos


def _read_reference(source: str, i: int) -> tuple[int, Token]:
    """Read one reference starting at a '$'. Palette aliases become 'palette.<name>'."""
    m = _PALETTE_ALIAS_RE.match(source, i)
    if m:
        return m.end(), Token(TokenKind.REF, PALETTE_PREFIX + m.group(1), i)
    for pattern in (_PARENS_REF_RE, _BRACES_REF_RE, _BARE_REF_RE):
        m = pattern.match(source, i)
        if m:
            return m.end(), Token(TokenKind.REF, m.group(1), i)
    raise ExpressionTokenError(f"Malformed reference at position {i}", i)


def tokenize(source: str) -> list[Token]:
    """Tokenize an expression string into a list of tokens."""
    tokens: list[Token] = []
    i = 0
    n = len(source)

    single_map: dict[str, TokenKind] = {
        "(": TokenKind.LPAREN,
        ")": TokenKind.RPAREN,
        ",": TokenKind.COMMA,
    }

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in " \t\n\r":
            i += 1
            continue

        # References
        if c == "$":
            i, tok = _read_reference(source, i)
            tokens.append(tok)
            continue

        # Hex colors (validated by the parser)
        if c == "#":
            m = _HEX_RE.match(source, i)
            assert m is not None
            tokens.append(Token(TokenKind.HEX, m.group(0), i))
            i = m.end()
            continue

        # Numbers
        if c.isdigit() or c in ".-":
            m = _NUMBER_RE.match(source, i)
            if m is None:
                raise ExpressionTokenError(f"Unexpected character {c!r} at position {i}", i)
            tokens.append(Token(TokenKind.NUMBER, m.group(0), i))
            i = m.end()
            continue

        # Identifiers: function names and color names
        if c.isalpha() or c == "_":
            m = _IDENT_RE.match(source, i)
            assert m is not None
            tokens.append(Token(TokenKind.IDENT, m.group(0), i))
            i = m.end()
            continue

        if c in single_map:
            tokens.append(Token(single_map[c], c, i))
            i += 1
            continue

        raise ExpressionTokenError(f"Unexpected character {c!r} at position {i}", i)

    tokens.append(Token(TokenKind.EOF, "", n))
    return tokens
