"""
Recursive descent parser for Sassy color expressions.

Grammar:
    expr        → func_call | reference | literal
    func_call   → IDENT "(" (expr ("," expr)*)? ")"
    reference   → REF
    literal     → HEX | NUMBER | IDENT
"""

from __future__ import annotations

from sassy.core.color_functions import is_hex
from sassy.core.expression_lang.tokenizer import (
    PALETTE_PREFIX,
    ExpressionTokenError,
    Token,
    TokenKind,
    tokenize,
)
from sassy.core.ir.expressions import (
    ColorLiteral,
    Expr,
    FuncCall,
    NameLiteral,
    NumberLiteral,
    Reference,
    RefNamespace,
)


class ExpressionParseError(Exception):
    """Error during expression parsing."""

    def __init__(self, message: str, pos: int = 0) -> None:
        super().__init__(message)
        self.pos = pos


class _Parser:
    """Recursive descent parser for expressions."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind) -> Token:
        tok = self.current
        if tok.kind != kind:
            raise ExpressionParseError(
                f"Expected {kind}, got {tok.kind} ({tok.value!r})",
                tok.pos,
            )
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    # -- Grammar rules --

    def parse_expr(self) -> Expr:
        """func_call | reference | literal"""
        tok = self.current

        if tok.kind == TokenKind.HEX:
            self.advance()
            if not is_hex(tok.value):
                raise ExpressionParseError(f"Invalid hex color: {tok.value!r}", tok.pos)
            return ColorLiteral(text=tok.value)

        if tok.kind == TokenKind.NUMBER:
            self.advance()
            return _parse_number(tok)

        if tok.kind == TokenKind.REF:
            self.advance()
            return _parse_reference(tok)

        if tok.kind == TokenKind.IDENT:
            # Look ahead for function call
            if self.peek(1).kind == TokenKind.LPAREN:
                return self._parse_func_call()
            self.advance()
            return NameLiteral(name=tok.value)

        raise ExpressionParseError(
            f"Unexpected token: {tok.kind} ({tok.value!r})",
            tok.pos,
        )

    def _parse_func_call(self) -> FuncCall:
        """IDENT '(' (expr (',' expr)*)? ')'"""
        name_tok = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.LPAREN)

        args: list[Expr] = []
        if self.current.kind != TokenKind.RPAREN:
            args.append(self.parse_expr())
            while self.match(TokenKind.COMMA):
                args.append(self.parse_expr())

        self.expect(TokenKind.RPAREN)
        return FuncCall(name=name_tok.value.lower(), args=args)


def _parse_number(tok: Token) -> NumberLiteral:
    text = tok.value
    percent = text.endswith("%")
    if percent:
        text = text[:-1]
    try:
        value = float(text)
    except ValueError as e:
        raise ExpressionParseError(f"Invalid number: {tok.value!r}", tok.pos) from e
    return NumberLiteral(value=value, percent=percent)


def _parse_reference(tok: Token) -> Reference:
    if tok.value.startswith(PALETTE_PREFIX):
        return Reference(name=tok.value[len(PALETTE_PREFIX) :], namespace=RefNamespace.PALETTE)
    return Reference(name=tok.value)


def parse_expr(source: str) -> Expr:
    """Parse an expression string into an AST.

    Args:
        source: Expression string (e.g., "fade($std.fg, 0.5)")

    Returns:
        Parsed expression AST.

    Raises:
        ExpressionParseError: If the expression is invalid.
    """
    try:
        tokens = tokenize(source)
    except ExpressionTokenError as e:
        raise ExpressionParseError(str(e), e.pos) from e

    if tokens[0].kind == TokenKind.EOF:
        raise ExpressionParseError("Empty expression", 0)

    parser = _Parser(tokens)
    expr = parser.parse_expr()

    # Ensure all tokens consumed
    if parser.current.kind != TokenKind.EOF:
        raise ExpressionParseError(
            f"Unexpected token after expression: {parser.current.value!r}",
            parser.current.pos,
        )

    return expr
