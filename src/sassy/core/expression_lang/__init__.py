"""
Sassy color expression language.

Tokenizer and parser for the expressions that appear in variable,
palette and layer values.

Usage:
    from sassy.core.expression_lang import parse_expr

    expr = parse_expr("fade($std.fg, 0.5)")
    # FuncCall(name="fade", args=[Reference(name="std.fg"), NumberLiteral(value=0.5)])
"""

from sassy.core.expression_lang.parser import ExpressionParseError, parse_expr

__all__ = ["ExpressionParseError", "parse_expr"]
