"""Stream request parsing: ``<formula>@<interval>`` into a FormulaRequest.

The formula body is handed to Python's own expression grammar (``ast``),
which owns tokenization, numeric literals, precedence and parentheses.
This module only adapts the resulting syntax tree to the Literal /
Variable / Binary shape and rejects everything else.

Literal values are read from the source text rather than from the float
``ast`` produces, so ``5.9`` becomes ``Decimal("5.9")`` exactly.
"""

from __future__ import annotations

import ast
from decimal import Decimal, InvalidOperation

from synthstream.exceptions import ParseError, UnsupportedOperatorError
from synthstream.formula.dependencies import extract
from synthstream.formula.expression import (
    Binary,
    FormulaRequest,
    Literal,
    Node,
    Operator,
    Variable,
)

# Kline intervals accepted by the upstream feed.
KLINE_INTERVALS = frozenset(
    {
        "1s", "1m", "3m", "5m", "15m", "30m",
        "1h", "2h", "4h", "6h", "8h", "12h",
        "1d", "3d", "1w", "1M",
    }
)

_BINARY_OPERATORS: dict[type[ast.operator], Operator] = {
    ast.Add: Operator.ADD,
    ast.Sub: Operator.SUB,
    ast.Mult: Operator.MUL,
    ast.Div: Operator.DIV,
    ast.Mod: Operator.MOD,
    ast.Pow: Operator.POW,
}

_COMPARE_OPERATORS: dict[type[ast.cmpop], Operator] = {
    ast.Eq: Operator.EQ,
    ast.NotEq: Operator.NE,
    ast.Lt: Operator.LT,
    ast.LtE: Operator.LE,
    ast.Gt: Operator.GT,
    ast.GtE: Operator.GE,
}


def parse_stream_request(text: str) -> FormulaRequest:
    """Split ``text`` on the first ``@`` and parse both halves.

    Raises:
        ParseError: missing or unknown interval, an unparseable formula, or
            a formula that references no symbols (nothing to subscribe to).
    """
    body, separator, interval = text.partition("@")
    if not separator or not interval:
        raise ParseError(f"missing '@<interval>' in stream request '{text}'")
    if interval not in KLINE_INTERVALS:
        raise ParseError(f"unknown candle interval '{interval}'")

    expression = parse_formula(body)
    if not extract(expression):
        raise ParseError("formula references no symbols")

    return FormulaRequest(
        expression=expression,
        candle_interval=interval,
        text=text,
    )


def parse_formula(source: str) -> Node:
    """Parse a formula body into an expression tree.

    The source must hold exactly one expression statement.
    """
    try:
        module = ast.parse(source.strip(), mode="exec")
    except SyntaxError as e:
        raise ParseError(f"invalid formula syntax: {e.msg}") from e
    except ValueError as e:
        raise ParseError(f"invalid formula: {e}") from e
    except (RecursionError, MemoryError) as e:
        raise ParseError("formula is nested too deeply") from e

    if not module.body:
        raise ParseError("no expressions found in formula")
    if len(module.body) > 1:
        raise ParseError("formula must be a single expression")

    statement = module.body[0]
    if not isinstance(statement, ast.Expr):
        raise ParseError(
            f"formula must be an expression, got {type(statement).__name__.lower()}"
        )

    try:
        return _convert(statement.value, source.strip())
    except RecursionError as e:
        raise ParseError("formula is nested too deeply") from e


def _convert(node: ast.expr, source: str) -> Node:
    if isinstance(node, ast.Name):
        return Variable(node.id)

    if isinstance(node, ast.Constant):
        return Literal(_literal_value(node, source))

    if isinstance(node, ast.UnaryOp):
        if isinstance(node.op, ast.USub) and isinstance(node.operand, ast.Constant):
            return Literal(-_literal_value(node.operand, source))
        if isinstance(node.op, ast.UAdd) and isinstance(node.operand, ast.Constant):
            return Literal(_literal_value(node.operand, source))
        raise UnsupportedOperatorError(_unary_symbol(node.op))

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPERATORS.get(type(node.op))
        if op is None:
            raise UnsupportedOperatorError(type(node.op).__name__)
        return Binary(op, _convert(node.left, source), _convert(node.right, source))

    if isinstance(node, ast.Compare):
        if len(node.ops) != 1:
            raise ParseError("chained comparisons are not supported")
        op = _COMPARE_OPERATORS.get(type(node.ops[0]))
        if op is None:
            raise UnsupportedOperatorError(type(node.ops[0]).__name__)
        return Binary(
            op,
            _convert(node.left, source),
            _convert(node.comparators[0], source),
        )

    if isinstance(node, ast.Call):
        raise ParseError("function calls are not supported")

    raise ParseError(f"unsupported syntax in formula: {type(node).__name__}")


def _literal_value(node: ast.Constant, source: str) -> Decimal:
    value = node.value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"unsupported literal: {value!r}")
    if isinstance(value, int):
        return Decimal(value)

    text = ast.get_source_segment(source, node)
    try:
        return Decimal(text) if text is not None else Decimal(str(value))
    except InvalidOperation as e:
        raise ParseError(f"invalid numeric literal: {text}") from e


def _unary_symbol(op: ast.unaryop) -> str:
    return {ast.USub: "-", ast.UAdd: "+", ast.Not: "not", ast.Invert: "~"}.get(
        type(op), type(op).__name__
    )


def ensure_supported(node: Node) -> None:
    """Raise UnsupportedOperatorError if any Binary node uses a non-arithmetic operator.

    Called once at session start so an unevaluable formula is rejected
    before subscribing upstream.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Binary):
            if not current.op.is_supported:
                raise UnsupportedOperatorError(current.op.value)
            stack.append(current.right)
            stack.append(current.left)
