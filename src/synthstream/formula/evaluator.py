"""Recursive evaluation of an expression tree over OHLC samples.

Each Binary node combines its operands field by field: open with open,
high with high, and so on. The result timestamp is the later of the two
operands, and the context (event type, source symbol, event time) is taken
from the left operand.

A missing symbol makes the whole evaluation return None. No partial or
zero-filled sample is ever produced.

CRITICAL: All arithmetic is Decimal.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, DecimalException
from typing import Literal as LiteralType

from synthstream.exceptions import (
    SampleArithmeticError,
    SampleDivisionError,
    UnsupportedOperatorError,
)
from synthstream.formula.expression import Binary, Literal, Node, Operator, Variable
from synthstream.models import OHLC_FIELDS, OHLCSample

ZeroDivisionPolicy = LiteralType["skip", "nan"]

_NAN = Decimal("NaN")


def evaluate(
    node: Node,
    store: Mapping[str, OHLCSample],
    zero_division: ZeroDivisionPolicy = "skip",
) -> OHLCSample | None:
    """Evaluate ``node`` against the latest sample of each symbol in ``store``.

    Args:
        node: Root of the expression tree.
        store: Latest sample per symbol.
        zero_division: policy for a field that cannot be computed (zero
            divisor, decimal overflow). "skip" raises SampleArithmeticError;
            "nan" yields Decimal("NaN") for that field and marks the result
            degraded.

    Returns:
        The combined sample, or None if any referenced symbol is missing.

    Raises:
        UnsupportedOperatorError: the tree contains a non-arithmetic operator.
        SampleArithmeticError: a zero divisor or decimal overflow under the
            "skip" policy (SampleDivisionError for the former).
    """
    if isinstance(node, Variable):
        return store.get(node.symbol)

    if isinstance(node, Literal):
        return OHLCSample.constant(node.value)

    if isinstance(node, Binary):
        if not node.op.is_supported:
            raise UnsupportedOperatorError(node.op.value)

        left = evaluate(node.left, store, zero_division)
        if left is None:
            return None
        right = evaluate(node.right, store, zero_division)
        if right is None:
            return None
        return combine(node.op, left, right, zero_division)

    raise TypeError(f"not an expression node: {node!r}")


def combine(
    op: Operator,
    left: OHLCSample,
    right: OHLCSample,
    zero_division: ZeroDivisionPolicy = "skip",
) -> OHLCSample:
    """Apply ``op`` to each OHLC field of ``left`` and ``right``."""
    degraded = left.degraded or right.degraded
    values: dict[str, Decimal] = {}

    for field in OHLC_FIELDS:
        a: Decimal = getattr(left, field)
        b: Decimal = getattr(right, field)

        if op is Operator.DIV and b == 0:
            if zero_division == "skip":
                raise SampleDivisionError(field)
            values[field] = _NAN
            degraded = True
            continue

        try:
            values[field] = _apply(op, a, b)
        except DecimalException as e:
            # Overflow or InvalidOperation trapped by the decimal context
            if zero_division == "skip":
                raise SampleArithmeticError(field, type(e).__name__.lower()) from e
            values[field] = _NAN
            degraded = True

    return OHLCSample(
        open=values["open"],
        high=values["high"],
        low=values["low"],
        close=values["close"],
        timestamp=max(left.timestamp, right.timestamp),
        context=left.context,
        degraded=degraded,
    )


def _apply(op: Operator, a: Decimal, b: Decimal) -> Decimal:
    if op is Operator.ADD:
        return a + b
    if op is Operator.SUB:
        return a - b
    if op is Operator.MUL:
        return a * b
    if op is Operator.DIV:
        return a / b
    raise UnsupportedOperatorError(op.value)
