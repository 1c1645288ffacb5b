"""Expression tree for synthetic instrument formulas.

A formula such as ``(btcusdt+ethusdt*ltcbtc)/bnbusdt`` is parsed once into
an immutable tree of Literal, Variable and Binary nodes. Binary owns both
subtrees; nodes are never shared.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Operator(str, Enum):
    """Binary operators the parser can produce.

    Only the four arithmetic operators are evaluable; the rest parse so the
    evaluator can reject them with UnsupportedOperatorError.
    """

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "**"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @property
    def is_supported(self) -> bool:
        return self in SUPPORTED_OPERATORS


SUPPORTED_OPERATORS = frozenset(
    {Operator.ADD, Operator.SUB, Operator.MUL, Operator.DIV}
)


@dataclass(frozen=True)
class Literal:
    value: Decimal


@dataclass(frozen=True)
class Variable:
    symbol: str


@dataclass(frozen=True)
class Binary:
    op: Operator
    left: Node
    right: Node


Node = Literal | Variable | Binary


@dataclass(frozen=True)
class FormulaRequest:
    """A parsed ``<formula>@<interval>`` stream request."""

    expression: Node
    candle_interval: str
    text: str  # original request text, echoed back on every result

    def subscription_params(self, symbols: list[str]) -> list[str]:
        """Upstream stream names for the given symbols at this request's interval."""
        return [f"{symbol}@kline_{self.candle_interval}" for symbol in symbols]
