"""Formula core: parsing, dependency extraction and evaluation."""

from synthstream.formula.dependencies import dependency_set, extract
from synthstream.formula.evaluator import combine, evaluate
from synthstream.formula.expression import (
    Binary,
    FormulaRequest,
    Literal,
    Node,
    Operator,
    Variable,
)
from synthstream.formula.parser import ensure_supported, parse_formula, parse_stream_request

__all__ = [
    "Binary",
    "FormulaRequest",
    "Literal",
    "Node",
    "Operator",
    "Variable",
    "combine",
    "dependency_set",
    "ensure_supported",
    "evaluate",
    "extract",
    "parse_formula",
    "parse_stream_request",
]
