"""Symbol dependency extraction for expression trees."""

from __future__ import annotations

from synthstream.formula.expression import Binary, Node, Variable


def extract(node: Node) -> list[str]:
    """Return every Variable symbol in left-to-right, depth-first order.

    One entry per occurrence: ``btcusdt+btcusdt`` yields the symbol twice.
    Literals contribute nothing. Uses an explicit stack, so arbitrarily
    deep trees do not hit the interpreter recursion limit.

    Args:
        node: Root of the expression tree.

    Returns:
        Symbols in the order they appear in the formula text.
    """
    symbols: list[str] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Variable):
            symbols.append(current.symbol)
        elif isinstance(current, Binary):
            # right pushed first so left is visited first
            stack.append(current.right)
            stack.append(current.left)
    return symbols


def dependency_set(node: Node) -> list[str]:
    """Return the distinct symbols of ``node``, ordered by first occurrence.

    This is the subscription list sent upstream and the warm-state
    threshold for the fan-in coordinator.
    """
    return list(dict.fromkeys(extract(node)))
