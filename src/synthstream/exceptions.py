"""Custom exceptions for synthstream.

Formula, evaluation and upstream errors live here so the formula core,
the upstream feed and the session layer can share them without
circular imports.
"""


class SynthStreamError(Exception):
    """Base exception for all synthstream errors."""


class ParseError(SynthStreamError):
    """Raised when a stream request or formula cannot be parsed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class UnsupportedOperatorError(SynthStreamError):
    """Raised when a formula uses an operator the evaluator cannot apply."""

    def __init__(self, operator: str) -> None:
        super().__init__(f"unsupported operator: {operator}")
        self.operator = operator
        self.reason = str(self)


class InvalidRequestError(SynthStreamError):
    """Raised when a client request frame is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class SampleArithmeticError(SynthStreamError, ArithmeticError):
    """Raised when an evaluation round cannot compute a field (overflow, invalid operation)."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{reason} in field '{field}'")
        self.field = field


class SampleDivisionError(SampleArithmeticError):
    """Raised when an evaluation round divides by a zero-valued field."""

    def __init__(self, field: str) -> None:
        super().__init__(field, "division by zero")


class UpstreamError(SynthStreamError):
    """Raised when the upstream kline feed fails or rejects a request."""


class MalformedMessageError(SynthStreamError):
    """Raised when an upstream frame cannot be decoded."""
