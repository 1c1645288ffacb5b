"""Shared data models for synthstream.

CRITICAL: All price fields use Decimal. Chained formula arithmetic must not
accumulate float rounding error.
"""

from dataclasses import dataclass
from decimal import Decimal

OHLC_FIELDS = ("open", "high", "low", "close")


@dataclass(frozen=True)
class SampleContext:
    """Upstream event metadata attached to a sample."""

    event_type: str
    symbol: str
    event_time: int  # Unix milliseconds


@dataclass(frozen=True)
class OHLCSample:
    """One OHLC observation for a symbol, or a combined formula result.

    Immutable: a newer sample for the same symbol replaces this one.
    """

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    timestamp: int  # kline start time, Unix milliseconds
    context: SampleContext | None = None
    degraded: bool = False  # produced under the "nan" zero-division policy

    @classmethod
    def constant(cls, value: Decimal) -> "OHLCSample":
        """Degenerate sample for a formula literal: all four fields equal, timestamp 0."""
        return cls(open=value, high=value, low=value, close=value, timestamp=0)
