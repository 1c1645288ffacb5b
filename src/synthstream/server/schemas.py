"""Client-facing wire models."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from synthstream.models import OHLCSample


class ClientRequest(BaseModel):
    """First frame a client sends: which formula to stream."""

    id: int
    method: Literal["SUBSCRIBE"]
    stream: str  # "<formula>@<interval>"


class CombinedCandle(BaseModel):
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    timestamp: int
    event_type: str | None = None
    event_time: int | None = None
    symbol: str | None = None
    degraded: bool = False


class ClientResponse(BaseModel):
    """One combined result, tagged with the client's original stream text."""

    stream: str
    data: CombinedCandle

    @classmethod
    def from_sample(cls, stream: str, sample: OHLCSample) -> ClientResponse:
        context = sample.context
        return cls(
            stream=stream,
            data=CombinedCandle(
                open=sample.open,
                high=sample.high,
                low=sample.low,
                close=sample.close,
                timestamp=sample.timestamp,
                event_type=context.event_type if context else None,
                event_time=context.event_time if context else None,
                symbol=context.symbol if context else None,
                degraded=sample.degraded,
            ),
        )


class ErrorDetail(BaseModel):
    type: str
    reason: str


class ClientError(BaseModel):
    """Sent once before the server closes a session it cannot serve."""

    id: int | None = None
    error: ErrorDetail
