"""Wire models for the Binance futures combined kline stream.

Upstream frames look like::

    {"stream": "btcusdt@kline_1m",
     "data": {"e": "kline", "E": 1700000000123, "s": "BTCUSDT",
              "k": {"t": 1700000000000, "o": "37000.10", "h": "...", ...}}}

Prices arrive as strings and are decoded straight into Decimal.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from synthstream.exceptions import MalformedMessageError, UpstreamError
from synthstream.models import OHLCSample, SampleContext


class SubscribeRequest(BaseModel):
    """Outbound subscription frame."""

    id: int
    method: Literal["SUBSCRIBE"] = "SUBSCRIBE"
    params: list[str]


class Kline(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: int = Field(alias="t")
    open: Decimal = Field(alias="o")
    high: Decimal = Field(alias="h")
    low: Decimal = Field(alias="l")
    close: Decimal = Field(alias="c")


class KlineEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(alias="e")
    event_time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    kline: Kline = Field(alias="k")


class CombinedStreamMessage(BaseModel):
    stream: str
    data: KlineEvent


@dataclass(frozen=True)
class KlineUpdate:
    """One decoded upstream sample, keyed by the subscribed symbol."""

    symbol: str
    sample: OHLCSample


def decode_message(raw: str | bytes) -> KlineUpdate | None:
    """Decode one upstream frame.

    The symbol is taken from the stream name prefix (``btcusdt`` in
    ``btcusdt@kline_1m``) so it matches the formula's exact spelling; the
    upstream ``s`` field is upper-cased and kept only as context.

    Returns:
        The decoded update, or None for subscription acks, frames with a
        null payload and non-kline events.

    Raises:
        UpstreamError: the upstream reported an error for a request.
        MalformedMessageError: the frame is not a recognizable message.
    """
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedMessageError(f"invalid JSON from upstream: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedMessageError(f"unexpected upstream frame: {payload!r}")

    if payload.get("error") is not None:
        error = payload["error"]
        raise UpstreamError(
            f"upstream rejected request {payload.get('id')}: "
            f"{error.get('msg', error) if isinstance(error, dict) else error}"
        )

    data = payload.get("data")
    if data is None:
        # {"result": null, "id": n} subscription ack
        return None
    if isinstance(data, dict) and data.get("e") != "kline":
        return None

    try:
        message = CombinedStreamMessage.model_validate(payload)
    except ValidationError as e:
        raise MalformedMessageError(f"invalid kline message: {e}") from e

    event = message.data
    sample = OHLCSample(
        open=event.kline.open,
        high=event.kline.high,
        low=event.kline.low,
        close=event.kline.close,
        timestamp=event.kline.start_time,
        context=SampleContext(
            event_type=event.event_type,
            symbol=event.symbol,
            event_time=event.event_time,
        ),
    )
    return KlineUpdate(symbol=message.stream.split("@", 1)[0], sample=sample)
