"""Tests for upstream frame decoding."""

import json
from decimal import Decimal

import pytest

from synthstream.exceptions import MalformedMessageError, UpstreamError
from synthstream.upstream.messages import SubscribeRequest, decode_message


def kline_frame(
    stream: str = "btcusdt@kline_1m",
    symbol: str = "BTCUSDT",
    start_time: int = 1_700_000_000_000,
    ohlc: tuple[str, str, str, str] = ("37000.10", "37100.00", "36950.5", "37050.25"),
) -> str:
    o, h, l, c = ohlc
    return json.dumps(
        {
            "stream": stream,
            "data": {
                "e": "kline",
                "E": start_time + 1234,
                "s": symbol,
                "k": {
                    "t": start_time,
                    "T": start_time + 59_999,
                    "s": symbol,
                    "i": "1m",
                    "o": o,
                    "h": h,
                    "l": l,
                    "c": c,
                    "v": "12.5",
                    "x": False,
                },
            },
        }
    )


class TestDecodeMessage:
    """Tests for decode_message."""

    def test_kline_frame(self) -> None:
        update = decode_message(kline_frame())
        assert update is not None
        assert update.symbol == "btcusdt"
        assert update.sample.open == Decimal("37000.10")
        assert update.sample.high == Decimal("37100.00")
        assert update.sample.low == Decimal("36950.5")
        assert update.sample.close == Decimal("37050.25")
        assert update.sample.timestamp == 1_700_000_000_000

    def test_context_from_event(self) -> None:
        update = decode_message(kline_frame())
        assert update is not None
        context = update.sample.context
        assert context is not None
        assert context.event_type == "kline"
        assert context.symbol == "BTCUSDT"
        assert context.event_time == 1_700_000_001_234

    def test_symbol_taken_from_stream_name(self) -> None:
        update = decode_message(kline_frame(stream="ethBTC@kline_5m", symbol="ETHBTC"))
        assert update is not None
        assert update.symbol == "ethBTC"

    def test_bytes_frame(self) -> None:
        assert decode_message(kline_frame().encode()) is not None

    def test_subscription_ack_ignored(self) -> None:
        assert decode_message('{"result": null, "id": 7}') is None

    def test_null_data_ignored(self) -> None:
        assert decode_message('{"stream": "btcusdt@kline_1m", "data": null}') is None

    def test_non_kline_event_ignored(self) -> None:
        frame = {"stream": "btcusdt@aggTrade", "data": {"e": "aggTrade", "E": 1, "s": "BTCUSDT"}}
        assert decode_message(json.dumps(frame)) is None

    def test_error_frame_raises(self) -> None:
        frame = {"error": {"code": 2, "msg": "Invalid request"}, "id": 3}
        with pytest.raises(UpstreamError, match="Invalid request"):
            decode_message(json.dumps(frame))

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(MalformedMessageError):
            decode_message("{not json")

    def test_non_object_raises(self) -> None:
        with pytest.raises(MalformedMessageError):
            decode_message("[1, 2, 3]")

    def test_missing_price_raises(self) -> None:
        frame = json.loads(kline_frame())
        del frame["data"]["k"]["c"]
        with pytest.raises(MalformedMessageError):
            decode_message(json.dumps(frame))


class TestSubscribeRequest:
    """Tests for the outbound subscription frame."""

    def test_serialization(self) -> None:
        request = SubscribeRequest(id=42, params=["btcusdt@kline_1m", "ethusdt@kline_1m"])
        assert json.loads(request.model_dump_json()) == {
            "id": 42,
            "method": "SUBSCRIBE",
            "params": ["btcusdt@kline_1m", "ethusdt@kline_1m"],
        }
