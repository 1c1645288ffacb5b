"""Shared test fixtures for synthstream."""

from collections.abc import Callable
from decimal import Decimal

import pytest

from synthstream.config import AppSettings, EvaluationSettings, ServerSettings, UpstreamSettings
from synthstream.models import OHLCSample, SampleContext

SampleFactory = Callable[..., OHLCSample]


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (local upstream URL, skip policy)."""
    return AppSettings(
        log_level="DEBUG",
        server=ServerSettings(host="127.0.0.1", port=18080),
        upstream=UpstreamSettings(url="ws://upstream.test/stream"),
        evaluation=EvaluationSettings(zero_division="skip"),
    )


@pytest.fixture
def make_sample() -> SampleFactory:
    """Build an OHLCSample from string prices, optionally with upstream context."""

    def _make(
        open: str,
        high: str,
        low: str,
        close: str,
        timestamp: int = 1_700_000_000_000,
        symbol: str | None = None,
    ) -> OHLCSample:
        context = (
            SampleContext(event_type="kline", symbol=symbol, event_time=timestamp + 500)
            if symbol is not None
            else None
        )
        return OHLCSample(
            open=Decimal(open),
            high=Decimal(high),
            low=Decimal(low),
            close=Decimal(close),
            timestamp=timestamp,
            context=context,
        )

    return _make
