"""Upstream kline feed over the Binance futures combined WebSocket stream.

One feed per session: it opens its own connection, sends a single
SUBSCRIBE frame and yields decoded kline updates until the connection
closes. Reconnection is out of scope; a dropped connection ends the
session.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from types import TracebackType

import websockets
from websockets.asyncio.client import ClientConnection

from synthstream.config import UpstreamSettings
from synthstream.exceptions import MalformedMessageError, UpstreamError
from synthstream.logging import get_logger
from synthstream.upstream.messages import KlineUpdate, SubscribeRequest, decode_message

logger = get_logger(__name__)


class KlineFeed:
    """Async context manager around one upstream WebSocket connection.

    Usage:
        async with KlineFeed(settings.upstream) as feed:
            await feed.subscribe(1, ["btcusdt@kline_1m"])
            async for update in feed.updates():
                ...
    """

    def __init__(self, settings: UpstreamSettings) -> None:
        self._settings = settings
        self._ws: ClientConnection | None = None
        self.received = 0
        self.skipped = 0

    async def __aenter__(self) -> KlineFeed:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the upstream connection."""
        logger.info("connecting_to_upstream", url=self._settings.url)
        try:
            self._ws = await websockets.connect(
                self._settings.url,
                open_timeout=self._settings.open_timeout,
                close_timeout=self._settings.close_timeout,
                ping_interval=self._settings.ping_interval,
                ping_timeout=self._settings.ping_timeout,
            )
        except (websockets.exceptions.WebSocketException, TimeoutError, OSError) as e:
            raise UpstreamError(f"upstream connection failed: {e}") from e
        logger.info("upstream_connected", url=self._settings.url)

    async def close(self) -> None:
        """Close the upstream connection. Safe to call more than once."""
        if self._ws is None:
            return
        ws, self._ws = self._ws, None
        await ws.close()
        logger.info(
            "upstream_connection_closed",
            received=self.received,
            skipped=self.skipped,
        )

    async def subscribe(self, request_id: int, params: list[str]) -> None:
        """Send one SUBSCRIBE frame for the given stream names."""
        request = SubscribeRequest(id=request_id, params=params)
        try:
            await self._connection().send(request.model_dump_json())
        except websockets.exceptions.ConnectionClosed as e:
            raise UpstreamError(f"upstream closed before subscribe: {e}") from e
        logger.info("upstream_subscribed", request_id=request_id, streams=params)

    async def updates(self) -> AsyncIterator[KlineUpdate]:
        """Yield decoded kline updates in arrival order.

        Acks and non-kline events are dropped; malformed frames are logged
        and skipped.

        Raises:
            UpstreamError: the upstream reported an error or the
                connection dropped abnormally.
        """
        ws = self._connection()
        try:
            async for raw in ws:
                try:
                    update = decode_message(raw)
                except MalformedMessageError as e:
                    self.skipped += 1
                    logger.warning("upstream_message_skipped", error=str(e))
                    continue
                if update is None:
                    continue
                self.received += 1
                yield update
        except websockets.exceptions.ConnectionClosedError as e:
            raise UpstreamError(f"upstream connection dropped: {e}") from e

    def _connection(self) -> ClientConnection:
        if self._ws is None:
            raise UpstreamError("upstream feed is not connected")
        return self._ws
