"""One client WebSocket session: formula in, combined candles out.

Lifecycle:
1. Read the SUBSCRIBE frame and parse its stream formula.
2. Build a FanInCoordinator and subscribe upstream to its dependencies.
3. Pump upstream updates through the coordinator to the client until
   either side goes away.

Formula and request errors are reported to the client and close only this
session; they never propagate to the server.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from fastapi import WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from synthstream.config import AppSettings
from synthstream.exceptions import (
    InvalidRequestError,
    ParseError,
    UnsupportedOperatorError,
    UpstreamError,
)
from synthstream.formula.parser import ensure_supported, parse_stream_request
from synthstream.logging import bind_session, get_logger
from synthstream.server.schemas import ClientError, ClientRequest, ClientResponse, ErrorDetail
from synthstream.stream.coordinator import FanInCoordinator
from synthstream.upstream.feed import KlineFeed

logger = get_logger(__name__)

FeedFactory = Callable[[], AbstractAsyncContextManager[KlineFeed]]


class StreamSession:
    """Serves one formula subscription over one client WebSocket."""

    def __init__(
        self,
        websocket: WebSocket,
        settings: AppSettings,
        feed_factory: FeedFactory,
    ) -> None:
        self._websocket = websocket
        self._settings = settings
        self._feed_factory = feed_factory
        self.session_id = uuid.uuid4().hex[:12]
        self.sent = 0

    async def run(self) -> None:
        await self._websocket.accept()
        with bind_session(session_id=self.session_id):
            logger.info("session_opened")
            await self._serve()
            logger.info("session_closed", sent=self.sent)

    async def _serve(self) -> None:
        request_id: int | None = None
        try:
            request = await self._read_request()
            request_id = request.id
            formula = parse_stream_request(request.stream)
            ensure_supported(formula.expression)
        except WebSocketDisconnect:
            logger.info("client_left_before_request")
            return
        except (InvalidRequestError, ParseError, UnsupportedOperatorError) as e:
            logger.warning("session_rejected", error_type=type(e).__name__, reason=e.reason)
            await self._reject(request_id, e)
            return

        coordinator = FanInCoordinator(
            formula, zero_division=self._settings.evaluation.zero_division
        )
        with bind_session(stream=formula.text):
            logger.info(
                "session_started",
                dependencies=coordinator.dependencies,
                interval=formula.candle_interval,
            )
            try:
                async with self._feed_factory() as feed:
                    await feed.subscribe(
                        request.id, formula.subscription_params(coordinator.dependencies)
                    )
                    await self._pump_until_done(feed, coordinator)
            except UpstreamError as e:
                logger.warning("upstream_failed", error=str(e))
                await self._close(status.WS_1011_INTERNAL_ERROR, "upstream feed failed")
            except WebSocketDisconnect:
                logger.info("client_disconnected_during_send")
            except Exception:
                logger.error("session_failed", exc_info=True)
                await self._close(status.WS_1011_INTERNAL_ERROR, "internal error")
            finally:
                coordinator.close()
                logger.info(
                    "session_finished",
                    rounds=coordinator.rounds,
                    skipped_rounds=coordinator.skipped_rounds,
                )

    async def _read_request(self) -> ClientRequest:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
        raw = message.get("text")
        if raw is None:
            raise InvalidRequestError("subscribe request must be a text frame")
        try:
            return ClientRequest.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidRequestError(f"invalid subscribe request: {e.errors()[0]['msg']}") from e

    async def _pump_until_done(self, feed: KlineFeed, coordinator: FanInCoordinator) -> None:
        """Run the upstream pump and the disconnect watcher; stop at the first to finish."""
        pump = asyncio.create_task(self._pump(feed, coordinator))
        watcher = asyncio.create_task(self._watch_client())

        done, pending = await asyncio.wait(
            {pump, watcher}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if pump in done:
            # re-raises UpstreamError from the pump
            pump.result()
            logger.info("upstream_ended")
            await self._close(status.WS_1000_NORMAL_CLOSURE, "upstream feed closed")
        else:
            watcher.result()
            logger.info("client_disconnected")

    async def _pump(self, feed: KlineFeed, coordinator: FanInCoordinator) -> None:
        stream = coordinator.request.text
        async for update in feed.updates():
            result = coordinator.observe(update.symbol, update.sample)
            if result is None:
                continue
            response = ClientResponse.from_sample(stream, result)
            await self._websocket.send_text(response.model_dump_json())
            self.sent += 1

    async def _watch_client(self) -> None:
        """Return when the client disconnects; further client frames, text or binary, are ignored."""
        while True:
            message = await self._websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            logger.debug("client_frame_ignored", binary=message.get("bytes") is not None)

    async def _reject(self, request_id: int | None, error: Exception) -> None:
        payload = ClientError(
            id=request_id,
            error=ErrorDetail(type=type(error).__name__, reason=getattr(error, "reason", str(error))),
        )
        if self._websocket.client_state == WebSocketState.CONNECTED:
            await self._websocket.send_text(payload.model_dump_json())
        await self._close(status.WS_1008_POLICY_VIOLATION, payload.error.type)

    async def _close(self, code: int, reason: str) -> None:
        if self._websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await self._websocket.close(code=code, reason=reason)
        except RuntimeError:
            logger.debug("close_after_disconnect", code=code)
