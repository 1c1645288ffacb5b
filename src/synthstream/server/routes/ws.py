"""WebSocket endpoint for formula stream subscriptions."""

from __future__ import annotations

from fastapi import APIRouter, WebSocket

from synthstream.server.session import StreamSession

router = APIRouter()


@router.websocket("/ws")
async def stream_endpoint(websocket: WebSocket) -> None:
    """One StreamSession per connection; sessions share nothing."""
    session = StreamSession(
        websocket,
        settings=websocket.app.state.settings,
        feed_factory=websocket.app.state.feed_factory,
    )
    await session.run()
