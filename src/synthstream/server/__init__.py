"""Client-facing WebSocket server."""

from synthstream.server.app import create_app
from synthstream.server.session import StreamSession

__all__ = ["StreamSession", "create_app"]
