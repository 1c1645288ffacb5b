"""Upstream kline feed and its wire models."""

from synthstream.upstream.feed import KlineFeed
from synthstream.upstream.messages import KlineUpdate, SubscribeRequest, decode_message

__all__ = ["KlineFeed", "KlineUpdate", "SubscribeRequest", "decode_message"]
