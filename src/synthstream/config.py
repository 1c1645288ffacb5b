"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Client-facing WebSocket server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8080


class UpstreamSettings(BaseSettings):
    """Upstream kline feed connection settings."""

    model_config = SettingsConfigDict(env_prefix="UPSTREAM_")

    url: str = "wss://fstream.binance.com/stream"
    open_timeout: float = 10.0
    close_timeout: float = 10.0
    ping_interval: float = 20.0
    ping_timeout: float = 20.0


class EvaluationSettings(BaseSettings):
    """Formula evaluation policy.

    zero_division selects what happens when a round divides by a
    zero-valued field or a field overflows the decimal context:
    - "skip": the round produces no output and is logged as degraded
    - "nan": affected fields become Decimal("NaN") and the result is
      flagged degraded=True
    """

    model_config = SettingsConfigDict(env_prefix="EVAL_")

    zero_division: Literal["skip", "nan"] = "skip"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = "INFO"
    server: ServerSettings = ServerSettings()
    upstream: UpstreamSettings = UpstreamSettings()
    evaluation: EvaluationSettings = EvaluationSettings()
