"""Per-session stream combination."""

from synthstream.stream.coordinator import FanInCoordinator, SampleStore

__all__ = ["FanInCoordinator", "SampleStore"]
