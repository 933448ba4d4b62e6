"""Error types raised by :mod:`livedeck_tui`."""
from __future__ import annotations


class LivedeckError(RuntimeError):
    """Base class for failures that terminate the application."""

    kind = "error"


class TransportError(LivedeckError):
    """A request could not be completed or returned a non-success status."""

    kind = "transport"


class ResponseShapeError(LivedeckError):
    """A response was not valid JSON or lacked an expected field."""

    kind = "response"


class PlaybackError(LivedeckError):
    """The media player could not be started for a channel."""

    kind = "playback"


class PlayerNotFoundError(PlaybackError):
    """No supported media player executable is available."""


__all__ = [
    "LivedeckError",
    "TransportError",
    "ResponseShapeError",
    "PlaybackError",
    "PlayerNotFoundError",
]
