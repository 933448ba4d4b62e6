"""Normalize followed-channel query results into displayable stream entries."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

from rich.text import Text

from .errors import ResponseShapeError
from .logging_utils import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class StreamEntry:
    """A live followed channel."""

    title: str
    name: str
    display_name: str
    viewers: int
    game: str
    quality: str
    stream_type: str


class FollowedStreamsSource(Protocol):
    def fetch_followed_streams(
        self, user: str, *, first: int = ..., after: Optional[str] = ...
    ) -> dict[str, Any]: ...


def _coerce_count(value: object) -> Optional[int]:
    """Return ``value`` as a non-negative integer, if it is one."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    return None


def _coerce_fps(value: object) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return int(round(value))


def _text(container: object, key: str) -> Optional[str]:
    if not isinstance(container, dict):
        return None
    value = container.get(key)
    return value if isinstance(value, str) else None


def format_quality(height: int, fps: int) -> str:
    return f"{height}p{fps}"


def _follow_edges(raw: object) -> list[Any]:
    if not isinstance(raw, dict):
        raise ResponseShapeError("Followed channels response is not a JSON object")
    data = raw.get("data")
    if not isinstance(data, dict):
        raise ResponseShapeError("Followed channels response has no data")
    user = data.get("user")
    if not isinstance(user, dict):
        raise ResponseShapeError("Unknown user; no followed channels returned")
    follows = user.get("follows")
    if not isinstance(follows, dict):
        raise ResponseShapeError("Followed channels response has no follows")
    edges = follows.get("edges")
    if not isinstance(edges, list):
        raise ResponseShapeError("Followed channels response has no edges")
    return edges


def _entry_from_node(node: dict[str, Any]) -> Optional[StreamEntry]:
    stream = node.get("stream")
    if not isinstance(stream, dict):
        return None
    channel = node.get("channel")
    title = _text(node.get("broadcastSettings"), "title")
    name = _text(channel, "name")
    display_name = _text(channel, "displayName")
    game = _text(stream.get("game"), "displayName")
    stream_type = _text(stream, "type")
    viewers = _coerce_count(stream.get("viewersCount"))
    height = _coerce_count(stream.get("height"))
    fps = _coerce_fps(stream.get("averageFPS"))
    if (
        title is None
        or not name
        or display_name is None
        or game is None
        or stream_type is None
        or viewers is None
        or height is None
        or fps is None
    ):
        log.debug("Dropping incomplete live node for channel %s", name or "<unknown>")
        return None
    return StreamEntry(
        title=title,
        name=name,
        display_name=display_name,
        viewers=viewers,
        game=game,
        quality=format_quality(height, fps),
        stream_type=stream_type,
    )


def build_catalog(raw: object) -> list[StreamEntry]:
    """Return one :class:`StreamEntry` per live followed channel in *raw*.

    Offline channels and nodes missing any displayed field are dropped
    silently; the order of the result follows the response.
    """

    entries: list[StreamEntry] = []
    for edge in _follow_edges(raw):
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict):
            continue
        entry = _entry_from_node(node)
        if entry is not None:
            entries.append(entry)
    return entries


def sort_catalog(entries: Iterable[StreamEntry]) -> list[StreamEntry]:
    """Return *entries* ordered by descending viewer count."""

    return sorted(entries, key=lambda entry: entry.viewers, reverse=True)


def fetch_catalog(
    client: FollowedStreamsSource, user: str, *, page_size: int
) -> list[StreamEntry]:
    """Fetch, build and sort the live followed channels of *user*."""

    raw = client.fetch_followed_streams(user, first=page_size, after=None)
    entries = sort_catalog(build_catalog(raw))
    log.info("Found %d live followed channel(s) for %s", len(entries), user)
    return entries


def render_entry(entry: StreamEntry) -> Text:
    """Render *entry* as the two-line list row."""

    return Text.assemble(
        (entry.display_name, "blue"),
        " - ",
        (entry.title, "italic"),
        "\n",
        (entry.stream_type, "green"),
        " in ",
        (entry.game, "dim"),
        f" | {entry.viewers} viewers | ",
        entry.quality,
    )


__all__ = [
    "StreamEntry",
    "build_catalog",
    "fetch_catalog",
    "format_quality",
    "render_entry",
    "sort_catalog",
]
