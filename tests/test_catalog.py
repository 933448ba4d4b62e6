"""Tests for :mod:`livedeck_tui.catalog`."""
from __future__ import annotations

import copy
from typing import Any

import pytest

from livedeck_tui.catalog import (
    StreamEntry,
    build_catalog,
    fetch_catalog,
    render_entry,
    sort_catalog,
)
from livedeck_tui.errors import ResponseShapeError


def _node(name: str, viewers: int = 100, **overrides: Any) -> dict[str, Any]:
    node: dict[str, Any] = {
        "broadcastSettings": {"title": f"{name} plays"},
        "channel": {"name": name, "displayName": name.capitalize()},
        "stream": {
            "viewersCount": viewers,
            "type": "live",
            "height": 1080,
            "averageFPS": 60,
            "game": {"displayName": "Chess"},
        },
    }
    node.update(overrides)
    return node


def _payload(*nodes: Any) -> dict[str, Any]:
    return {"data": {"user": {"follows": {"edges": [{"node": node} for node in nodes]}}}}


def test_build_catalog_normalizes_fields() -> None:
    entries = build_catalog(_payload(_node("alpha", viewers=42)))

    assert entries == [
        StreamEntry(
            title="alpha plays",
            name="alpha",
            display_name="Alpha",
            viewers=42,
            game="Chess",
            quality="1080p60",
            stream_type="live",
        )
    ]


def test_build_catalog_skips_offline_channels() -> None:
    offline = _node("offline", stream=None)

    entries = build_catalog(_payload(offline, _node("online")))

    assert [entry.name for entry in entries] == ["online"]


@pytest.mark.parametrize(
    "path",
    [
        ("broadcastSettings", "title"),
        ("channel", "name"),
        ("channel", "displayName"),
        ("stream", "viewersCount"),
        ("stream", "game"),
        ("stream", "height"),
        ("stream", "averageFPS"),
        ("stream", "type"),
    ],
)
def test_build_catalog_drops_nodes_missing_required_fields(path: tuple[str, str]) -> None:
    broken = copy.deepcopy(_node("broken"))
    section, key = path
    del broken[section][key]

    entries = build_catalog(_payload(broken, _node("complete")))

    assert [entry.name for entry in entries] == ["complete"]


def test_build_catalog_drops_null_sections_and_edges() -> None:
    payload = _payload(_node("ok"), _node("no-settings", broadcastSettings=None))
    payload["data"]["user"]["follows"]["edges"].extend([None, {"node": None}])

    entries = build_catalog(payload)

    assert [entry.name for entry in entries] == ["ok"]


def test_build_catalog_rejects_negative_or_boolean_counts() -> None:
    negative = _node("negative", viewers=-3)
    boolean = _node("boolean")
    boolean["stream"]["viewersCount"] = True

    assert build_catalog(_payload(negative, boolean)) == []


def test_build_catalog_rounds_fractional_frame_rates() -> None:
    node = _node("smooth")
    node["stream"]["averageFPS"] = 59.94
    node["stream"]["height"] = 720

    (entry,) = build_catalog(_payload(node))

    assert entry.quality == "720p60"


def test_build_catalog_empty_result() -> None:
    assert build_catalog(_payload()) == []


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {},
        {"data": None},
        {"data": {"user": None}},
        {"data": {"user": {"follows": None}}},
        {"data": {"user": {"follows": {"edges": None}}}},
    ],
)
def test_build_catalog_rejects_malformed_responses(raw: Any) -> None:
    with pytest.raises(ResponseShapeError):
        build_catalog(raw)


def test_sort_catalog_orders_by_viewers_descending() -> None:
    entries = build_catalog(
        _payload(_node("fifty", viewers=50), _node("nine", viewers=900), _node("ten", viewers=10))
    )

    ordered = sort_catalog(entries)

    assert [entry.viewers for entry in ordered] == [900, 50, 10]
    assert all(a.viewers >= b.viewers for a, b in zip(ordered, ordered[1:]))


def test_fetch_catalog_requests_single_page_and_sorts() -> None:
    calls: list[tuple[str, int, Any]] = []

    class FakeClient:
        def fetch_followed_streams(self, user: str, *, first: int = 100, after: Any = None):
            calls.append((user, first, after))
            return _payload(_node("small", viewers=1), _node("big", viewers=1000))

    entries = fetch_catalog(FakeClient(), "viewer", page_size=25)

    assert calls == [("viewer", 25, None)]
    assert [entry.name for entry in entries] == ["big", "small"]


def test_render_entry_layout() -> None:
    (entry,) = build_catalog(_payload(_node("alpha", viewers=1234)))

    text = render_entry(entry)

    assert text.plain == "Alpha - alpha plays\nlive in Chess | 1234 viewers | 1080p60"


def test_render_entry_does_not_interpret_markup() -> None:
    node = _node("markup")
    node["broadcastSettings"]["title"] = "[bold]not markup[/bold]"
    (entry,) = build_catalog(_payload(node))

    assert "[bold]not markup[/bold]" in render_entry(entry).plain
