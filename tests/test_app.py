"""Tests for the Textual application driving the stream picker."""

import asyncio
import importlib.util
from typing import Any, Callable, Optional

import pytest

if importlib.util.find_spec("textual") is None:  # pragma: no cover - optional dependency
    pytest.skip("textual is not installed", allow_module_level=True)

from livedeck_tui.config import AppConfig
from livedeck_tui.errors import PlaybackError, TransportError
from livedeck_tui.selector import SelectorState


def _node(name: str, viewers: int) -> dict[str, Any]:
    return {
        "broadcastSettings": {"title": f"{name} stream"},
        "channel": {"name": name, "displayName": name.title()},
        "stream": {
            "viewersCount": viewers,
            "type": "live",
            "height": 720,
            "averageFPS": 30,
            "game": {"displayName": "Speedrunning"},
        },
    }


def _payload(*nodes: dict[str, Any]) -> dict[str, Any]:
    return {"data": {"user": {"follows": {"edges": [{"node": node} for node in nodes]}}}}


class FakeClient:
    """Return queued followed-channel payloads, repeating the last one."""

    def __init__(self, *payloads: Any) -> None:
        self.payloads = list(payloads)
        self.calls: list[tuple[str, int, Optional[str]]] = []

    def fetch_followed_streams(
        self, user: str, *, first: int = 100, after: Optional[str] = None
    ) -> dict[str, Any]:
        self.calls.append((user, first, after))
        payload = self.payloads.pop(0) if len(self.payloads) > 1 else self.payloads[0]
        if isinstance(payload, Exception):
            raise payload
        return payload


class FakeLauncher:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.played: list[str] = []
        self.error = error

    def play(self, channel: str) -> int:
        self.played.append(channel)
        if self.error is not None:
            raise self.error
        return 0


def _make_app(client: FakeClient, launcher: Optional[FakeLauncher] = None, **config: Any):
    from livedeck_tui.app import LivedeckApp

    return LivedeckApp(
        "viewer",
        client=client,
        launcher=launcher or FakeLauncher(),
        config=AppConfig(**config),
    )


async def _settle(app: Any, pilot: Any) -> None:
    await app.workers.wait_for_complete()
    await pilot.pause()
    await pilot.pause()


async def _wait_for(pilot: Any, predicate: Callable[[], bool]) -> None:
    for _ in range(100):
        if predicate():
            return
        await pilot.pause(0.01)
    raise AssertionError("condition not reached")


def _three_channels() -> dict[str, Any]:
    return _payload(_node("fifty", 50), _node("nine", 900), _node("ten", 10))


def test_custom_themes_registered() -> None:
    app = _make_app(FakeClient(_payload()))

    assert "livedeck-dark" in app.available_themes
    assert "livedeck-light" in app.available_themes
    assert app.theme == "livedeck-dark"


def test_config_theme_used_when_provided() -> None:
    app = _make_app(FakeClient(_payload()), theme="livedeck-light")

    assert app.theme == "livedeck-light"


def test_initial_load_lists_channels_by_viewers() -> None:
    from textual.widgets import Static

    from livedeck_tui.app import StreamListItem, StreamListView

    client = FakeClient(_three_channels())
    app = _make_app(client, page_size=30)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            assert app.selector.state is SelectorState.LISTING
            list_view = app.query_one("#stream-list", StreamListView)
            names = [item.entry.name for item in list_view.query(StreamListItem)]
            assert names == ["nine", "fifty", "ten"]
            assert list_view.index == 0
            status = str(app.query_one("#status", Static).render())
            assert "3 live channels" in status
            assert "Nine" in status

    asyncio.run(run_app())
    assert client.calls == [("viewer", 30, None)]


def test_arrow_keys_wrap_around() -> None:
    from livedeck_tui.app import StreamListView

    app = _make_app(FakeClient(_three_channels()))

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            list_view = app.query_one("#stream-list", StreamListView)

            await pilot.press("up")
            assert app.selector.cursor == 2
            assert list_view.index == 2

            await pilot.press("down")
            assert app.selector.cursor == 0
            assert list_view.index == 0

            await pilot.press("down", "down")
            assert app.selector.cursor == 2

    asyncio.run(run_app())


def test_highlight_changes_snap_back_to_cursor() -> None:
    from livedeck_tui.app import StreamListView

    app = _make_app(FakeClient(_three_channels()), poll_interval=60.0)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            list_view = app.query_one("#stream-list", StreamListView)

            list_view.index = 2
            await _wait_for(pilot, lambda: list_view.index == 0)
            assert app.selector.cursor == 0

    asyncio.run(run_app())


def test_redraw_timer_refreshes_status_line() -> None:
    from textual.widgets import Static

    app = _make_app(FakeClient(_three_channels()), poll_interval=0.05)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            status = app.query_one("#status", Static)
            status.update("stale")
            await pilot.pause()
            await _wait_for(pilot, lambda: "3 live channels" in str(status.render()))
            assert "Nine" in str(status.render())

    asyncio.run(run_app())


def test_enter_plays_selected_channel() -> None:
    launcher = FakeLauncher()
    app = _make_app(FakeClient(_three_channels()), launcher)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("down")
            await pilot.press("enter")
            await _wait_for(pilot, lambda: bool(launcher.played))
            assert launcher.played == ["fifty"]
            assert app.selector.state is SelectorState.LISTING
            assert app.selector.cursor == 1

    asyncio.run(run_app())


def test_refresh_resets_cursor_and_resorts() -> None:
    from livedeck_tui.app import StreamListItem, StreamListView

    refreshed = _payload(_node("late", 5), _node("rising", 5000))
    client = FakeClient(_three_channels(), refreshed)
    app = _make_app(client)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("down", "down")
            assert app.selector.cursor == 2

            await pilot.press("r")
            await _wait_for(pilot, lambda: len(client.calls) == 2)
            await _settle(app, pilot)

            assert app.selector.cursor == 0
            names = [entry.name for entry in app.selector.entries]
            assert names == ["rising", "late"]
            list_view = app.query_one("#stream-list", StreamListView)
            assert [item.entry.name for item in list_view.query(StreamListItem)] == names

    asyncio.run(run_app())


def test_escape_quits_without_fetching_again() -> None:
    client = FakeClient(_three_channels())
    app = _make_app(client)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("escape")
            assert app.selector.state is SelectorState.EXITING

    asyncio.run(run_app())
    assert len(client.calls) == 1
    assert app.return_code == 0


def test_empty_catalog_exits_without_listing() -> None:
    from livedeck_tui.app import NO_STREAMS_MESSAGE, StreamListItem

    launcher = FakeLauncher()
    app = _make_app(FakeClient(_payload()), launcher, empty_exit_delay=0.3)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            assert app.selector.state in {SelectorState.EMPTY, SelectorState.EXITING}
            assert not list(app.query(StreamListItem))
            await pilot.press("enter")
            await _wait_for(pilot, lambda: app.selector.state is SelectorState.EXITING)

    asyncio.run(run_app())
    assert launcher.played == []
    assert app.return_code == 0
    assert NO_STREAMS_MESSAGE == "No online stream right now."


def test_empty_refresh_exits() -> None:
    client = FakeClient(_three_channels(), _payload())
    app = _make_app(client, empty_exit_delay=0.05)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("r")
            await _wait_for(pilot, lambda: app.selector.state is SelectorState.EXITING)

    asyncio.run(run_app())
    assert len(client.calls) == 2


def test_fetch_failure_exits_with_error() -> None:
    app = _make_app(FakeClient(TransportError("POST https://gql.twitch.tv/gql failed")))

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _wait_for(pilot, lambda: app.selector.state is SelectorState.EXITING)

    asyncio.run(run_app())
    assert app.return_code == 1


def test_playback_failure_exits_with_error() -> None:
    launcher = FakeLauncher(error=PlaybackError("Failed to start vlc"))
    app = _make_app(FakeClient(_three_channels()), launcher)

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("enter")
            await _wait_for(pilot, lambda: app.selector.state is SelectorState.EXITING)

    asyncio.run(run_app())
    assert launcher.played == ["nine"]
    assert app.return_code == 1
