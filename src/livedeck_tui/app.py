"""Textual application listing live followed channels."""
from __future__ import annotations

import asyncio
from typing import Optional, Protocol

try:
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.timer import Timer
    from textual.widgets import Footer, Header, ListItem, ListView, Static
except ModuleNotFoundError as exc:  # pragma: no cover - dependency guard
    raise ModuleNotFoundError(
        "The 'textual' package is required to run livedeck_tui. "
        "Install dependencies with 'pip install -e .[dev]' or 'pip install livedeck-tui'."
    ) from exc

from .catalog import FollowedStreamsSource, StreamEntry, fetch_catalog, render_entry
from .config import AppConfig
from .errors import LivedeckError
from .logging_utils import get_logger
from .selector import SelectorState, StreamSelector
from .themes import CUSTOM_THEMES, DEFAULT_THEME_NAME

log = get_logger(__name__)

NO_STREAMS_MESSAGE = "No online stream right now."

# Actions that only make sense while a catalog is being listed.
_LISTING_ACTIONS = frozenset({"cursor_up", "cursor_down", "play", "refresh"})


class Launcher(Protocol):
    def play(self, channel: str) -> int: ...


class StreamListItem(ListItem):
    """Render a live channel in the list."""

    def __init__(self, entry: StreamEntry) -> None:
        self.entry = entry
        super().__init__(Static(render_entry(entry), classes="stream-entry"))


class StreamListView(ListView, can_focus=False):
    """List of live channels; the highlight is driven by the app."""


DEFAULT_CSS = """
Screen {
    layout: vertical;
}

#stream-list {
    height: 1fr;
}

#stream-list > StreamListItem {
    padding: 0 1;
    height: auto;
}

#stream-list > StreamListItem.-highlight {
    background: $primary 40%;
}

#status {
    height: 1;
    padding: 0 1;
    background: $panel;
    color: $text;
}
"""


class LivedeckApp(App[None]):
    """Main Textual application."""

    CSS = DEFAULT_CSS
    TITLE = "livedeck"
    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("enter", "play", "Play"),
        Binding("r", "refresh", "Refresh"),
        Binding("escape", "quit", "Quit", priority=True),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def _register_custom_themes(self) -> None:
        for theme in CUSTOM_THEMES.values():
            self.register_theme(theme)

    def _apply_requested_theme(self, requested: Optional[str]) -> None:
        preferred = requested or DEFAULT_THEME_NAME
        theme = self.get_theme(preferred)
        if theme is None:
            if requested:
                log.warning(
                    "Requested theme '%s' is unavailable; falling back to %s",
                    requested,
                    DEFAULT_THEME_NAME,
                )
            fallback = self.get_theme(DEFAULT_THEME_NAME)
            if fallback is not None:
                self.theme = fallback.name
            return
        log.debug("Applying theme %s", theme.name)
        self.theme = theme.name

    def __init__(
        self,
        user: str,
        *,
        client: FollowedStreamsSource,
        launcher: Launcher,
        config: Optional[AppConfig] = None,
    ) -> None:
        super().__init__()
        self._config = config or AppConfig()
        self._register_custom_themes()
        self._apply_requested_theme(self._config.theme)
        self._user = user
        self._client = client
        self._launcher = launcher
        self.selector = StreamSelector()
        self._redraw_timer: Optional[Timer] = None
        self._playing: Optional[StreamEntry] = None
        self.sub_title = f"Live channels followed by {user}"
        log.info("LivedeckApp initialized for user %s", user)

    def compose(self) -> ComposeResult:
        yield Header()
        yield StreamListView(id="stream-list")
        yield Static("", id="status", markup=False)
        yield Footer()

    def on_mount(self) -> None:
        log.debug("Application mounted")
        self._redraw_timer = self.set_interval(self._config.poll_interval, self._redraw)
        self._start_catalog_load()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> Optional[bool]:
        if action in _LISTING_ACTIONS:
            return self.selector.is_listing and self._playing is None
        return True

    def _set_status(self, message: str) -> None:
        self.query_one("#status", Static).update(message)

    def _start_catalog_load(self) -> None:
        self.selector.start_loading()
        self.refresh_bindings()
        self._set_status(f"Loading live channels followed by {self._user}…")
        self.run_worker(
            self._load_catalog(), name="catalog", group="catalog", exclusive=True
        )

    async def _load_catalog(self) -> None:
        try:
            entries = await asyncio.to_thread(
                fetch_catalog,
                self._client,
                self._user,
                page_size=self._config.page_size,
            )
        except LivedeckError as exc:
            self._fail(exc)
            return
        state = self.selector.load(entries)
        self.refresh_bindings()
        if state is SelectorState.EMPTY:
            await self._show_empty()
        elif state is SelectorState.LISTING:
            await self._populate_list()

    async def _populate_list(self) -> None:
        list_view = self.query_one("#stream-list", StreamListView)
        await list_view.clear()
        await list_view.extend(StreamListItem(entry) for entry in self.selector.entries)
        self._redraw()

    async def _show_empty(self) -> None:
        log.info("No live followed channels for %s", self._user)
        await self.query_one("#stream-list", StreamListView).clear()
        self._set_status(NO_STREAMS_MESSAGE)
        self.set_timer(self._config.empty_exit_delay, self._exit_empty)

    def _exit_empty(self) -> None:
        self.selector.quit()
        self.exit(message=NO_STREAMS_MESSAGE)

    def _fail(self, exc: LivedeckError) -> None:
        log.error("Fatal %s error: %s", exc.kind, exc)
        self.selector.quit()
        self.exit(return_code=1, message=f"Error ({exc.kind}): {exc}")

    def _redraw(self) -> None:
        """Sync the highlighted row and status line with the selector."""

        if not self.selector.is_listing or self._playing is not None:
            return
        cursor = self.selector.cursor
        entry = self.selector.current
        if cursor is None or entry is None:
            return
        list_view = self.query_one("#stream-list", StreamListView)
        if list_view.index != cursor:
            list_view.index = cursor
        total = len(self.selector.entries)
        self._set_status(
            f"{total} live channel{'s' if total != 1 else ''} · {cursor + 1}/{total} · "
            f"{entry.display_name}"
        )

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        # The selector owns the cursor; undo highlights from mouse clicks.
        event.stop()
        cursor = self.selector.cursor
        if cursor is not None and event.list_view.index != cursor:
            event.list_view.index = cursor

    def action_cursor_up(self) -> None:
        self.selector.move_up()
        self._redraw()

    def action_cursor_down(self) -> None:
        self.selector.move_down()
        self._redraw()

    def action_refresh(self) -> None:
        log.info("Refreshing live channels for %s", self._user)
        self._start_catalog_load()

    async def action_play(self) -> None:
        entry = self.selector.current
        if entry is None:
            return
        self._set_status(f"Playing {entry.display_name}…")
        log.info("Starting playback for %s", entry.name)
        self._playing = entry
        try:
            return_code = await asyncio.to_thread(self._launcher.play, entry.name)
        except LivedeckError as exc:
            self._fail(exc)
            return
        finally:
            self._playing = None
        log.debug("Playback for %s finished with code %s", entry.name, return_code)
        self._redraw()

    async def action_quit(self) -> None:
        log.info("Quit requested")
        self.selector.quit()
        self.exit()


__all__ = ["LivedeckApp", "NO_STREAMS_MESSAGE", "StreamListItem"]
