"""Selection state for the live stream list."""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from .catalog import StreamEntry, sort_catalog


class SelectorState(Enum):
    LOADING = "loading"
    LISTING = "listing"
    EMPTY = "empty"
    EXITING = "exiting"


class StreamSelector:
    """Catalog plus a wrap-around cursor.

    The cursor is a valid index whenever the selector is listing and
    ``None`` when the catalog is empty.
    """

    def __init__(self) -> None:
        self.state = SelectorState.LOADING
        self._entries: tuple[StreamEntry, ...] = ()
        self._cursor: Optional[int] = None

    @property
    def entries(self) -> tuple[StreamEntry, ...]:
        return self._entries

    @property
    def cursor(self) -> Optional[int]:
        return self._cursor

    @property
    def current(self) -> Optional[StreamEntry]:
        if self._cursor is None:
            return None
        return self._entries[self._cursor]

    @property
    def is_listing(self) -> bool:
        return self.state is SelectorState.LISTING

    def start_loading(self) -> None:
        if self.state is not SelectorState.EXITING:
            self.state = SelectorState.LOADING

    def load(self, entries: Iterable[StreamEntry]) -> SelectorState:
        """Replace the catalog, sorted by viewers, and reset the cursor."""

        if self.state is SelectorState.EXITING:
            return self.state
        self._entries = tuple(sort_catalog(entries))
        if self._entries:
            self._cursor = 0
            self.state = SelectorState.LISTING
        else:
            self._cursor = None
            self.state = SelectorState.EMPTY
        return self.state

    def move_up(self) -> Optional[int]:
        if self.is_listing and self._cursor is not None:
            self._cursor = (self._cursor - 1) % len(self._entries)
        return self._cursor

    def move_down(self) -> Optional[int]:
        if self.is_listing and self._cursor is not None:
            self._cursor = (self._cursor + 1) % len(self._entries)
        return self._cursor

    def quit(self) -> None:
        self.state = SelectorState.EXITING


__all__ = ["SelectorState", "StreamSelector"]
