"""Player detection and playback helpers."""
from __future__ import annotations

import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence

from .errors import PlaybackError, PlayerNotFoundError
from .logging_utils import get_logger
from .twitch import PlaybackToken

PLAYLIST_SUFFIX = ".m3u8"

_WINDOWS_PLAYER_CANDIDATES: Sequence[str] = (
    "vlc",
    r"C:\Program Files\VideoLAN\VLC\vlc.exe",
    r"C:\Program Files (x86)\VideoLAN\VLC\vlc.exe",
    "mpv",
)
_DARWIN_PLAYER_CANDIDATES: Sequence[str] = (
    "mpv",
    "vlc",
    "/Applications/VLC.app/Contents/MacOS/VLC",
)
_POSIX_PLAYER_CANDIDATES: Sequence[str] = ("mpv", "vlc", "ffplay")

log = get_logger(__name__)


class PlaylistSource(Protocol):
    def fetch_playback_token(self, channel: str) -> PlaybackToken: ...

    def fetch_hls_playlist(self, channel: str, token: PlaybackToken) -> str: ...


@dataclass(slots=True)
class PlayerCommand:
    """Describe a player invocation."""

    executable: str
    args: list[str]

    def as_sequence(self) -> list[str]:
        return [self.executable, *self.args]


def default_player_candidates(platform: Optional[str] = None) -> Sequence[str]:
    """Return the player executables to probe on *platform*."""

    platform = platform or sys.platform
    if platform.startswith("win"):
        return _WINDOWS_PLAYER_CANDIDATES
    if platform == "darwin":
        return _DARWIN_PLAYER_CANDIDATES
    return _POSIX_PLAYER_CANDIDATES


def detect_player(
    preferred: Optional[str] = None,
    *,
    candidates: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """Return the path to the first available player executable."""

    search_order: list[str] = []
    if preferred:
        preferred_str = str(preferred)
        log.debug("Preferred player requested: %s", preferred_str)
        search_order.append(preferred_str)
    for candidate in candidates if candidates is not None else default_player_candidates():
        if candidate not in search_order:
            search_order.append(candidate)
    for executable in search_order:
        path = shutil.which(executable)
        if path:
            log.info("Selected player executable: %s (from candidate %s)", path, executable)
            return path
        log.debug("Player candidate %s not found", executable)
    return None


def build_player_command(
    playlist: Path, *, preferred: Optional[str] = None
) -> PlayerCommand:
    """Construct a player command that opens *playlist*."""

    executable = detect_player(preferred)
    if executable is None:
        log.error("Unable to locate supported media player")
        names = ", ".join(Path(candidate).name for candidate in default_player_candidates())
        raise PlayerNotFoundError(
            f"No supported media player found ({names}); set one with --player"
        )
    command = PlayerCommand(executable=executable, args=[str(playlist)])
    log.info("Built player command: %s", command.as_sequence())
    return command


def playlist_path(channel: str, directory: Optional[Path] = None) -> Path:
    """Return the temporary playlist location for *channel*."""

    if not channel or channel in {".", ".."} or Path(channel).name != channel or "\\" in channel:
        raise PlaybackError(f"Invalid channel name for playlist file: {channel!r}")
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    return base / f"{channel}{PLAYLIST_SUFFIX}"


class PlaybackLauncher:
    """Resolve a channel playlist and hand it to an external player.

    :meth:`play` blocks until the player exits. The playlist file only
    exists for the duration of the call.
    """

    def __init__(
        self,
        client: PlaylistSource,
        *,
        player: Optional[str] = None,
        playlist_dir: Optional[Path] = None,
    ) -> None:
        self._client = client
        self._player = player
        self._playlist_dir = playlist_dir

    def play(self, channel: str) -> int:
        path = playlist_path(channel, self._playlist_dir)
        token = self._client.fetch_playback_token(channel)
        playlist = self._client.fetch_hls_playlist(channel, token)
        command = build_player_command(path, preferred=self._player)
        try:
            try:
                path.write_text(playlist, encoding="utf8")
            except OSError as exc:
                raise PlaybackError(f"Failed to write playlist {path}: {exc}") from exc
            log.debug("Wrote playlist for %s to %s", channel, path)
            try:
                result = subprocess.run(
                    command.as_sequence(),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
            except OSError as exc:
                raise PlaybackError(
                    f"Failed to start {command.executable}: {exc}"
                ) from exc
        finally:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                log.warning("Could not remove playlist %s: %s", path, exc)
        log.info("Player for %s exited with code %s", channel, result.returncode)
        return result.returncode


__all__ = [
    "PlaybackLauncher",
    "PlayerCommand",
    "build_player_command",
    "default_player_candidates",
    "detect_player",
    "playlist_path",
]
