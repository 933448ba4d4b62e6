"""Command line entry point for Livedeck TUI."""
from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Iterable, Optional

from . import __version__
from .app import LivedeckApp
from .config import CONFIG_PATH, MAX_PAGE_SIZE, AppConfig, load_config
from .errors import LivedeckError
from .logging_utils import configure_logging, get_logger
from .player import PlaybackLauncher
from .themes import CUSTOM_THEMES
from .twitch import TwitchClient

log = get_logger(__name__)


def _sorted_theme_names() -> list[str]:
    """Return the bundled theme catalog in a consistent order."""

    return sorted(CUSTOM_THEMES)


def _page_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid page size: {value!r}") from None
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise argparse.ArgumentTypeError(f"page size must be between 1 and {MAX_PAGE_SIZE}")
    return size


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="List the live channels a Twitch user follows and play one"
    )
    parser.add_argument(
        "user",
        nargs="?",
        help="Twitch username whose followed live channels are listed",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="Path to configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--player",
        default=None,
        help="Media player executable to launch (default: auto-detect)",
    )
    parser.add_argument(
        "--client-id",
        default=None,
        help="Override the anonymous Twitch client identifier",
    )
    parser.add_argument(
        "--scrape-client-id",
        action="store_true",
        default=None,
        help="Scrape the client identifier from the Twitch homepage",
    )
    parser.add_argument(
        "--page-size",
        type=_page_size,
        default=None,
        help=f"Number of followed channels to consider (1-{MAX_PAGE_SIZE})",
    )
    theme_names = ", ".join(_sorted_theme_names())
    parser.add_argument(
        "--theme",
        default=None,
        help=f"Select the application theme. Available options: {theme_names}.",
    )
    parser.add_argument(
        "--list-themes",
        action="store_true",
        help="List available themes and exit.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LIVEDECK_TUI_LOG_LEVEL for this invocation",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write logs to this file instead of the default or LIVEDECK_TUI_LOG_FILE",
    )
    args = parser.parse_args(argv)
    if not args.list_themes and not (args.user and args.user.strip()):
        parser.error("a Twitch username is required")
    return args


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return *config* with command line overrides applied."""

    overrides: dict[str, object] = {}
    if args.player is not None:
        overrides["player"] = args.player
    if args.client_id is not None:
        overrides["client_id"] = args.client_id
    if args.scrape_client_id is not None:
        overrides["scrape_client_id"] = args.scrape_client_id
    if args.page_size is not None:
        overrides["page_size"] = args.page_size
    if args.theme is not None:
        overrides["theme"] = args.theme
    if overrides:
        log.debug("Applying command line overrides: %s", sorted(overrides))
    return dataclasses.replace(config, **overrides)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    if args.list_themes:
        for theme_name in _sorted_theme_names():
            print(theme_name)
        return
    configure_logging(
        level=args.log_level,
        log_file=str(args.log_file) if args.log_file is not None else None,
    )
    log.info("CLI invoked for user=%s with config=%s", args.user, args.config)
    config = apply_overrides(load_config(args.config), args)
    try:
        client = TwitchClient.from_config(config)
    except LivedeckError as exc:
        log.error("Failed to set up Twitch client: %s", exc)
        print(f"Error ({exc.kind}): {exc}", file=sys.stderr)
        raise SystemExit(1) from None
    launcher = PlaybackLauncher(
        client, player=config.player, playlist_dir=config.playlist_dir
    )
    app = LivedeckApp(args.user.strip(), client=client, launcher=launcher, config=config)
    # The terminal belongs to the TUI from here on; keep logging in the file only.
    configure_logging(console=False)
    log.info("Launching Textual application")
    try:
        app.run()
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received; exiting application")
        raise SystemExit(130) from None
    return_code: Optional[int] = app.return_code
    if return_code:
        raise SystemExit(return_code)


if __name__ == "__main__":  # pragma: no cover
    main()
