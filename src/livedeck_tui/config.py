"""Configuration management for Livedeck TUI."""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from . import __version__
from .logging_utils import get_logger

CONFIG_PATH = Path.home() / ".config" / "livedeck_tui" / "config.yaml"

# Public identifier used by the Twitch web frontend; stable across sessions.
DEFAULT_CLIENT_ID = "kimne78kx3ncx6brgo4mv6wki5h1ko"
DEFAULT_USER_AGENT = f"livedeck-tui/{__version__}"
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_EMPTY_EXIT_DELAY = 2.0

log = get_logger(__name__)


@dataclass(slots=True)
class AppConfig:
    """Top level application configuration."""

    client_id: str = DEFAULT_CLIENT_ID
    scrape_client_id: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    player: Optional[str] = None
    playlist_dir: Optional[Path] = None
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: Optional[float] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    empty_exit_delay: float = DEFAULT_EMPTY_EXIT_DELAY
    theme: Optional[str] = None


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _clean_scalar(value: str) -> str:
    value = value.strip()
    if value.startswith(("'", '"')) and value.endswith(("'", '"')):
        value = value[1:-1]
    return value


def _parse_bool(value: object, *, default: bool = False) -> bool:
    """Coerce *value* into a boolean flag."""

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "yes", "on", "1"}:
            return True
        if normalized in {"false", "no", "off", "0"}:
            return False
    return default


def _parse_positive_float(key: str, value: object, default: Optional[float]) -> Optional[float]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        log.warning("Ignoring invalid %s value %r", key, value)
        return default
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        log.warning("Ignoring invalid %s value %r", key, value)
        return default
    if not math.isfinite(number) or number <= 0:
        log.warning("%s must be a positive number; got %r", key, value)
        return default
    return number


def _parse_page_size(value: object) -> int:
    if value is None or value == "" or isinstance(value, bool):
        return DEFAULT_PAGE_SIZE
    try:
        number = float(str(value).strip())
    except ValueError:
        log.warning("Ignoring invalid page_size value %r", value)
        return DEFAULT_PAGE_SIZE
    if not number.is_integer():
        log.warning("page_size must be a whole number; got %r", value)
        return DEFAULT_PAGE_SIZE
    size = int(number)
    if not 1 <= size <= MAX_PAGE_SIZE:
        log.warning(
            "page_size must be between 1 and %d; got %d", MAX_PAGE_SIZE, size
        )
        return DEFAULT_PAGE_SIZE
    return size


def _optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_config(raw: str) -> dict[str, object]:
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        pass
    else:
        return parsed if isinstance(parsed, dict) else {}

    result: dict[str, object] = {}
    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, separator, remainder = stripped.partition(":")
        if not separator:
            log.debug("Ignoring configuration line without a key: %r", line)
            continue
        value = _clean_scalar(remainder)
        result[key.strip()] = None if value in {"", "null", "~"} else value
    return result


def _dump_config(data: AppConfig) -> str:
    lines: list[str] = []
    for item in fields(data):
        value = getattr(data, item.name)
        if value is None:
            continue
        if isinstance(value, bool):
            rendered = "true" if value else "false"
        else:
            rendered = str(value)
        lines.append(f"{item.name}: {rendered}")
    lines.append("")
    return "\n".join(lines)


def config_from_mapping(data: dict[str, object]) -> AppConfig:
    """Build an :class:`AppConfig` from parsed configuration values."""

    known = {item.name for item in fields(AppConfig)}
    for key in data:
        if key not in known:
            log.warning("Ignoring unknown configuration key %s", key)

    client_id = _optional_text(data.get("client_id")) or DEFAULT_CLIENT_ID
    user_agent = _optional_text(data.get("user_agent")) or DEFAULT_USER_AGENT
    playlist_dir_raw = _optional_text(data.get("playlist_dir"))
    poll_interval = _parse_positive_float(
        "poll_interval", data.get("poll_interval"), DEFAULT_POLL_INTERVAL
    )
    empty_exit_delay = _parse_positive_float(
        "empty_exit_delay", data.get("empty_exit_delay"), DEFAULT_EMPTY_EXIT_DELAY
    )
    return AppConfig(
        client_id=client_id,
        scrape_client_id=_parse_bool(data.get("scrape_client_id"), default=False),
        page_size=_parse_page_size(data.get("page_size")),
        player=_optional_text(data.get("player")),
        playlist_dir=Path(playlist_dir_raw).expanduser() if playlist_dir_raw else None,
        user_agent=user_agent,
        request_timeout=_parse_positive_float(
            "request_timeout", data.get("request_timeout"), None
        ),
        poll_interval=poll_interval,
        empty_exit_delay=empty_exit_delay,
        theme=_optional_text(data.get("theme")),
    )


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration from *path* or return the defaults."""

    config_path = path or CONFIG_PATH
    if not config_path.exists():
        log.info("Configuration file missing at %s; using defaults", config_path)
        return AppConfig()
    log.debug("Loading configuration from %s", config_path)
    raw = config_path.read_text(encoding="utf8")
    config = config_from_mapping(_parse_config(raw))
    log.info(
        "Loaded configuration from %s (page_size=%d, player=%s, scrape_client_id=%s)",
        config_path,
        config.page_size,
        config.player or "auto",
        config.scrape_client_id,
    )
    return config


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    """Persist *config* to disk at *path*."""

    config_path = path or CONFIG_PATH
    log.debug("Writing configuration to %s", config_path)
    _ensure_parent(config_path)
    config_path.write_text(_dump_config(config), encoding="utf8")
    log.info("Configuration saved to %s", config_path)


__all__ = [
    "AppConfig",
    "CONFIG_PATH",
    "DEFAULT_CLIENT_ID",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_USER_AGENT",
    "config_from_mapping",
    "load_config",
    "save_config",
]
