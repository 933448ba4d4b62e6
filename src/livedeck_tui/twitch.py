"""Anonymous access to the Twitch GraphQL and HLS endpoints."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib import error, request
from urllib.parse import quote, urlencode

from .config import DEFAULT_CLIENT_ID, DEFAULT_PAGE_SIZE, DEFAULT_USER_AGENT, AppConfig
from .errors import ResponseShapeError, TransportError
from .logging_utils import get_logger

log = get_logger(__name__)

TWITCH_HOMEPAGE = "https://www.twitch.tv"
TWITCH_API_GQL = "https://gql.twitch.tv/gql"
TWITCH_API_USHER = "https://usher.ttvnw.net/api/channel/hls/"

CLIENT_ID_MARKER = "Client-ID"
_CLIENT_ID_PREFIX = 'Client-ID":"'
_CLIENT_ID_WINDOW = 42

PLAYBACK_ACCESS_TOKEN_HASH = (
    "0828119ded1c13477966434e15800ff57ddacf13ba1911c129dc2200705b0712"
)

# Identity of the web player; usher rejects requests without it.
PLAYER_IDENTITY_PARAMS: tuple[tuple[str, str], ...] = (
    ("player", "twitchweb"),
    ("p", "975642"),
    ("type", "any"),
    ("allow_source", "true"),
)

FOLLOWED_STREAMS_QUERY = """
query FollowedLiveStreams($asUser: String, $first: Int, $after: Cursor) {
  user(login: $asUser) {
    follows(first: $first, after: $after) {
      edges {
        node {
          broadcastSettings {
            title
          }
          channel {
            name
            displayName
          }
          stream {
            viewersCount
            type
            height
            averageFPS
            game {
              displayName
            }
          }
        }
      }
    }
  }
}
""".strip()


@dataclass(frozen=True, slots=True)
class PlaybackToken:
    """Short-lived credential required to fetch a channel playlist."""

    token: str = field(repr=False)
    signature: str


def _http_request(
    url: str,
    *,
    data: Optional[bytes] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> str:
    """Perform a blocking HTTP request and return the decoded body."""

    method = "POST" if data is not None else "GET"
    log.debug("%s %s", method, url.split("?", 1)[0])
    req = request.Request(url, data=data, headers=dict(headers or {}), method=method)
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    try:
        with request.urlopen(req, **kwargs) as response:
            charset = response.headers.get_content_charset() or "utf8"
            return response.read().decode(charset, errors="replace")
    except error.HTTPError as exc:
        raise TransportError(f"{method} {url} returned HTTP {exc.code}") from exc
    except error.URLError as exc:
        raise TransportError(f"{method} {url} failed: {exc.reason}") from exc
    except OSError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc


def _decode_json(text: str, *, what: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResponseShapeError(f"{what} response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ResponseShapeError(f"{what} response is not a JSON object")
    return payload


def _graphql_error_summary(payload: Mapping[str, Any]) -> Optional[str]:
    errors = payload.get("errors")
    if not errors:
        return None
    messages: list[str] = []
    if isinstance(errors, list):
        for entry in errors:
            if isinstance(entry, dict) and entry.get("message"):
                messages.append(str(entry["message"]))
    return "; ".join(messages) or "unknown GraphQL error"


def extract_client_id(
    *, user_agent: str = DEFAULT_USER_AGENT, timeout: Optional[float] = None
) -> str:
    """Scrape the anonymous web client identifier from the Twitch homepage."""

    log.info("Scraping client id from %s", TWITCH_HOMEPAGE)
    content = _http_request(
        TWITCH_HOMEPAGE, headers={"User-Agent": user_agent}, timeout=timeout
    )
    index = content.find(CLIENT_ID_MARKER)
    if index < 0:
        raise ResponseShapeError(f"Can't find {CLIENT_ID_MARKER} in {TWITCH_HOMEPAGE}")
    window = content[index : index + _CLIENT_ID_WINDOW]
    if not window.startswith(_CLIENT_ID_PREFIX) or len(window) < _CLIENT_ID_WINDOW:
        raise ResponseShapeError(
            f"Unexpected {CLIENT_ID_MARKER} format in {TWITCH_HOMEPAGE}: {window!r}"
        )
    client_id = window[len(_CLIENT_ID_PREFIX) :]
    log.info("Using scraped client id %s", client_id)
    return client_id


class TwitchClient:
    """Blocking client for the handful of Twitch calls the picker needs."""

    def __init__(
        self,
        client_id: str = DEFAULT_CLIENT_ID,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: Optional[float] = None,
    ) -> None:
        self.client_id = client_id
        self.user_agent = user_agent
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: AppConfig) -> "TwitchClient":
        if config.scrape_client_id:
            client_id = extract_client_id(
                user_agent=config.user_agent, timeout=config.request_timeout
            )
        else:
            client_id = config.client_id
        return cls(client_id, user_agent=config.user_agent, timeout=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "Client-Id": self.client_id,
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

    def _post_gql(self, payload: Mapping[str, Any], *, what: str) -> dict[str, Any]:
        body = json.dumps(payload).encode("utf8")
        text = _http_request(
            TWITCH_API_GQL, data=body, headers=self._headers(), timeout=self.timeout
        )
        decoded = _decode_json(text, what=what)
        summary = _graphql_error_summary(decoded)
        if summary is not None:
            if decoded.get("data") is None:
                raise ResponseShapeError(f"{what} query failed: {summary}")
            log.warning("%s query returned partial data: %s", what, summary)
        return decoded

    def fetch_followed_streams(
        self,
        user: str,
        *,
        first: int = DEFAULT_PAGE_SIZE,
        after: Optional[str] = None,
    ) -> dict[str, Any]:
        """Return the raw followed-channels query result for *user*.

        Only the page selected by ``first``/``after`` is requested; callers
        pass ``after=None`` so follows beyond the first page are not listed.
        """

        if not user or not user.strip():
            raise ValueError("A Twitch username is required")
        log.info("Fetching followed channels for %s (first=%d)", user, first)
        payload = {
            "operationName": "FollowedLiveStreams",
            "query": FOLLOWED_STREAMS_QUERY,
            "variables": {"asUser": user.strip(), "first": first, "after": after},
        }
        return self._post_gql(payload, what="Followed channels")

    def fetch_playback_token(self, channel: str) -> PlaybackToken:
        log.info("Requesting playback access token for %s", channel)
        payload = {
            "operationName": "PlaybackAccessToken",
            "extensions": {
                "persistedQuery": {
                    "version": 1,
                    "sha256Hash": PLAYBACK_ACCESS_TOKEN_HASH,
                }
            },
            "variables": {
                "isLive": True,
                "login": channel,
                "isVod": False,
                "vodID": "",
                "playerType": "embed",
            },
        }
        decoded = self._post_gql(payload, what="Playback access token")
        data = decoded.get("data")
        access = data.get("streamPlaybackAccessToken") if isinstance(data, dict) else None
        if not isinstance(access, dict):
            raise ResponseShapeError(
                f"No playback access token returned for {channel}; is the channel live?"
            )
        token = access.get("value")
        signature = access.get("signature")
        if not isinstance(token, str) or not isinstance(signature, str):
            raise ResponseShapeError(
                f"Playback access token for {channel} is missing value or signature"
            )
        return PlaybackToken(token=token, signature=signature)

    def fetch_hls_playlist(self, channel: str, token: PlaybackToken) -> str:
        params = [*PLAYER_IDENTITY_PARAMS, ("token", token.token), ("sig", token.signature)]
        url = f"{TWITCH_API_USHER}{quote(channel)}.m3u8?{urlencode(params)}"
        log.info("Fetching HLS playlist for %s", channel)
        playlist = _http_request(
            url, headers={"User-Agent": self.user_agent}, timeout=self.timeout
        )
        log.debug("Received %d byte playlist for %s", len(playlist), channel)
        return playlist


__all__ = [
    "FOLLOWED_STREAMS_QUERY",
    "PLAYBACK_ACCESS_TOKEN_HASH",
    "PlaybackToken",
    "TwitchClient",
    "extract_client_id",
]
