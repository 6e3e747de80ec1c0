from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from .track import Track

logger = logging.getLogger(__name__)

PLAY_HISTORY_URL = "https://api-v2.soundcloud.com/me/play-history/tracks"
APP_VERSION = "1722430138"
ARTWORK_SUFFIX = "-large.jpg"
ARTWORK_HIRES_SUFFIX = "-t500x500.jpg"


def upgrade_artwork(url: Optional[str]) -> Optional[str]:
    """Swap SoundCloud's 100px artwork for the 500px variant."""
    if not url:
        return None
    if url.endswith(ARTWORK_SUFFIX):
        return url[: -len(ARTWORK_SUFFIX)] + ARTWORK_HIRES_SUFFIX
    return url


def parse_track_info(data: Dict[str, Any]) -> Optional[Track]:
    """Extract the newest entry of a play-history response."""
    collection = data.get("collection")
    if not isinstance(collection, list) or not collection:
        return None
    track = collection[0].get("track") or {}
    user = track.get("user") or {}
    return Track(
        title=track.get("title"),
        artist=user.get("username"),
        artwork_url=upgrade_artwork(track.get("artwork_url")),
        link=track.get("permalink_url"),
    )


class SoundCloudSource:
    """Reads the user's most recently played track from the SoundCloud web API."""

    def __init__(
        self,
        client_id: str,
        auth_token: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10,
    ) -> None:
        self.client_id = client_id
        self.auth_token = auth_token
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._last_title: Optional[str] = None

    def _params(self) -> Dict[str, str]:
        return {
            "client_id": self.client_id,
            "limit": "1",
            "offset": "0",
            "linked_partitioning": "0",
            "app_version": APP_VERSION,
            "app_locale": "en",
        }

    async def fetch_latest(self) -> Optional[Track]:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        async with self._session.get(
            PLAY_HISTORY_URL,
            params=self._params(),
            headers={"Authorization": f"OAuth {self.auth_token}"},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status != 200:
                logger.warning("API request failed with status code: %s", response.status)
                return None
            data = await response.json(content_type=None)

        track = parse_track_info(data) if isinstance(data, dict) else None
        if track is None:
            logger.info("No tracks found")
        elif track.title != self._last_title:
            logger.info("Retrieved track: %s by %s", track.title, track.artist)
            self._last_title = track.title
        return track

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None


__all__ = ["SoundCloudSource", "parse_track_info", "upgrade_artwork", "PLAY_HISTORY_URL"]
