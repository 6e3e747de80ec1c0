from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Dict, Optional, Protocol

from ipc.protocol.errors import IpcError

from .activity import build_activity
from .track import Track

logger = logging.getLogger(__name__)


class TrackSource(Protocol):
    async def fetch_latest(self) -> Optional[Track]: ...


class ActivitySink(Protocol):
    def set_activity(self, activity: Optional[Dict[str, Any]] = None) -> Dict[str, Any]: ...


class TrackWatcher:
    """Periodically polls the track source and pushes changes to Discord."""

    def __init__(
        self,
        source: TrackSource,
        link: ActivitySink,
        interval: float = 5,
        debug: bool = False,
    ) -> None:
        self.source = source
        self.link = link
        self.interval = interval
        self.debug = debug
        self.last_track = Track()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="track-watcher")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self.interval)

    async def tick(self) -> bool:
        """Run one fetch-compare-update cycle. Returns True if an update was attempted."""
        try:
            track = await self.source.fetch_latest()
            if track is None:
                return False
            if track.same_identity(self.last_track):
                return False
            await self._update(track)
            # Stored even when the update failed; the next tick only retries on a new track.
            self.last_track = track
            return True
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Error updating presence: %s", exc)
            return False

    async def _update(self, track: Track) -> None:
        activity = build_activity(track)
        if self.debug:
            logger.info("Attempting to update Discord activity: %s", json.dumps(activity, ensure_ascii=False))
        else:
            logger.info("Attempting to update Discord activity...")

        try:
            await asyncio.to_thread(self.link.set_activity, activity)
        except IpcError as exc:
            if exc.recoverable:
                logger.warning("Failed to update Discord activity: %s", exc)
            else:
                logger.error("Failed to update Discord activity: %s", exc, exc_info=exc)
            return
        logger.info("Successfully updated Discord activity!")


__all__ = ["TrackWatcher", "TrackSource", "ActivitySink"]
