from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from typing import Optional

from ipc.protocol.errors import IpcError
from soundcloud_rpc.config import CLIENT_CONFIG, ConfigError, load_config
from soundcloud_rpc.core import PresenceLink, TransportChannel
from soundcloud_rpc.features import SoundCloudSource, TrackWatcher

logger = logging.getLogger(__name__)


def _install_stop_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows; Ctrl+C surfaces as KeyboardInterrupt there
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)


async def run_client(
    channel: Optional[TransportChannel] = None,
    source: Optional[SoundCloudSource] = None,
    stop: Optional[asyncio.Event] = None,
) -> None:
    if channel is None:
        channel = TransportChannel(
            candidates=CLIENT_CONFIG["pipe_candidates"],
            connect_timeout=CLIENT_CONFIG["connect_timeout"],
        )
    link = await asyncio.to_thread(PresenceLink, CLIENT_CONFIG["discord_app_id"], channel)
    if source is None:
        source = SoundCloudSource(
            CLIENT_CONFIG["soundcloud_client_id"],
            CLIENT_CONFIG["soundcloud_auth_token"],
            timeout=CLIENT_CONFIG["request_timeout"],
        )
    watcher = TrackWatcher(
        source,
        link,
        interval=CLIENT_CONFIG["update_interval_seconds"],
        debug=CLIENT_CONFIG["debug_mode"],
    )

    if stop is None:
        stop = asyncio.Event()
        _install_stop_handlers(stop)
    logger.info("Starting SoundCloud Discord RPC...")
    watcher.start()
    logger.info("RPC started. Press Ctrl+C to exit.")
    try:
        await stop.wait()
    finally:
        await watcher.stop()
        await source.close()
        if link.ready:
            # Closing shuts the socket down, which also unblocks a reply read
            # still pending in an abandoned tick's worker thread.
            try:
                await asyncio.to_thread(link.close)
            except IpcError as exc:
                logger.warning("Discord IPC close failed: %s", exc)
        logger.info("Shutdown complete")


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        load_config()
    except ConfigError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return 1

    try:
        asyncio.run(run_client())
    except KeyboardInterrupt:
        pass
    except IpcError as exc:
        logger.critical("Application terminated unexpectedly: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
