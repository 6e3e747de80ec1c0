from __future__ import annotations

from typing import Any, Dict

from .track import Track

ACTIVITY_TYPE_LISTENING = 2
MISSING_ARTWORK = "missing_artwork"
SMALL_IMAGE = "soundcloud_logo"
BUTTON_LABEL = "Open on SoundCloud"


def build_activity(track: Track) -> Dict[str, Any]:
    """Activity document for a "Listening to" status."""
    activity: Dict[str, Any] = {
        "type": ACTIVITY_TYPE_LISTENING,
        "details": track.title,
        "state": f"by {track.artist}",
        "assets": {
            "large_image": track.artwork_url or MISSING_ARTWORK,
            "large_text": track.title,
            "small_image": SMALL_IMAGE,
            "small_text": "SoundCloud",
        },
    }
    if track.link:
        activity["buttons"] = [{"label": BUTTON_LABEL, "url": track.link}]
    return activity


__all__ = ["build_activity", "MISSING_ARTWORK"]
