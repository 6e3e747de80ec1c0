from .activity import build_activity
from .soundcloud import SoundCloudSource, parse_track_info
from .track import Track
from .watcher import TrackWatcher

__all__ = ["build_activity", "SoundCloudSource", "parse_track_info", "Track", "TrackWatcher"]
