from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Track:
    """Most recently played track as seen by the watcher."""

    title: Optional[str] = None
    artist: Optional[str] = None
    artwork_url: Optional[str] = None
    link: Optional[str] = None

    def same_identity(self, other: "Track") -> bool:
        """Only title and artist decide whether the status needs refreshing."""
        return self.title == other.title and self.artist == other.artist


__all__ = ["Track"]
