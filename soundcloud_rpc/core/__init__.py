from .channel import TransportChannel
from .link import LinkState, PresenceLink

__all__ = ["TransportChannel", "LinkState", "PresenceLink"]
