"""Domain types shared across SkyTrack components."""

from .clients import ClientState, ClientStatus, ClientType
from .track_table import TrackFactory, TrackTable

__all__ = [
    "ClientState",
    "ClientStatus",
    "ClientType",
    "TrackFactory",
    "TrackTable",
]
