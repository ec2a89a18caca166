"""Feed client classification and status definitions."""

from __future__ import annotations

from enum import Enum


class ClientType(str, Enum):
    """Kinds of feed a client can ingest."""

    ADSB = "ADSB"
    MLAT = "MLAT"
    AIS = "AIS"
    APRS = "APRS"


class ClientState(str, Enum):
    """Lifecycle of a client's background poll loop."""

    CREATED = "CREATED"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


class ClientStatus(str, Enum):
    """Health of a client as seen by monitoring.

    ONLINE means the loop runs and data arrived within the timeout; STALE
    means the loop runs but data is overdue; OFFLINE means the loop is not
    running; DISABLED means the client could not be configured.
    """

    ONLINE = "ONLINE"
    STALE = "STALE"
    OFFLINE = "OFFLINE"
    DISABLED = "DISABLED"


__all__ = ["ClientState", "ClientStatus", "ClientType"]
