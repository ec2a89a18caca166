"""Common surface shared by every feed client."""

from __future__ import annotations

import abc
from datetime import datetime, timedelta, timezone
import logging

from skytrack.domain.clients import ClientState, ClientStatus, ClientType
from skytrack.domain.track_table import TrackTable
from skytrack.models.clients import ClientInfo


class Client(abc.ABC):
    """A feed reader that writes into the shared track table.

    ``online`` only says the reader has been started; whether data is
    actually flowing is ``healthy``, judged from the last packet time and
    ``timeout_ms``.
    """

    def __init__(self, name: str, track_table: TrackTable) -> None:
        self.name = name
        self.track_table = track_table
        self.online = False
        self.state = ClientState.CREATED
        self.last_packet_received: datetime | None = None

    @property
    @abc.abstractmethod
    def client_type(self) -> ClientType:
        """Kind of feed this client ingests."""

    @property
    @abc.abstractmethod
    def timeout_ms(self) -> int:
        """Silence longer than this marks the client as unhealthy."""

    @property
    @abc.abstractmethod
    def logger(self) -> logging.Logger:
        """Logger the client reports through."""

    @property
    def configured(self) -> bool:
        return True

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin reading the feed in the background."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Stop reading and wait until background work has finished."""

    def update_packet_received_time(self, when: datetime | None = None) -> None:
        self.last_packet_received = when or datetime.now(timezone.utc)

    @property
    def healthy(self) -> bool:
        if not self.online or self.last_packet_received is None:
            return False
        silence = datetime.now(timezone.utc) - self.last_packet_received
        return silence <= timedelta(milliseconds=self.timeout_ms)

    @property
    def status(self) -> ClientStatus:
        if not self.configured:
            return ClientStatus.DISABLED
        if not self.online:
            return ClientStatus.OFFLINE
        return ClientStatus.ONLINE if self.healthy else ClientStatus.STALE

    @property
    def stats(self) -> dict[str, float | int | None]:
        return {}

    def describe(self) -> ClientInfo:
        return ClientInfo(
            name=self.name,
            client_type=self.client_type,
            state=self.state,
            status=self.status,
            online=self.online,
            healthy=self.healthy,
            last_packet_received=self.last_packet_received,
            timeout_ms=self.timeout_ms,
            stats=self.stats,
        )


__all__ = ["Client"]
