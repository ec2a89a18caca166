"""Models describing feed client health for the status API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from skytrack.domain.clients import ClientState, ClientStatus, ClientType


class ClientInfo(BaseModel):
    """Point-in-time view of a feed client."""

    name: str = Field(..., description="Human-readable client name")
    client_type: ClientType = Field(..., description="Kind of feed ingested")
    state: ClientState = Field(..., description="Poll loop lifecycle state")
    status: ClientStatus = Field(..., description="Derived health status")
    online: bool = Field(..., description="Poll loop has been started and not stopped")
    healthy: bool = Field(
        ..., description="Data was received within the client's timeout"
    )
    last_packet_received: Optional[datetime] = Field(
        default=None, description="Time of the most recent successful fetch (UTC)"
    )
    timeout_ms: int = Field(..., description="Health timeout in milliseconds")
    stats: dict[str, float | int | None] = Field(
        default_factory=dict, description="Fetch and error counters"
    )


__all__ = ["ClientInfo"]
