"""Feed client status endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from skytrack.ingestors.base import Client
from skytrack.models import ClientInfo

router = APIRouter(prefix="/api/v1", tags=["clients"])


@router.get("/clients", response_model=list[ClientInfo], summary="List feed clients")
def list_clients(request: Request) -> list[ClientInfo]:
    """Report lifecycle state and data freshness for every feed client."""

    clients: list[Client] = getattr(request.app.state, "clients", [])
    return [client.describe() for client in clients]
