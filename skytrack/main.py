from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request

from skytrack.api import api_router
from skytrack.config import settings
from skytrack.domain.track_table import TrackTable
from skytrack.ingestors import Client, Dump1090Reader

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("skytrack")


def build_clients(track_table: TrackTable) -> list[Client]:
    """Create one reader per configured feed URL."""

    if not settings.dump1090_enabled:
        logger.info("Dump1090 ingestion disabled")
        return []

    clients: list[Client] = []
    for index, url in enumerate(settings.dump1090_urls):
        name = settings.dump1090_name if index == 0 else f"{settings.dump1090_name} {index + 1}"
        clients.append(Dump1090Reader(name, url, track_table))
    return clients


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Start feed clients on startup and stop them on shutdown."""

    app.state.track_table = TrackTable()
    app.state.clients = build_clients(app.state.track_table)
    for client in app.state.clients:
        await client.start()
    logger.info("Started %s feed client(s)", len(app.state.clients))

    try:
        yield
    finally:
        for client in app.state.clients:
            await client.stop()


app = FastAPI(title="SkyTrack", lifespan=lifespan)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)
