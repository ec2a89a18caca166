"""Read-only access to the shared track table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status

from skytrack.domain.track_table import TrackTable
from skytrack.models import AircraftTrack

router = APIRouter(prefix="/api/v1", tags=["tracks"])

logger = logging.getLogger("skytrack.api.tracks")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _track_table(request: Request) -> TrackTable:
    table: TrackTable | None = getattr(request.app.state, "track_table", None)
    if table is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Track table not initialised",
        )
    return table


@router.get("/tracks", response_model=list[AircraftTrack], summary="List tracks")
def list_tracks(request: Request) -> list[AircraftTrack]:
    """Return every track, most recently updated first."""

    tracks = _track_table(request).snapshot()
    tracks.sort(key=lambda track: track.metadata_time or _EPOCH, reverse=True)
    return tracks


@router.get("/tracks/{key}", response_model=AircraftTrack, summary="Get one track")
def get_track(key: str, request: Request) -> AircraftTrack:
    track = _track_table(request).get(key.strip().lower())
    if track is None:
        logger.debug("Track %s not found", key)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Track not found")
    return track.model_copy(deep=True)
