"""Pydantic models for SkyTrack."""

from .tracks import (
    AIRCRAFT_CATEGORY_DESCRIPTIONS,
    AircraftTrack,
    AircraftUpdate,
    PositionFix,
)
from .clients import ClientInfo

__all__ = [
    "AIRCRAFT_CATEGORY_DESCRIPTIONS",
    "AircraftTrack",
    "AircraftUpdate",
    "ClientInfo",
    "PositionFix",
]
