"""Models for aircraft tracks held in the shared track table."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

# ADS-B emitter categories as reported in the dump1090 "category" field.
AIRCRAFT_CATEGORY_DESCRIPTIONS: dict[str, str] = {
    "A0": "No information",
    "A1": "Light",
    "A2": "Small",
    "A3": "Large",
    "A4": "High vortex large",
    "A5": "Heavy",
    "A6": "High performance",
    "A7": "Rotorcraft",
    "B0": "No information",
    "B1": "Glider",
    "B2": "Lighter than air",
    "B3": "Parachutist",
    "B4": "Ultralight",
    "B6": "Unmanned aerial vehicle",
    "B7": "Space vehicle",
    "C0": "No information",
    "C1": "Emergency vehicle",
    "C2": "Service vehicle",
    "C3": "Obstruction",
}

DEFAULT_HISTORY_SECONDS = 300.0
MAX_HISTORY_FIXES = 100


class PositionFix(BaseModel):
    """A single reported position."""

    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")
    timestamp: Optional[datetime] = Field(
        default=None, description="Time the position was observed (UTC)"
    )
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Time the position was merged into the track (UTC)",
    )


class AircraftUpdate(BaseModel):
    """Normalized attribute values extracted from one feed entry.

    Only the attributes the entry actually supplied are marked as set
    (see ``model_fields_set``); unset attributes must leave the target
    track untouched.
    """

    callsign: Optional[str] = None
    squawk: Optional[int] = None
    category: Optional[str] = None
    position: Optional[PositionFix] = None
    altitude: Optional[float] = None
    on_ground: Optional[bool] = None
    vertical_rate: Optional[float] = Field(
        default=None, description="Vertical rate in feet per second"
    )
    course: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = Field(default=None, description="Speed in knots")
    metadata_time: datetime = Field(
        ..., description="Freshness timestamp derived from the entry's age fields"
    )

    model_config = ConfigDict(extra="forbid")


_SCALAR_FIELDS = (
    "callsign",
    "squawk",
    "category",
    "altitude",
    "on_ground",
    "vertical_rate",
    "course",
    "heading",
    "speed",
)


class AircraftTrack(BaseModel):
    """Current state of a tracked aircraft, keyed by its ICAO 24-bit address."""

    key: str = Field(..., description="Lower-case ICAO hex identifier")
    callsign: Optional[str] = Field(default=None, description="Aircraft callsign")
    squawk: Optional[int] = Field(default=None, description="Transponder squawk code")
    category: Optional[str] = Field(default=None, description="ADS-B emitter category")
    altitude: Optional[float] = Field(default=None, description="Altitude in feet")
    on_ground: Optional[bool] = Field(default=None, description="Aircraft is on ground")
    vertical_rate: Optional[float] = Field(
        default=None, description="Vertical rate in feet per second"
    )
    course: Optional[float] = Field(default=None, description="Course over ground in degrees")
    heading: Optional[float] = Field(default=None, description="Heading in degrees")
    speed: Optional[float] = Field(default=None, description="Speed in knots")
    positions: list[PositionFix] = Field(
        default_factory=list, description="Recent position history, oldest first"
    )
    metadata_time: Optional[datetime] = Field(
        default=None, description="Most recent time any data was observed (UTC)"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    history_seconds: float = Field(default=DEFAULT_HISTORY_SECONDS, exclude=True)

    model_config = ConfigDict(extra="ignore")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        return self.callsign or self.key.upper()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def category_description(self) -> Optional[str]:
        if not self.category:
            return None
        return AIRCRAFT_CATEGORY_DESCRIPTIONS.get(self.category.upper())

    @property
    def last_position(self) -> Optional[PositionFix]:
        return self.positions[-1] if self.positions else None

    def age_seconds(self, now: datetime | None = None) -> Optional[float]:
        """Seconds since the track last received any data."""

        if self.metadata_time is None:
            return None
        now = now or datetime.now(timezone.utc)
        return (now - self.metadata_time).total_seconds()

    def add_position(
        self, lat: float, lon: float, timestamp: datetime | None = None
    ) -> None:
        """Record a new current position and trim history outside the window."""

        self.positions.append(PositionFix(lat=lat, lon=lon, timestamp=timestamp))

        # untimestamped fixes age out by their receive time
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.history_seconds)
        newest = self.positions[-1]
        recent = [
            fix
            for fix in self.positions
            if fix is newest or (fix.timestamp or fix.received_at) >= cutoff
        ]
        self.positions = recent[-MAX_HISTORY_FIXES:]

    def update_metadata_time(self, timestamp: datetime) -> None:
        """Advance the freshness timestamp; older values are ignored."""

        if self.metadata_time is None or timestamp > self.metadata_time:
            self.metadata_time = timestamp

    def apply(self, update: AircraftUpdate) -> None:
        """Copy every attribute the update supplied onto this track."""

        for name in _SCALAR_FIELDS:
            if name in update.model_fields_set:
                setattr(self, name, getattr(update, name))

        if "position" in update.model_fields_set and update.position is not None:
            fix = update.position
            self.add_position(fix.lat, fix.lon, fix.timestamp)


__all__ = [
    "AIRCRAFT_CATEGORY_DESCRIPTIONS",
    "AircraftTrack",
    "AircraftUpdate",
    "PositionFix",
]
