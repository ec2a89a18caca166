"""Thread-safe keyed store of tracks shared by every feed client."""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Callable, Iterator, Optional

from skytrack.models.tracks import AircraftTrack

logger = logging.getLogger("skytrack.track_table")

TrackFactory = Callable[[str], AircraftTrack]


class TrackTable:
    """Mapping of entity key to track.

    Several clients may write concurrently, from asyncio tasks or threads, so
    every access goes through a single re-entrant lock. Callers never get
    exclusive ownership of the table; they get it for the span of one call
    or one ``edit`` block.
    """

    def __init__(self) -> None:
        self._tracks: dict[str, AircraftTrack] = {}
        self._lock = threading.RLock()

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._tracks

    def get(self, key: str) -> Optional[AircraftTrack]:
        with self._lock:
            return self._tracks.get(key)

    def insert(self, key: str, track: AircraftTrack) -> AircraftTrack:
        """Insert ``track`` unless the key is taken; return the stored track."""

        with self._lock:
            existing = self._tracks.get(key)
            if existing is not None:
                return existing
            self._tracks[key] = track
            logger.debug("New track %s", key)
            return track

    def get_or_create(self, key: str, factory: TrackFactory) -> AircraftTrack:
        with self._lock:
            track = self._tracks.get(key)
            if track is None:
                track = self.insert(key, factory(key))
            return track

    @contextlib.contextmanager
    def edit(self, key: str, factory: TrackFactory) -> Iterator[AircraftTrack]:
        """Hold the table lock while the caller mutates one track."""

        with self._lock:
            yield self.get_or_create(key, factory)

    def snapshot(self) -> list[AircraftTrack]:
        """Deep copies of every track, safe to read outside the lock."""

        with self._lock:
            return [track.model_copy(deep=True) for track in self._tracks.values()]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._tracks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)

    def __bool__(self) -> bool:
        # an empty table is still a live collaborator
        return True


__all__ = ["TrackFactory", "TrackTable"]
