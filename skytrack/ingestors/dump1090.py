"""Dump1090 / readsb JSON ingestor that keeps the track table up to date."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timedelta, timezone
import logging
import time
from typing import Any, Iterable, Mapping, Optional

import httpx

from skytrack.config import settings
from skytrack.domain.clients import ClientState, ClientType
from skytrack.domain.track_table import TrackFactory, TrackTable
from skytrack.ingestors.base import Client
from skytrack.models.tracks import AircraftTrack, AircraftUpdate, PositionFix

logger = logging.getLogger("skytrack.ingestors.dump1090")

GROUND_SENTINEL = "ground"
MACH_TO_KNOTS = 666.739

# Ordered source fields, most authoritative first.
AGE_SOURCES = ("pos_seen", "seen")
ALTITUDE_SOURCES = ("altitude", "alt_baro", "alt_geom", "nav_altitude_mcp")
VERTICAL_RATE_SOURCES = ("vert_rate", "baro_rate", "geom_rate")
COURSE_SOURCES = ("track", "true_heading", "mag_heading", "nav_heading")
HEADING_SOURCES = ("true_heading", "mag_heading", "nav_heading", "track")
SPEED_SOURCES = ("gs", "tas", "ias")


def _first_present(entry: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first non-null value among ``keys``, or None."""

    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


def _number(value: Any) -> float:
    # JSON true/false would otherwise coerce to 1.0/0.0
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


def _first_number(entry: Mapping[str, Any], keys: Iterable[str]) -> Optional[float]:
    value = _first_present(entry, keys)
    return None if value is None else _number(value)


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value).strip()


def _aged_timestamp(entry: Mapping[str, Any], now: datetime) -> Optional[datetime]:
    age = _first_number(entry, AGE_SOURCES)
    if age is None:
        return None
    return now - timedelta(seconds=age)


def entity_key(entry: Mapping[str, Any]) -> str:
    """Return the normalized ICAO hex key of a feed entry.

    Raises ``KeyError`` when the entry has no ``hex`` field and
    ``ValueError`` when it is blank or not a string.
    """

    raw = entry["hex"]
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"invalid aircraft hex {raw!r}")
    return raw.strip().lower()


def extract_fields(
    entry: Mapping[str, Any], now: datetime | None = None
) -> AircraftUpdate:
    """Normalize one ``aircraft`` entry into an :class:`AircraftUpdate`.

    Only attributes the entry supplies end up in ``model_fields_set``.
    Values of the wrong type raise ``ValueError``/``TypeError``.
    """

    now = now or datetime.now(timezone.utc)
    fields: dict[str, Any] = {}

    if "flight" in entry:
        fields["callsign"] = _text(entry["flight"])
    if "squawk" in entry:
        squawk = entry["squawk"]
        if isinstance(squawk, bool):
            raise ValueError(f"invalid squawk {squawk!r}")
        fields["squawk"] = None if squawk is None else int(squawk)
    if "category" in entry:
        fields["category"] = _text(entry["category"])

    if entry.get("lat") is not None and entry.get("lon") is not None:
        fields["position"] = PositionFix(
            lat=_number(entry["lat"]),
            lon=_number(entry["lon"]),
            timestamp=_aged_timestamp(entry, now),
        )

    altitude = _first_present(entry, ALTITUDE_SOURCES)
    if altitude is not None:
        if altitude == GROUND_SENTINEL:
            fields["altitude"] = 0.0
            fields["on_ground"] = True
        else:
            fields["altitude"] = _number(altitude)
            fields["on_ground"] = False

    vertical_rate = _first_number(entry, VERTICAL_RATE_SOURCES)
    if vertical_rate is not None:
        # feed reports feet per minute
        fields["vertical_rate"] = vertical_rate / 60.0

    course = _first_number(entry, COURSE_SOURCES)
    if course is not None:
        fields["course"] = course

    heading = _first_number(entry, HEADING_SOURCES)
    if heading is not None:
        fields["heading"] = heading

    speed = _first_number(entry, SPEED_SOURCES)
    if speed is None and entry.get("mach") is not None:
        speed = _number(entry["mach"]) * MACH_TO_KNOTS
    if speed is not None:
        fields["speed"] = speed

    fields["metadata_time"] = _aged_timestamp(entry, now) or now
    return AircraftUpdate(**fields)


def merge_update(
    track_table: TrackTable,
    key: str,
    update: AircraftUpdate,
    factory: TrackFactory | None = None,
) -> AircraftTrack:
    """Create the track for ``key`` if needed and apply ``update`` to it."""

    factory = factory or (lambda new_key: AircraftTrack(key=new_key))
    with track_table.edit(key, factory) as track:
        track.apply(update)
        track.update_metadata_time(update.metadata_time)
        return track


class Dump1090Reader(Client):
    """Poll a dump1090 ``aircraft.json`` endpoint on a fixed interval."""

    def __init__(
        self,
        name: str,
        url: str,
        track_table: TrackTable,
        *,
        poll_interval: float | None = None,
        timeout: float | None = None,
        history_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(name, track_table)
        self.poll_interval = (
            settings.dump1090_poll_interval if poll_interval is None else poll_interval
        )
        self.timeout = settings.dump1090_timeout if timeout is None else timeout
        self.history_seconds = (
            settings.track_history_seconds if history_seconds is None else history_seconds
        )
        self.transport = transport
        self.url = self._parse_url(url)

        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self._fetch_count = 0
        self._error_count = 0
        self._entry_error_count = 0
        self._last_fetch_duration_ms: float | None = None

    def _parse_url(self, url: str) -> httpx.URL | None:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as exc:
            logger.error("%s is an invalid URL, %s client is disabled: %s", url, self.name, exc)
            return None
        if parsed.scheme not in {"http", "https"} or not parsed.host:
            logger.error("%s is an invalid URL, %s client is disabled", url, self.name)
            return None
        return parsed

    @property
    def client_type(self) -> ClientType:
        return ClientType.ADSB

    @property
    def timeout_ms(self) -> int:
        return int(self.poll_interval * 2 * 1000)

    @property
    def logger(self) -> logging.Logger:
        return logger

    @property
    def configured(self) -> bool:
        return self.url is not None

    @property
    def stats(self) -> dict[str, float | int | None]:
        return {
            "fetch_count": self._fetch_count,
            "error_count": self._error_count,
            "entry_error_count": self._entry_error_count,
            "last_fetch_duration_ms": self._last_fetch_duration_ms,
        }

    async def start(self) -> None:
        if self.url is None:
            logger.error("%s has no valid feed URL; not starting", self.name)
            return
        if self._task and not self._task.done():
            logger.warning("%s is already running", self.name)
            return

        self._stop_event = asyncio.Event()
        self.online = True
        self.state = ClientState.RUNNING
        self._task = asyncio.create_task(
            self._run(self._stop_event), name=f"dump1090-{self.name}"
        )
        logger.info(
            "%s polling %s every %.1fs", self.name, self.url, self.poll_interval
        )

    async def stop(self) -> None:
        self.online = False
        task = self._task
        if task is None:
            self.state = ClientState.STOPPED
            return

        self.state = ClientState.STOPPING
        if self._stop_event is not None:
            self._stop_event.set()
        with contextlib.suppress(asyncio.CancelledError):
            await task

        self._task = None
        self.state = ClientState.STOPPED
        logger.info("%s stopped", self.name)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _new_track(self, key: str) -> AircraftTrack:
        return AircraftTrack(key=key, history_seconds=self.history_seconds)

    async def _run(self, stop_event: asyncio.Event) -> None:
        try:
            async with self._http_client() as http:
                while not stop_event.is_set():
                    try:
                        await self.fetch_once(http)
                    except Exception as exc:  # pragma: no cover - defensive logging
                        self._error_count += 1
                        logger.exception("Unexpected error polling %s: %s", self.name, exc)

                    try:
                        await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
                    except asyncio.TimeoutError:
                        pass
        except asyncio.CancelledError:
            logger.info("%s poll loop cancelled", self.name)
            raise
        finally:
            self.online = False
            self.state = ClientState.STOPPED

    def _fetch_failed(self, reason: str, exc: Exception) -> None:
        self._error_count += 1
        logger.warning("Dump1090 fetch for %s %s: %s", self.name, reason, exc)
        return None

    async def fetch_once(self, http: httpx.AsyncClient | None = None) -> int | None:
        """Fetch one snapshot and merge it into the track table.

        Returns the number of aircraft merged, or None if the request or its
        body could not be read. Errors are logged, never raised.
        """

        if self.url is None:
            return None
        if http is None:
            async with self._http_client() as client:
                return await self.fetch_once(client)

        started = time.perf_counter()
        try:
            response = await http.get(self.url)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            return self._fetch_failed("timed out", exc)
        except httpx.HTTPStatusError as exc:
            return self._fetch_failed(f"returned HTTP {exc.response.status_code}", exc)
        except httpx.RequestError as exc:
            return self._fetch_failed("failed", exc)
        except ValueError as exc:
            return self._fetch_failed("returned invalid JSON", exc)

        if not isinstance(payload, dict):
            return self._fetch_failed(
                "returned unexpected body",
                TypeError(f"expected object, got {type(payload).__name__}"),
            )

        self.update_packet_received_time()
        self._fetch_count += 1

        entries = payload.get("aircraft")
        if entries is None:
            return 0
        if not isinstance(entries, list):
            logger.warning(
                "Dump1090 feed for %s has non-list aircraft field (%s)",
                self.name,
                type(entries).__name__,
            )
            return 0

        now = datetime.now(timezone.utc)
        merged = 0
        for entry in entries:
            try:
                key = entity_key(entry)
                update = extract_fields(entry, now=now)
                merge_update(self.track_table, key, update, factory=self._new_track)
            except Exception as exc:
                self._entry_error_count += 1
                logger.error(
                    "Skipping malformed aircraft entry from %s: %r", self.name, exc
                )
                continue
            merged += 1

        self._last_fetch_duration_ms = (time.perf_counter() - started) * 1000
        logger.debug("%s merged %s of %s aircraft", self.name, merged, len(entries))
        return merged


__all__ = [
    "Dump1090Reader",
    "GROUND_SENTINEL",
    "MACH_TO_KNOTS",
    "entity_key",
    "extract_fields",
    "merge_update",
]
