import asyncio
from datetime import datetime, timedelta, timezone
import logging

import anyio
import httpx
import pytest

from skytrack.domain import ClientState, ClientStatus, ClientType, TrackTable
from skytrack.ingestors.dump1090 import Dump1090Reader

FEED_URL = "http://receiver.test/data/aircraft.json"


def _reader(handler, *, table: TrackTable | None = None, poll_interval: float = 5.0):
    return Dump1090Reader(
        "Test Receiver",
        FEED_URL,
        table if table is not None else TrackTable(),
        poll_interval=poll_interval,
        transport=httpx.MockTransport(handler),
    )


def _aircraft(index: int) -> dict:
    return {
        "hex": f"a{index:05x}",
        "flight": f"TEST{index}",
        "lat": 50.0 + index,
        "lon": -1.0,
        "alt_baro": 1000 * index,
        "gs": 200 + index,
        "seen": 0.5,
    }


def test_reader_identity():
    reader = _reader(lambda request: httpx.Response(200, json={}))

    assert reader.name == "Test Receiver"
    assert reader.client_type == ClientType.ADSB
    assert reader.timeout_ms == 10000
    assert reader.logger.name == "skytrack.ingestors.dump1090"
    assert reader.state == ClientState.CREATED
    assert reader.status == ClientStatus.OFFLINE


@pytest.mark.anyio
async def test_fetch_merges_aircraft():
    payload = {"now": 1714765200.0, "aircraft": [_aircraft(1), _aircraft(2)]}
    requested: list[httpx.Request] = []

    def handler(request: httpx.Request):
        requested.append(request)
        return httpx.Response(200, json=payload)

    table = TrackTable()
    reader = _reader(handler, table=table)

    merged = await reader.fetch_once()

    assert merged == 2
    assert str(requested[0].url) == FEED_URL
    track = table.get("a00001")
    assert track.callsign == "TEST1"
    assert track.altitude == 1000
    assert track.speed == 201
    assert track.last_position.lat == 51.0


@pytest.mark.anyio
async def test_fetch_isolates_bad_entries(caplog):
    entries = [_aircraft(index) for index in range(9)]
    entries.insert(4, {"flight": "NOHEX", "lat": 1.0, "lon": 2.0})

    table = TrackTable()
    reader = _reader(lambda request: httpx.Response(200, json={"aircraft": entries}), table=table)

    with caplog.at_level(logging.ERROR, logger="skytrack.ingestors.dump1090"):
        merged = await reader.fetch_once()

    assert merged == 9
    assert len(table) == 9
    skipped = [record for record in caplog.records if "Skipping malformed" in record.getMessage()]
    assert len(skipped) == 1
    assert skipped[0].levelname == "ERROR"
    assert reader.stats["entry_error_count"] == 1


@pytest.mark.anyio
async def test_fetch_updates_liveness_on_success():
    reader = _reader(lambda request: httpx.Response(200, json={"aircraft": []}))

    before = datetime.now(timezone.utc)
    await reader.fetch_once()

    assert reader.last_packet_received is not None
    assert before <= reader.last_packet_received <= datetime.now(timezone.utc)


@pytest.mark.anyio
async def test_fetch_without_aircraft_field_still_counts_as_live():
    table = TrackTable()
    reader = _reader(lambda request: httpx.Response(200, json={"now": 0}), table=table)

    merged = await reader.fetch_once()

    assert merged == 0
    assert len(table) == 0
    assert reader.last_packet_received is not None


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=[{"hex": "abc123"}]),
    ],
)
async def test_fetch_failure_leaves_liveness_unchanged(response):
    reader = _reader(lambda request: response)
    previous = datetime(2024, 1, 1, tzinfo=timezone.utc)
    reader.update_packet_received_time(previous)

    merged = await reader.fetch_once()

    assert merged is None
    assert reader.last_packet_received == previous
    assert reader.stats["error_count"] == 1


@pytest.mark.anyio
async def test_fetch_handles_transport_error():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    reader = _reader(handler)

    assert await reader.fetch_once() is None
    assert reader.last_packet_received is None


@pytest.mark.anyio
async def test_poll_loop_runs_until_stopped():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(200, json={"aircraft": [_aircraft(1)]})

    reader = _reader(handler, poll_interval=0.1)

    await reader.start()
    assert reader.online
    assert reader.state == ClientState.RUNNING

    with anyio.fail_after(5):
        while reader.stats["fetch_count"] < 2:
            await asyncio.sleep(0.01)

    assert reader.status == ClientStatus.ONLINE
    await reader.stop()

    assert not reader.online
    assert reader.state == ClientState.STOPPED
    assert reader.status == ClientStatus.OFFLINE

    last_seen = reader.last_packet_received
    call_count = len(calls)
    await asyncio.sleep(0.3)

    assert reader.last_packet_received == last_seen
    assert len(calls) == call_count


@pytest.mark.anyio
async def test_stop_interrupts_wait():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(200, json={"aircraft": []})

    reader = _reader(handler, poll_interval=30.0)
    await reader.start()

    with anyio.fail_after(5):
        while not calls:
            await asyncio.sleep(0.01)

    with anyio.fail_after(1):
        await reader.stop()

    assert len(calls) == 1


@pytest.mark.anyio
async def test_start_is_idempotent():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(200, json={"aircraft": []})

    reader = _reader(handler, poll_interval=30.0)
    await reader.start()
    await reader.start()

    with anyio.fail_after(5):
        while not calls:
            await asyncio.sleep(0.01)
    await asyncio.sleep(0.05)
    await reader.stop()

    assert len(calls) == 1


@pytest.mark.anyio
async def test_invalid_url_disables_client(caplog):
    def handler(request: httpx.Request):
        raise AssertionError("disabled client must not make requests")

    with caplog.at_level(logging.ERROR, logger="skytrack.ingestors.dump1090"):
        reader = Dump1090Reader(
            "Broken", "not a url", TrackTable(), transport=httpx.MockTransport(handler)
        )

    assert not reader.configured
    assert reader.status == ClientStatus.DISABLED
    assert any("invalid URL" in record.getMessage() for record in caplog.records)

    await reader.start()

    assert not reader.online
    assert reader.state == ClientState.CREATED
    assert await reader.fetch_once() is None

    await reader.stop()
    assert reader.state == ClientState.STOPPED


def test_stale_client_status():
    reader = _reader(lambda request: httpx.Response(200, json={}))
    reader.online = True
    reader.update_packet_received_time(datetime.now(timezone.utc) - timedelta(seconds=30))

    assert not reader.healthy
    assert reader.status == ClientStatus.STALE

    reader.update_packet_received_time()
    assert reader.healthy
    assert reader.status == ClientStatus.ONLINE


def test_describe_reports_counters():
    reader = _reader(lambda request: httpx.Response(200, json={}))

    info = reader.describe()

    assert info.name == "Test Receiver"
    assert info.client_type == ClientType.ADSB
    assert info.timeout_ms == 10000
    assert info.stats["fetch_count"] == 0


def test_explicit_zero_settings_are_kept():
    reader = Dump1090Reader(
        "Zero", FEED_URL, TrackTable(), poll_interval=0, timeout=0, history_seconds=0
    )

    assert reader.poll_interval == 0
    assert reader.timeout == 0
    assert reader.history_seconds == 0
    assert reader.timeout_ms == 0


@pytest.mark.anyio
async def test_fetch_merges_into_empty_shared_table():
    table = TrackTable()
    reader = Dump1090Reader(
        "Shared",
        FEED_URL,
        table,
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"aircraft": [_aircraft(3)]})
        ),
    )

    assert reader.track_table is table
    assert await reader.fetch_once() == 1
    assert table.exists("a00003")
