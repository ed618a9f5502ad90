import asyncio
import sqlite3

import pytest

from backend.store import EmbeddedStore
from backend.store.schema import EVENTS, VISITS

FULL_VISIT = {
    "id": "visit-1",
    "session_id": "sess-1",
    "ts": "2026-10-01T12:00:00.000Z",
    "page": "/wallpapers",
    "referrer": "https://instagram.com/",
    "utm_source": "instagram",
    "utm_medium": "social",
    "utm_campaign": "launch",
    "utm_content": "story",
    "utm_term": "maya",
    "ip": "203.0.113.7",
    "country": "FR",
    "region": "Île-de-France",
    "city": "Paris",
    "isp": "Orange",
    "lat": 48.8566,
    "lon": 2.3522,
    "geo_tz": "Europe/Paris",
    "ua": "Mozilla/5.0",
    "browser": "Firefox",
    "browser_ver": "131.0",
    "os": "Linux",
    "os_ver": None,
    "device": "desktop",
    "screen_w": 2560,
    "screen_h": 1440,
    "lang": "fr-FR",
    "client_tz": "Europe/Paris",
}


async def _visit_by_id(store: EmbeddedStore, visit_id: str) -> list[dict]:
    return await store.fetch_all("SELECT * FROM visits WHERE id = ?", visit_id)


@pytest.mark.asyncio
async def test_duplicate_visit_id_is_ignored(store: EmbeddedStore):
    await store.insert_visit({"id": "dup", "session_id": "a", "page": "/first"})
    await store.insert_visit({"id": "dup", "session_id": "b", "page": "/second"})

    rows = await _visit_by_id(store, "dup")
    assert len(rows) == 1
    assert rows[0]["page"] == "/first"


@pytest.mark.asyncio
async def test_full_visit_reads_back_unchanged(store: EmbeddedStore):
    await store.insert_visit(FULL_VISIT)

    (row,) = await _visit_by_id(store, "visit-1")
    assert row == FULL_VISIT


@pytest.mark.asyncio
async def test_partial_visit_reads_back_with_nulls(store: EmbeddedStore):
    await store.insert_visit({"id": "v2", "session_id": "s", "country": "US", "screen_w": 390})

    (row,) = await _visit_by_id(store, "v2")
    assert row["country"] == "US"
    assert row["screen_w"] == 390
    assert row["ts"]
    unset = set(VISITS.column_names) - {"id", "session_id", "ts", "country", "screen_w"}
    assert all(row[name] is None for name in unset)


@pytest.mark.asyncio
async def test_generated_ids_are_unique(store: EmbeddedStore):
    for _ in range(5):
        await store.insert_visit({"session_id": "same-session"})

    ids = await store.fetch_all("SELECT id FROM visits")
    assert len({row["id"] for row in ids}) == 5


@pytest.mark.asyncio
async def test_events_are_not_deduplicated_by_session(store: EmbeddedStore):
    event = {"session_id": "s", "type": "download", "asset_id": "wp-01"}
    await store.insert_event(event)
    await store.insert_event(event)

    assert await store.fetch_value("SELECT COUNT(*) FROM events WHERE session_id = ?", "s") == 2


@pytest.mark.asyncio
async def test_event_reads_back_with_nulls(store: EmbeddedStore):
    await store.insert_event({"id": "e1", "session_id": "s", "type": "modal_open", "page": "/stl"})

    (row,) = await store.fetch_all("SELECT * FROM events WHERE id = ?", "e1")
    assert set(row) == set(EVENTS.column_names)
    assert row["type"] == "modal_open"
    assert row["page"] == "/stl"
    assert row["asset_id"] is None
    assert row["utm_term"] is None


@pytest.mark.asyncio
async def test_event_without_type_is_rejected(store: EmbeddedStore):
    with pytest.raises(sqlite3.IntegrityError):
        await store.insert_event({"session_id": "s"})


@pytest.mark.asyncio
async def test_fetch_value_on_empty_result(store: EmbeddedStore):
    assert await store.fetch_value("SELECT id FROM visits WHERE id = ?", "missing") is None


def test_wal_journal_and_indexes(store: EmbeddedStore):
    mode = asyncio.run(store.fetch_value("PRAGMA journal_mode"))
    assert mode == "wal"

    indexes = asyncio.run(
        store.fetch_all("SELECT name FROM sqlite_master WHERE type = 'index' AND name LIKE 'idx_%'")
    )
    assert {row["name"] for row in indexes} == {
        "idx_v_session", "idx_v_ts", "idx_v_utm_src", "idx_v_country",
        "idx_e_session", "idx_e_ts", "idx_e_type", "idx_e_asset",
    }


def test_reopening_keeps_data_and_schema(tmp_path):
    path = tmp_path / "analytics.db"
    first = EmbeddedStore(path)
    asyncio.run(first.insert_visit({"id": "persisted", "session_id": "s"}))
    asyncio.run(first.close())

    second = EmbeddedStore(path)
    try:
        rows = asyncio.run(_visit_by_id(second, "persisted"))
        assert len(rows) == 1
    finally:
        asyncio.run(second.close())


def test_creates_missing_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "analytics.db"
    embedded = EmbeddedStore(path)
    try:
        assert path.exists()
    finally:
        asyncio.run(embedded.close())
