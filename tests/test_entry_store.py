"""
Tests for the EntryStore implementations.

The contract tests use the parametrized `store` fixture so the database and
local JSON backends are held to exactly the same behavior.
"""

import asyncio
import json
import os
import pytest
from sqlalchemy.exc import IntegrityError
from worklog.domain.errors import CorruptState, NotFound, StorageUnavailable
from worklog.infra.db import DatabaseEngine, SettingModel, WorkEntryModel
from worklog.infra.repository import DatabaseEntryStore, LocalEntryStore, create_entry_store
from worklog.infra.config import Settings


class TestEntryStoreContract:

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.list() == []
        assert await store.get_wage() == 0.0

    @pytest.mark.asyncio
    async def test_upsert_creates_entry(self, store, make_entry):
        await store.upsert(make_entry("2024-03-01", "09:00", "17:00", 8.0))

        entries = await store.list()
        assert len(entries) == 1
        assert entries[0].date == "2024-03-01"
        assert entries[0].duration == 8.0

    @pytest.mark.asyncio
    async def test_upsert_same_date_keeps_last_write(self, store, make_entry):
        """Two saves for one date leave one entry holding the second write."""
        await store.upsert(make_entry("2024-03-01", "09:00", "17:00", 8.0))
        await store.upsert(make_entry("2024-03-02", "09:00", "12:00", 3.0))
        await store.upsert(make_entry("2024-03-01", "10:00", "15:30", 5.5))

        entries = {e.date: e for e in await store.list()}
        assert len(entries) == 2
        updated = entries["2024-03-01"]
        assert (updated.start_time, updated.end_time, updated.duration) == ("10:00", "15:30", 5.5)

    @pytest.mark.asyncio
    async def test_get(self, store, make_entry):
        await store.upsert(make_entry("2024-03-01", "08:00", "12:00", 4.0))

        entry = await store.get("2024-03-01")
        assert entry.start_time == "08:00"
        with pytest.raises(NotFound):
            await store.get("2024-03-02")

    @pytest.mark.asyncio
    async def test_delete_existing(self, store, make_entry):
        await store.upsert(make_entry("2024-03-01"))
        await store.upsert(make_entry("2024-03-02"))

        assert await store.delete("2024-03-01") is True
        assert [e.date for e in await store.list()] == ["2024-03-02"]

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store, make_entry):
        await store.upsert(make_entry("2024-03-01"))

        assert await store.delete("2024-05-05") is False
        assert len(await store.list()) == 1

    @pytest.mark.asyncio
    async def test_wage_round_trip_and_overwrite(self, store):
        await store.set_wage(20)
        assert await store.get_wage() == 20.0

        await store.set_wage(22.5)
        assert await store.get_wage() == 22.5

    @pytest.mark.asyncio
    async def test_wage_independent_of_entries(self, store, make_entry):
        await store.set_wage(15)
        await store.upsert(make_entry("2024-03-01"))
        await store.delete("2024-03-01")
        assert await store.get_wage() == 15.0


class TestDatabaseEntryStore:

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session, make_entry):
        store = DatabaseEntryStore(session=db_session)
        for date in ("2024-03-02", "2024-03-10", "2024-02-28"):
            await store.upsert(make_entry(date))

        assert [e.date for e in await store.list()] == ["2024-03-10", "2024-03-02", "2024-02-28"]

    @pytest.mark.asyncio
    async def test_wage_stored_as_text_setting(self, db_session):
        store = DatabaseEntryStore(session=db_session)
        await store.set_wage(20)

        row = await db_session.get(SettingModel, "hourly_wage")
        assert row.setting_value == "20.0"

    @pytest.mark.asyncio
    async def test_malformed_row_is_corrupt_state(self, db_session):
        db_session.add(WorkEntryModel(date="not-a-date", start_time="09:00", end_time="17:00", duration=8.0))
        await db_session.commit()

        with pytest.raises(CorruptState):
            await DatabaseEntryStore(session=db_session).list()

    @pytest.mark.asyncio
    async def test_malformed_wage_is_corrupt_state(self, db_session):
        db_session.add(SettingModel(setting_key="hourly_wage", setting_value="twenty"))
        await db_session.commit()

        with pytest.raises(CorruptState):
            await DatabaseEntryStore(session=db_session).get_wage()

    @pytest.mark.asyncio
    async def test_unreachable_database_is_storage_unavailable(self, tmp_path, make_entry):
        engine = DatabaseEngine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'worklog.db'}")
        store = DatabaseEntryStore(engine=engine)
        try:
            with pytest.raises(StorageUnavailable):
                await store.list()
            with pytest.raises(StorageUnavailable):
                await store.upsert(make_entry("2024-03-01"))
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_engine_creates_tables_on_first_use(self, tmp_path, make_entry):
        engine = DatabaseEngine(f"sqlite+aiosqlite:///{tmp_path / 'worklog.db'}")
        store = DatabaseEntryStore(engine=engine)
        try:
            await store.upsert(make_entry("2024-03-01"))
            assert len(await store.list()) == 1
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_integrity_error_is_not_reported_as_unavailable(self, db_session):
        store = DatabaseEntryStore(session=db_session)
        with pytest.raises(IntegrityError):
            async with store._storage_errors("save entry"):
                raise IntegrityError("INSERT INTO work_entries", {}, Exception("UNIQUE constraint failed"))


class TestLocalEntryStore:

    @pytest.mark.asyncio
    async def test_document_layout(self, local_store, make_entry):
        await local_store.upsert(make_entry("2024-03-01", "09:00", "17:00", 8.0))
        await local_store.set_wage(20)

        document = json.loads(local_store.path.read_text(encoding="utf-8"))
        assert document["worklog_data_v1"] == [
            {"date": "2024-03-01", "startTime": "09:00", "endTime": "17:00", "duration": 8.0}
        ]
        assert document["worklog_wage_v1"] == "20.0"

    @pytest.mark.asyncio
    async def test_no_temporary_files_left_behind(self, local_store, make_entry):
        await local_store.upsert(make_entry("2024-03-01"))
        assert [p.name for p in local_store.path.parent.iterdir()] == ["worklog.json"]

    @pytest.mark.asyncio
    async def test_invalid_json_is_corrupt_state(self, local_store):
        local_store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptState):
            await local_store.list()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [
        {"worklog_data_v1": {"date": "2024-03-01"}},
        {"worklog_data_v1": [{"date": "2024-03-01", "startTime": "9"}]},
        ["not", "an", "object"],
    ])
    async def test_malformed_document_is_corrupt_state(self, local_store, document):
        local_store.path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(CorruptState):
            await local_store.list()

    @pytest.mark.asyncio
    async def test_malformed_wage_is_corrupt_state(self, local_store):
        local_store.path.write_text(json.dumps({"worklog_wage_v1": "-3"}), encoding="utf-8")
        with pytest.raises(CorruptState):
            await local_store.get_wage()

    @pytest.mark.asyncio
    async def test_unreadable_path_is_storage_unavailable(self, tmp_path, make_entry):
        store = LocalEntryStore(tmp_path)  # a directory, not a file
        with pytest.raises(StorageUnavailable):
            await store.list()
        with pytest.raises(StorageUnavailable):
            await store.upsert(make_entry("2024-03-01"))

    @pytest.mark.asyncio
    async def test_concurrent_upserts_do_not_lose_writes(self, local_store, make_entry):
        days = [f"2024-03-{day:02d}" for day in range(1, 21)]
        await asyncio.gather(*(local_store.upsert(make_entry(day)) for day in days))
        await asyncio.gather(*(
            local_store.upsert(make_entry("2024-03-01", "10:00", f"1{n}:00", float(n)))
            for n in range(1, 6)
        ))

        entries = await local_store.list()
        assert sorted(e.date for e in entries) == days
        first = next(e for e in entries if e.date == "2024-03-01")
        assert first.start_time == "10:00"
        assert first.end_time == f"1{int(first.duration)}:00"

    @pytest.mark.asyncio
    async def test_failed_open_closes_temporary_descriptor(self, local_store, make_entry, monkeypatch):
        closed = []
        real_close = os.close

        def failing_fdopen(fd, *args, **kwargs):
            raise OSError("no file objects left")

        def tracking_close(fd):
            closed.append(fd)
            real_close(fd)

        monkeypatch.setattr(os, "fdopen", failing_fdopen)
        monkeypatch.setattr(os, "close", tracking_close)

        with pytest.raises(StorageUnavailable):
            await local_store.upsert(make_entry("2024-03-01"))
        assert len(closed) == 1
        assert list(local_store.path.parent.iterdir()) == []


def test_create_entry_store_selects_backend(tmp_path):
    settings = Settings(config_dir=tmp_path, data_dir=tmp_path, storage_backend="local")
    store = create_entry_store(settings)

    assert isinstance(store, LocalEntryStore)
    assert store.path == tmp_path / "worklog.json"


@pytest.mark.asyncio
async def test_database_stores_for_different_settings_are_isolated(tmp_path, make_entry):
    first = create_entry_store(Settings(config_dir=tmp_path, data_dir=tmp_path / "a", storage_backend="database"))
    second = create_entry_store(Settings(config_dir=tmp_path, data_dir=tmp_path / "b", storage_backend="database"))
    try:
        assert first.engine is not second.engine
        await first.upsert(make_entry("2024-03-01"))

        assert await second.list() == []
        assert [e.date for e in await first.list()] == ["2024-03-01"]
    finally:
        await first.close()
        await second.close()
