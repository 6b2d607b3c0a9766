"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
The calendar and summary logic only ever talk to an EntryStore. Two stores
implement it:
- DatabaseEntryStore: SQL tables through SQLAlchemy (SQLite by default)
- LocalEntryStore: a single JSON document on disk, no database needed

Both store one WorkEntry per date (upsert by key) plus the hourly wage, and
both report failures with the same StorageUnavailable/CorruptState errors.
"""

import asyncio
import json
import logging
import math
import os
import tempfile
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select, delete
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.domain.errors import CorruptState, NotFound, StorageUnavailable
from worklog.domain.models import WorkEntry, parse_iso_date
from worklog.infra.db import WorkEntryModel, SettingModel, DatabaseEngine, get_engine

logger = logging.getLogger(__name__)

WAGE_SETTING_KEY = "hourly_wage"


def _parse_wage(raw: Any) -> float:
    """Parse a persisted wage value, rejecting anything but a non-negative number"""
    try:
        wage = float(raw)
    except (TypeError, ValueError) as e:
        raise CorruptState(f"Stored hourly wage is not a number: {raw!r}") from e
    if math.isnan(wage) or math.isinf(wage) or wage < 0:
        raise CorruptState(f"Stored hourly wage is out of range: {raw!r}")
    return wage


class EntryStore(ABC):
    """
    Persistence contract for work entries and the hourly wage.

    - upsert replaces start/end/duration of an existing date in one write
    - delete of a missing date is a successful no-op
    - get_wage returns 0.0 until a wage has been set
    """

    @abstractmethod
    async def list(self) -> List[WorkEntry]:
        """Get all entries (order is backend specific)"""

    @abstractmethod
    async def get(self, date: str) -> WorkEntry:
        """Get the entry for a date, raising NotFound if absent"""

    @abstractmethod
    async def upsert(self, entry: WorkEntry) -> WorkEntry:
        """Create or overwrite the entry for entry.date"""

    @abstractmethod
    async def delete(self, date: str) -> bool:
        """Remove the entry for a date. Returns False if there was none."""

    @abstractmethod
    async def get_wage(self) -> float:
        """Get the current hourly wage"""

    @abstractmethod
    async def set_wage(self, wage: float) -> None:
        """Overwrite the hourly wage"""

    async def close(self) -> None:
        """Release any connections held by the store"""


class DatabaseEntryStore(EntryStore):
    """
    EntryStore backed by the work_entries and settings tables.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    def __init__(self, session: Optional[AsyncSession] = None,
                 engine: Optional[DatabaseEngine] = None):
        self.session = session
        self.engine = engine

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = self.engine or get_engine()
        await engine.ensure_tables()
        return engine.get_session()

    @asynccontextmanager
    async def _storage_errors(self, action: str):
        """Map driver and connection errors onto StorageUnavailable"""
        try:
            yield
        except (OperationalError, InterfaceError, OSError) as e:
            raise StorageUnavailable(f"Could not {action}: {e}") from e

    @staticmethod
    def _to_entry(model: WorkEntryModel) -> WorkEntry:
        try:
            return WorkEntry(
                date=model.date,
                start_time=model.start_time,
                end_time=model.end_time,
                duration=model.duration
            )
        except ValidationError as e:
            raise CorruptState(f"Malformed work entry row for {model.date!r}") from e

    @staticmethod
    def _upsert_statement(session: AsyncSession, model_cls, values: Dict[str, Any]):
        """
        Build a native insert-or-update statement for the session's dialect.

        Returns None when the dialect has no native upsert.
        """
        columns = model_cls.__mapper__.columns
        row = {columns[attr].key: value for attr, value in values.items()}
        key_columns = [c for c in model_cls.__table__.primary_key.columns]
        updates = [columns[attr].key for attr in values if not columns[attr].primary_key]

        dialect = session.get_bind().dialect.name
        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(model_cls.__table__).values(row)
            return stmt.on_conflict_do_update(
                index_elements=key_columns,
                set_={key: stmt.excluded[key] for key in updates}
            )
        if dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(model_cls.__table__).values(row)
            return stmt.on_duplicate_key_update({key: stmt.inserted[key] for key in updates})
        return None

    async def _upsert(self, model_cls, values: Dict[str, Any]) -> None:
        session = await self._get_session()
        async with session:
            stmt = self._upsert_statement(session, model_cls, values)
            if stmt is not None:
                await session.execute(stmt)
            else:
                await session.merge(model_cls(**values))
            await session.commit()

    async def list(self) -> List[WorkEntry]:
        """Get all entries, newest date first"""
        async with self._storage_errors("load entries"):
            session = await self._get_session()
            async with session:
                result = await session.execute(
                    select(WorkEntryModel).order_by(WorkEntryModel.date.desc())
                )
                models = result.scalars().all()
                return [self._to_entry(m) for m in models]

    async def get(self, date: str) -> WorkEntry:
        date = parse_iso_date(date).isoformat()
        async with self._storage_errors("load entry"):
            session = await self._get_session()
            async with session:
                result = await session.execute(
                    select(WorkEntryModel).where(WorkEntryModel.date == date)
                )
                model = result.scalar_one_or_none()
        if model is None:
            raise NotFound(date)
        return self._to_entry(model)

    async def upsert(self, entry: WorkEntry) -> WorkEntry:
        async with self._storage_errors("save entry"):
            await self._upsert(WorkEntryModel, {
                "date": entry.date,
                "start_time": entry.start_time,
                "end_time": entry.end_time,
                "duration": entry.duration
            })
        logger.debug("Saved entry for %s (%.2fh)", entry.date, entry.duration)
        return entry

    async def delete(self, date: str) -> bool:
        date = parse_iso_date(date).isoformat()
        async with self._storage_errors("delete entry"):
            session = await self._get_session()
            async with session:
                result = await session.execute(
                    delete(WorkEntryModel).where(WorkEntryModel.date == date)
                )
                await session.commit()
                return result.rowcount > 0

    async def get_wage(self) -> float:
        async with self._storage_errors("load hourly wage"):
            session = await self._get_session()
            async with session:
                result = await session.execute(
                    select(SettingModel.setting_value)
                    .where(SettingModel.setting_key == WAGE_SETTING_KEY)
                    .limit(1)
                )
                raw = result.scalar_one_or_none()
        return 0.0 if raw is None else _parse_wage(raw)

    async def set_wage(self, wage: float) -> None:
        async with self._storage_errors("save hourly wage"):
            await self._upsert(SettingModel, {
                "setting_key": WAGE_SETTING_KEY,
                "setting_value": str(float(wage))
            })

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


class LocalEntryStore(EntryStore):
    """
    EntryStore backed by one JSON document, the desktop stand-in for
    browser local storage.

    Document layout:
        {"worklog_data_v1": [<entry record>, ...], "worklog_wage_v1": "20.0"}

    Every write replaces the whole file through a temporary file and an
    atomic rename, so readers see either the old or the new document.
    """

    ENTRIES_KEY = "worklog_data_v1"
    WAGE_KEY = "worklog_wage_v1"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read_document(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageUnavailable(f"Could not read {self.path}: {e}") from e

        if not text.strip():
            return {}
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptState(f"{self.path} is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise CorruptState(f"{self.path} does not contain a JSON object")
        return document

    def _write_document(self, document: Dict[str, Any]) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                f = os.fdopen(fd, 'w', encoding='utf-8')
            except OSError:
                os.close(fd)
                raise
            with f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageUnavailable(f"Could not write {self.path}: {e}") from e

    def _entries_from(self, document: Dict[str, Any]) -> List[WorkEntry]:
        records = document.get(self.ENTRIES_KEY)
        if records is None:
            return []
        if not isinstance(records, list):
            raise CorruptState(f"'{self.ENTRIES_KEY}' in {self.path} is not a list")
        try:
            return [WorkEntry.model_validate(record) for record in records]
        except ValidationError as e:
            raise CorruptState(f"Malformed work entry in {self.path}") from e

    async def list(self) -> List[WorkEntry]:
        return self._entries_from(self._read_document())

    async def get(self, date: str) -> WorkEntry:
        date = parse_iso_date(date).isoformat()
        for entry in await self.list():
            if entry.date == date:
                return entry
        raise NotFound(date)

    async def upsert(self, entry: WorkEntry) -> WorkEntry:
        async with self._lock:
            document = self._read_document()
            entries = [e for e in self._entries_from(document) if e.date != entry.date]
            entries.append(entry)
            document[self.ENTRIES_KEY] = [e.to_record() for e in entries]
            self._write_document(document)
        logger.debug("Saved entry for %s (%.2fh)", entry.date, entry.duration)
        return entry

    async def delete(self, date: str) -> bool:
        date = parse_iso_date(date).isoformat()
        async with self._lock:
            document = self._read_document()
            entries = self._entries_from(document)
            remaining = [e for e in entries if e.date != date]
            if len(remaining) == len(entries):
                return False
            document[self.ENTRIES_KEY] = [e.to_record() for e in remaining]
            self._write_document(document)
            return True

    async def get_wage(self) -> float:
        raw = self._read_document().get(self.WAGE_KEY)
        return 0.0 if raw is None else _parse_wage(raw)

    async def set_wage(self, wage: float) -> None:
        async with self._lock:
            document = self._read_document()
            document[self.WAGE_KEY] = str(float(wage))
            self._write_document(document)


def create_entry_store(settings=None) -> EntryStore:
    """Build the store selected by Settings.storage_backend"""
    if settings is None:
        from worklog.infra.config import get_settings
        settings = get_settings()

    if settings.storage_backend == "local":
        return LocalEntryStore(settings.get_local_store_path())
    # One engine per store; close() disposes it
    return DatabaseEntryStore(engine=DatabaseEngine(settings.get_db_url()))
