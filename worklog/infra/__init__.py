"""Infrastructure layer - Configuration, database and persistence"""

from .db import DatabaseEngine, get_engine, WorkEntryModel, SettingModel
from .repository import EntryStore, DatabaseEntryStore, LocalEntryStore, create_entry_store

__all__ = [
    "DatabaseEngine", "get_engine", "WorkEntryModel", "SettingModel",
    "EntryStore", "DatabaseEntryStore", "LocalEntryStore", "create_entry_store",
]
