"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- One upsert implementation per dialect (SQLite, MySQL, PostgreSQL)
  behind the same ORM tables
- Supports async operations for non-blocking database access
- Swapping the default SQLite file for a server database is a URL change
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Float, Text


# Base class for all models
class Base(DeclarativeBase):
    pass


class WorkEntryModel(Base):
    """SQLAlchemy model for WorkEntry entity, keyed by calendar date"""
    __tablename__ = "work_entries"

    date: Mapped[str] = mapped_column(String(10), primary_key=True)
    start_time: Mapped[str] = mapped_column("startTime", String(5), nullable=False)
    end_time: Mapped[str] = mapped_column("endTime", String(5), nullable=False)
    duration: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)


class SettingModel(Base):
    """Key/value settings row; the wage lives under 'hourly_wage'"""
    __tablename__ = "settings"

    setting_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    setting_value: Mapped[str] = mapped_column(Text, nullable=False)


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    Singleton pattern ensures only one engine exists per application.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        self._tables_ready = False

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get or create the database engine instance"""
        if cls._instance is None:
            if db_url is None:
                from worklog.infra.config import get_settings
                db_url = get_settings().get_db_url()
            cls._instance = cls(db_url)
        return cls._instance

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self._tables_ready = True

    async def ensure_tables(self):
        """Create tables on first use"""
        if not self._tables_ready:
            await self.create_tables()

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()

    async def dispose(self):
        await self.engine.dispose()


# Convenience functions
def get_engine(db_url: Optional[str] = None) -> DatabaseEngine:
    """Get the database engine instance"""
    return DatabaseEngine.get_instance(db_url)

