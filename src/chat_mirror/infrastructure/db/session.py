from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chat_mirror.config import MEMORY_DATABASE, database_url_for


def build_engine(database_path: str) -> AsyncEngine:
    """Create the SQLite engine for the local mirror.

    An in-memory database lives on a single shared connection so every
    session of the store sees the same tables.
    """
    connect_args = {"check_same_thread": False}
    if database_path == MEMORY_DATABASE:
        return create_async_engine(
            database_url_for(database_path),
            poolclass=StaticPool,
            connect_args=connect_args,
            echo=False,
        )

    Path(database_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    engine = create_async_engine(
        database_url_for(database_path),
        connect_args=connect_args,
        echo=False,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
