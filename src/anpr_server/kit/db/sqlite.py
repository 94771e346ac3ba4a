from datetime import UTC, datetime
from typing import Any, TypeAlias

from sqlalchemy import TIMESTAMP, Dialect, Engine, event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine as _create_async_engine
from sqlalchemy.types import TypeDecorator

AsyncSessionMaker: TypeAlias = async_sessionmaker[AsyncSession]


class UTCTimestamp(TypeDecorator[datetime]):
    """
    Timestamp stored as UTC and read back as an aware datetime.

    SQLite keeps no offset, so values come out naive unless it is put back.
    """

    impl = TIMESTAMP
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    # Readers keep going while a single writer commits
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def create_async_engine(
    *,
    dsn: str,
    application_name: str | None = None,
    debug: bool = False,
    command_timeout: float | None = None,
) -> AsyncEngine:
    connect_args: dict[str, Any] = {}
    if command_timeout is not None:
        # Seconds a writer waits on the database lock before giving up
        connect_args["timeout"] = command_timeout

    engine = _create_async_engine(
        dsn,
        echo=debug,
        connect_args=connect_args,
        execution_options={"logging_token": application_name}
        if application_name
        else {},
    )
    event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
    return engine


def create_async_sessionmaker(engine: AsyncEngine) -> AsyncSessionMaker:
    return async_sessionmaker(engine, expire_on_commit=False)


__all__ = [
    "AsyncEngine",
    "AsyncSession",
    "AsyncSessionMaker",
    "Engine",
    "UTCTimestamp",
    "create_async_engine",
    "create_async_sessionmaker",
]
