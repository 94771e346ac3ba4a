from collections.abc import AsyncIterator
from typing import Literal, TypeAlias

from fastapi import Request

from anpr_server.config import Settings, settings
from anpr_server.kit.db.sqlite import AsyncEngine, AsyncSession, AsyncSessionMaker
from anpr_server.kit.db.sqlite import create_async_engine as _create_async_engine
from anpr_server.models import Base

ProcessName: TypeAlias = Literal["app", "script"]


def create_async_engine(
    process_name: ProcessName, config: Settings = settings
) -> AsyncEngine:
    return _create_async_engine(
        dsn=config.database_url,
        application_name=f"{config.ENV.value}.{process_name}",
        debug=config.SQLALCHEMY_DEBUG,
        command_timeout=config.DATABASE_COMMAND_TIMEOUT_SECONDS,
    )


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    sessionmaker: AsyncSessionMaker = request.state.async_sessionmaker
    async with sessionmaker() as session:
        yield session


__all__ = [
    "AsyncSession",
    "create_async_engine",
    "create_schema",
    "get_db_session",
]
