from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError

from anpr_server.event.repository import EventRepository
from anpr_server.event.schemas import (
    EventAttachments,
    EventCreate,
    EventFilter,
    EventStats,
)
from anpr_server.exceptions import StorageUnavailable
from anpr_server.kit.db.sqlite import AsyncSession
from anpr_server.logging import Logger
from anpr_server.models.event import Event

log: Logger = structlog.get_logger()


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        log.error("Event storage failed", operation=operation, error=str(e))
        raise StorageUnavailable(f"Event storage failed during {operation}") from e


class EventService:
    async def create(
        self,
        session: AsyncSession,
        create_schema: EventCreate,
        attachments: EventAttachments,
    ) -> Event:
        repository = EventRepository.from_session(session)
        event = Event(
            **create_schema.model_dump(),
            **attachments.model_dump(),
        )

        async with storage_errors("insert"):
            try:
                await repository.create(event, flush=True)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise

        log.debug("Event created", id=event.id, license_plate=event.license_plate)

        return event

    async def list(
        self, session: AsyncSession, filter: EventFilter
    ) -> Sequence[Event]:
        repository = EventRepository.from_session(session)
        async with storage_errors("query"):
            return await repository.get_all_by_filter(filter)

    async def get(self, session: AsyncSession, id: int) -> Event | None:
        repository = EventRepository.from_session(session)
        async with storage_errors("query"):
            return await repository.get_by_id(id)

    async def stats(self, session: AsyncSession) -> EventStats:
        repository = EventRepository.from_session(session)
        async with storage_errors("stats"):
            return await repository.get_stats()

    async def read(
        self, session: AsyncSession, filter: EventFilter
    ) -> tuple[Sequence[Event], EventStats]:
        """Filtered events along with statistics over the whole store."""
        return await self.list(session, filter), await self.stats(session)


event = EventService()
