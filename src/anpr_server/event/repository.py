from collections.abc import Sequence

from sqlalchemy import Select, func, select

from anpr_server.event.schemas import EventFilter, EventStats
from anpr_server.kit.repository.base import RepositoryBase
from anpr_server.models.event import Event


class EventRepository(RepositoryBase[Event]):
    model = Event

    def get_filtered_statement(self, filter: EventFilter) -> Select[tuple[Event]]:
        statement = self.get_base_statement()

        if filter.license_plate_contains is not None:
            statement = statement.where(
                Event.license_plate.contains(
                    filter.license_plate_contains, autoescape=True
                )
            )

        # dateTime is an opaque device string, bounds compare lexicographically
        if filter.date_from is not None:
            statement = statement.where(Event.date_time >= filter.date_from)

        if filter.date_to is not None:
            statement = statement.where(Event.date_time <= filter.date_to)

        statement = statement.order_by(Event.date_time.desc(), Event.id.desc())

        if filter.limit is not None:
            statement = statement.limit(filter.limit)

        return statement

    async def get_all_by_filter(self, filter: EventFilter) -> Sequence[Event]:
        return await self.get_all(self.get_filtered_statement(filter))

    async def get_by_id(self, id: int) -> Event | None:
        statement = self.get_base_statement().where(Event.id == id)
        return await self.get_one_or_none(statement)

    async def get_stats(self) -> EventStats:
        statement = select(
            func.count(Event.id),
            func.count(Event.license_plate.distinct()),
            func.count(Event.channel_id.distinct()),
            func.max(Event.date_time),
        )
        total_events, unique_vehicles, active_channels, last_detection = (
            await self.get_row(statement)
        )
        return EventStats(
            total_events=total_events,
            unique_vehicles=unique_vehicles,
            active_channels=active_channels,
            last_detection=last_detection,
        )
