from fastapi import APIRouter, Depends, Query, Request

from anpr_server.database import get_db_session
from anpr_server.event.schemas import Event as EventSchema
from anpr_server.event.schemas import EventFilter, EventID, EventList
from anpr_server.event.service import event as event_service
from anpr_server.exceptions import ResourceNotFound
from anpr_server.kit.db.sqlite import AsyncSession
from anpr_server.models.event import Event

router = APIRouter(prefix="/events", redirect_slashes=True, tags=["events"])


EventNotFound = {"description": "Event not found.", "model": ResourceNotFound.schema()}


def get_event_filter(
    request: Request,
    license_plate: str | None = Query(
        None,
        alias="licensePlate",
        title="License Plate Filter",
        description="Only events whose plate contains this text.",
    ),
    date_from: str | None = Query(
        None,
        alias="dateFrom",
        description="Only events with a dateTime at or after this value.",
    ),
    date_to: str | None = Query(
        None,
        alias="dateTo",
        description="Only events with a dateTime at or before this value.",
    ),
) -> EventFilter:
    """
    Filter for the read endpoints.

    Values are compared as given, and the number of events is always capped by
    the server.
    """
    return EventFilter(
        license_plate_contains=license_plate or None,
        date_from=date_from or None,
        date_to=date_to or None,
        limit=request.state.settings.DASHBOARD_EVENT_LIMIT,
    )


@router.get("/", summary="List Events", response_model=EventList)
async def list(
    filter: EventFilter = Depends(get_event_filter),
    session: AsyncSession = Depends(get_db_session),
) -> EventList:
    """List the latest events matching the filter, with statistics over all events."""
    results, stats = await event_service.read(session, filter)

    return EventList(
        events=[EventSchema.model_validate(result) for result in results],
        stats=stats,
    )


@router.get(
    "/{id}",
    summary="Get Event",
    response_model=EventSchema,
    responses={404: EventNotFound},
)
async def get(id: EventID, session: AsyncSession = Depends(get_db_session)) -> Event:
    """
    Get an event by ID.
    """
    event = await event_service.get(session, id)

    if event is None:
        raise ResourceNotFound()

    return event
