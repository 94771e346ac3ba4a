from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from anpr_server.database import get_db_session
from anpr_server.event.endpoints import get_event_filter
from anpr_server.event.schemas import EventFilter
from anpr_server.event.service import event as event_service
from anpr_server.kit.db.sqlite import AsyncSession

router = APIRouter(tags=["dashboard"], include_in_schema=False)

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    filter: EventFilter = Depends(get_event_filter),
    session: AsyncSession = Depends(get_db_session),
) -> HTMLResponse:
    events, stats = await event_service.read(session, filter)

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "events": events,
            "stats": stats,
            "filter": filter,
            "upload_url_prefix": request.state.settings.UPLOAD_URL_PREFIX,
        },
    )
