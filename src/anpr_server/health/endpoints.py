import asyncio

from fastapi import APIRouter, Depends, Response
from starlette import status

from anpr_server.attachment.service import AttachmentStore, get_attachment_store
from anpr_server.database import get_db_session
from anpr_server.health.checks import check_database, check_uploads
from anpr_server.health.schemas import ReadinessSchema
from anpr_server.kit.db.sqlite import AsyncSession

router = APIRouter(
    prefix="/health", redirect_slashes=True, tags=["health"], include_in_schema=False
)


@router.get("/live")
async def liveness_probe() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/ready", response_model=ReadinessSchema)
async def readiness_probe(
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    attachment_store: AttachmentStore = Depends(get_attachment_store),
) -> ReadinessSchema:
    database_check_task = check_database(session)
    uploads_check_task = check_uploads(attachment_store)

    results = await asyncio.gather(database_check_task, uploads_check_task)

    checks = ReadinessSchema(database=results[0], uploads=results[1])

    if not all(checks.model_dump().values()):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return checks
