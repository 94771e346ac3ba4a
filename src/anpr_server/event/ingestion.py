from collections.abc import Mapping

import structlog
from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData, UploadFile

from anpr_server.attachment.schemas import AttachmentKind
from anpr_server.attachment.service import AttachmentStore, get_attachment_store
from anpr_server.database import get_db_session
from anpr_server.event.schemas import (
    EventAttachments,
    IngestedEvent,
    IngestionResponse,
)
from anpr_server.event.service import event as event_service
from anpr_server.event.validator import normalize
from anpr_server.exceptions import (
    AnprServerError,
    MissingRequiredField,
    PayloadTooLarge,
    UnsupportedMediaType,
)
from anpr_server.kit.db.sqlite import AsyncSession
from anpr_server.logging import Logger

log: Logger = structlog.get_logger()

router = APIRouter(tags=["ingestion"])


def get_image_parts(form: FormData) -> dict[AttachmentKind, UploadFile]:
    """Image parts present in the submission, in storage order. Empty parts count as absent."""
    parts: dict[AttachmentKind, UploadFile] = {}
    for kind in AttachmentKind:
        upload = form.get(kind.field_name)
        if isinstance(upload, UploadFile) and upload.size != 0:
            parts[kind] = upload
    return parts


def get_params(request: Request, form: FormData) -> Mapping[str, str]:
    """Metadata from the query string, with form text fields filling the gaps."""
    params = {key: value for key, value in form.items() if isinstance(value, str)}
    params.update(request.query_params)
    return params


@router.post(
    "/",
    summary="Ingest Detection",
    response_model=IngestionResponse,
    responses={
        400: {"model": MissingRequiredField.schema()},
        413: {"model": PayloadTooLarge.schema()},
        415: {"model": UnsupportedMediaType.schema()},
        500: {"model": AnprServerError.schema()},
    },
)
@router.post("/hik", include_in_schema=False, response_model=IngestionResponse)
async def ingest(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    attachment_store: AttachmentStore = Depends(get_attachment_store),
) -> IngestionResponse:
    """
    Receive a detection pushed by a camera unit.

    Metadata comes as query or form parameters, images as the multipart parts
    `licensePlatePicture.jpg`, `vehiclePicture.jpg` and `detectionPicture.jpg`.
    Images are written before the event row; if storing the row fails the files
    stay behind.
    """
    async with request.form() as form:
        parts = get_image_parts(form)
        for kind, upload in parts.items():
            attachment_store.check(kind, upload.size or 0, upload.content_type)

        create_schema = normalize(get_params(request, form))

        references: dict[str, str] = {}
        for kind, upload in parts.items():
            references[kind.reference_attribute] = await attachment_store.store(
                kind,
                await upload.read(),
                upload.content_type,
                upload.filename,
                create_schema.license_plate,
                reserved=references.values(),
            )

    attachments = EventAttachments.model_validate(references)
    event = await event_service.create(session, create_schema, attachments)

    log.info(
        "Received vehicle detection event",
        id=event.id,
        channel_id=event.channel_id,
        event_type=event.event_type,
        license_plate=event.license_plate,
        attachments=list(references.values()),
    )

    ingested_event = IngestedEvent.model_validate(event)
    ingested_event.image_file = attachments.first()
    return IngestionResponse(event=ingested_event)
