from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from anpr_server.attachment.service import AttachmentStore
from anpr_server.kit.db.sqlite import AsyncSession


async def check_database(session: AsyncSession) -> bool:
    try:
        await session.execute(select(1))
        return True
    except SQLAlchemyError:
        return False


async def check_uploads(attachment_store: AttachmentStore) -> bool:
    try:
        return await attachment_store.is_writable()
    except OSError:
        return False
