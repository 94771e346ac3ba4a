import os
import re
from collections.abc import Collection
from datetime import datetime
from pathlib import Path, PurePosixPath, PureWindowsPath

import anyio
import anyio.to_thread
import structlog
from fastapi import Request

from anpr_server.attachment.schemas import AttachmentKind, FilenamePolicy
from anpr_server.config import Settings
from anpr_server.exceptions import (
    PayloadTooLarge,
    StorageUnavailable,
    UnsupportedMediaType,
)
from anpr_server.kit.utils import utc_now
from anpr_server.logging import Logger

log: Logger = structlog.get_logger()

DEFAULT_EXTENSION = ".jpg"

_unsafe_characters = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_timestamp(timestamp: datetime) -> str:
    return re.sub(r"[:.]", "-", timestamp.strftime("%Y-%m-%dT%H:%M:%S.%fZ"))


def sanitize_plate(license_plate: str) -> str:
    return _unsafe_characters.sub("_", license_plate) or "unknown"


def base_name(hint_name: str | None) -> str:
    """Last path component of a client file name, whichever separator it uses."""
    if not hint_name:
        return ""
    return PureWindowsPath(PurePosixPath(hint_name).name).name


class AttachmentStore:
    """
    Writes the images of a detection to the upload directory.

    Files are named after the vehicle so the directory stays browsable. Two
    uploads for the same plate within the same microsecond end up on the same
    name and the last write wins.
    """

    def __init__(
        self,
        directory: Path,
        *,
        max_size: int,
        allowed_mime_types: list[str],
        filename_policy: FilenamePolicy = "synthesized",
    ) -> None:
        self.directory = directory
        self.max_size = max_size
        self.allowed_mime_types = allowed_mime_types
        self.filename_policy = filename_policy

    @classmethod
    def from_settings(cls, settings: Settings) -> "AttachmentStore":
        return cls(
            settings.UPLOAD_DIR,
            max_size=settings.ATTACHMENT_MAX_SIZE,
            allowed_mime_types=settings.ATTACHMENT_ALLOWED_MIME_TYPES,
            filename_policy=settings.ATTACHMENT_FILENAME_POLICY,
        )

    def check(self, kind: AttachmentKind, size: int, content_type: str | None) -> None:
        if content_type not in self.allowed_mime_types:
            raise UnsupportedMediaType(content_type, self.allowed_mime_types)

        if size > self.max_size:
            raise PayloadTooLarge(kind.field_name, size, self.max_size)

    def get_filename(
        self,
        kind: AttachmentKind,
        hint_name: str | None,
        license_plate: str,
        timestamp: datetime | None = None,
        reserved: Collection[str] = (),
    ) -> str:
        """
        Name to write an image under.

        With the `original` policy the client name is kept unless it is unusable
        or already in `reserved`, in which case a synthesized name is used.
        """
        client_name = base_name(hint_name)

        usable = client_name not in ("", ".", "..") and client_name not in reserved
        if self.filename_policy == "original" and usable:
            return client_name

        extension = Path(client_name).suffix or DEFAULT_EXTENSION
        return (
            f"{sanitize_plate(license_plate)}"
            f"_{sanitize_timestamp(timestamp or utc_now())}"
            f"_{kind.value}{extension}"
        )

    async def ensure_directory(self) -> None:
        try:
            await anyio.Path(self.directory).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Upload directory unavailable: {e}") from e

    async def store(
        self,
        kind: AttachmentKind,
        data: bytes,
        content_type: str | None,
        hint_name: str | None,
        license_plate: str,
        reserved: Collection[str] = (),
    ) -> str:
        """
        Validate and write one image, returning the reference to record on the event.

        `reserved` holds names already taken by other images of the same
        submission.

        Raises:
            UnsupportedMediaType: the part is not an accepted image type.
            PayloadTooLarge: the part exceeds the configured size.
            StorageUnavailable: the file could not be written.
        """
        self.check(kind, len(data), content_type)

        filename = self.get_filename(
            kind, hint_name, license_plate, reserved=reserved
        )
        await self.ensure_directory()
        try:
            await anyio.Path(self.directory, filename).write_bytes(data)
        except OSError as e:
            log.error("Attachment write failed", filename=filename, error=str(e))
            raise StorageUnavailable(f"Could not write {filename}") from e

        log.debug("Attachment stored", kind=kind.value, filename=filename, size=len(data))

        return filename

    async def is_writable(self) -> bool:
        if not await anyio.Path(self.directory).is_dir():
            return False
        return await anyio.to_thread.run_sync(os.access, self.directory, os.W_OK)


async def get_attachment_store(request: Request) -> AttachmentStore:
    return request.state.attachment_store
