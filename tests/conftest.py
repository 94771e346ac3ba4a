from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from anpr_server.app import create_app
from anpr_server.attachment.service import AttachmentStore
from anpr_server.config import Environment, Settings
from anpr_server.database import create_async_engine, create_schema
from anpr_server.kit.db.sqlite import AsyncSession, create_async_sessionmaker

# Start/end of image markers with a tiny JFIF header, enough to be served back as-is
JPEG_BYTES = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    + bytes(range(256))
    + b"\xff\xd9"
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        ENV=Environment.testing,
        DATABASE_PATH=tmp_path / "events.db",
        UPLOAD_DIR=tmp_path / "uploads",
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
async def session(settings: Settings, anyio_backend: str) -> AsyncIterator[AsyncSession]:
    engine = create_async_engine("script", settings)
    await create_schema(engine)
    sessionmaker = create_async_sessionmaker(engine)
    async with sessionmaker() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def attachment_store(settings: Settings) -> AttachmentStore:
    return AttachmentStore.from_settings(settings)


@pytest.fixture
def jpeg() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def upload_dir(settings: Settings) -> Path:
    return settings.UPLOAD_DIR
