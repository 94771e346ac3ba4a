from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TypedDict

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from anpr_server.api import router
from anpr_server.attachment.service import AttachmentStore
from anpr_server.config import Settings, settings
from anpr_server.dashboard.endpoints import router as dashboard_router
from anpr_server.database import create_async_engine, create_schema
from anpr_server.event.ingestion import router as ingestion_router
from anpr_server.exceptions import add_exception_handlers
from anpr_server.health.endpoints import router as health_router
from anpr_server.kit.db.sqlite import (
    AsyncEngine,
    AsyncSessionMaker,
    create_async_sessionmaker,
)
from anpr_server.logfire import (
    configure_logfire,
    instrument_fastapi,
    instrument_sqlalchemy,
)
from anpr_server.logging import Logger
from anpr_server.logging import configure as configure_logging

log: Logger = structlog.get_logger()


class State(TypedDict):
    settings: Settings
    async_engine: AsyncEngine
    async_sessionmaker: AsyncSessionMaker
    attachment_store: AttachmentStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[State]:
    log.info("Starting ANPR server")

    config: Settings = app.state.settings

    async_engine = create_async_engine("app", config)
    async_sessionmaker = create_async_sessionmaker(async_engine)
    instrument_sqlalchemy(async_engine.sync_engine)
    await create_schema(async_engine)

    attachment_store = AttachmentStore.from_settings(config)
    await attachment_store.ensure_directory()

    log.info(
        "ANPR server started",
        database=str(config.DATABASE_PATH),
        upload_dir=str(config.UPLOAD_DIR),
    )

    yield {
        "settings": config,
        "async_engine": async_engine,
        "async_sessionmaker": async_sessionmaker,
        "attachment_store": attachment_store,
    }

    await async_engine.dispose()

    log.info("ANPR server stopped")


def create_app(config: Settings = settings) -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.state.settings = config

    add_exception_handlers(app)

    # /health
    app.include_router(health_router)

    app.include_router(router)

    # POST / and /hik from the camera units, GET / for the dashboard
    app.include_router(ingestion_router)
    app.include_router(dashboard_router)

    # Directory is created by the lifespan
    app.mount(
        config.UPLOAD_URL_PREFIX,
        StaticFiles(directory=config.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    return app


configure_logfire("server")
configure_logging(logfire=True)

app = create_app()
instrument_fastapi(app)
