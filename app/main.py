from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.importer import build_default_importer


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    importer = build_default_importer()
    try:
        yield
    finally:
        importer.shutdown()
        build_default_importer.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Reservoir Monitor",
        description="Reservoir registration, sensor status evaluation, history statistics and alerts.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
