"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ddtrace import patch_all
from fastapi import FastAPI

from field_inspection.config import load_config
from field_inspection.dependencies import build_broker, build_store
from field_inspection.infrastructure.interfaces import MessagePublisher
from field_inspection.repositories import EvidenceStore
from field_inspection.routes import inspections_router

patch_all()


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "store", None) is None:
        config = load_config()
        app.state.store = build_store(config)
        app.state.publisher = build_broker(config)
    yield


def create_app(
    store: EvidenceStore | None = None, publisher: MessagePublisher | None = None
) -> FastAPI:
    """Builds the API around an explicitly supplied store and publisher."""
    app = FastAPI(title="Field Inspection API", lifespan=_lifespan)
    app.state.store = store
    app.state.publisher = publisher
    app.include_router(inspections_router)
    return app


app = create_app()
