"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.models.database.base import init_db
from app.api.v1.routes import projects, rows, glossary, templates, translation
from app.core.storage import RowStore
from app.core.translation.queue import QueueRegistry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Initialize database
    await init_db()

    # Startup: rows owned by a previous process's queue have no owner now
    try:
        reset = await RowStore().reset_in_flight()
        if reset:
            logger.info(f"Returned {reset} interrupted rows to pending on startup")
    except Exception as e:
        logger.error(f"Failed to reset interrupted rows on startup: {e}")

    app.state.queue_registry = QueueRegistry()

    yield

    # Shutdown: stop queues so no row is left queued/translating
    await app.state.queue_registry.shutdown()


app = FastAPI(
    title=settings.app_name,
    description="Marketing content translation with glossary enforcement and LLM batching",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(projects.router, prefix="/api/v1", tags=["projects"])
app.include_router(rows.router, prefix="/api/v1", tags=["rows"])
app.include_router(glossary.router, prefix="/api/v1", tags=["glossary"])
app.include_router(templates.router, prefix="/api/v1", tags=["templates"])
app.include_router(translation.router, prefix="/api/v1", tags=["translation"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Content Translator API", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
