"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workforce_ingest.api.v1 import imports
from workforce_ingest.core.config import settings
from workforce_ingest.core.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging("DEBUG" if settings.APP_ENV == "development" else settings.LOG_LEVEL)
    logger = get_logger("startup")
    logger.info(
        "Application starting",
        env=settings.APP_ENV,
        document_store=settings.DOCUMENT_STORE_BACKEND,
        blob_store=settings.BLOB_STORE_BACKEND,
    )

    if settings.DOCUMENT_STORE_BACKEND.lower() == "sql":
        from workforce_ingest.db.session import create_tables, engine

        await create_tables(engine)

    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Workforce Import API",
    description="Bulk spreadsheet imports for employees, sites and work orders",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"
app.include_router(imports.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
