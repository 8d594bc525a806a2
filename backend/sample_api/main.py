"""
FastAPI application factory.

Startup sequence:
  1. Validate settings
  2. Check DB connectivity (warn on failure — do not crash, the NLB health
     check only needs /healthcheck)
  3. Mount the routers

Run locally with:
    uvicorn sample_api.main:app --port 5000
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sample_api.api.health import router as health_router
from sample_api.api.sample import router as sample_router
from sample_api.core.config import get_settings
from sample_api.core.db import check_db_connection

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting sample API on port %s (env=%s)", settings.service_port, settings.environment
    )
    if await check_db_connection():
        logger.info("Database connection: OK")
    else:
        logger.warning("Database connection: FAILED — check POSTGRESQL_* settings")

    yield

    logger.info("Shutting down sample API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Sample edge application — API",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ------------------------------------------------------------------ #
    # Global exception handler
    # ------------------------------------------------------------------ #
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(health_router)
    app.include_router(sample_router)

    return app


app = create_app()
