"""
Sample endpoints served behind the edge under /api.

  GET /api/hello   — greeting; reports whether the request came through CloudFront
  GET /api/pgtest  — round trip to the database
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sample_api.core.db import database_time, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sample"])


class HelloResponse(BaseModel):
    message: str
    source: str


class PgTestResponse(BaseModel):
    status: str
    now: str


def request_source(request: Request) -> str:
    """CloudFront adds itself to Via on every request it forwards."""
    via = request.headers.get("via", "")
    return "CloudFront" if "cloudfront" in via.lower() else "direct"


@router.get("/hello", response_model=HelloResponse)
async def hello(request: Request) -> HelloResponse:
    return HelloResponse(message="Hello!", source=request_source(request))


@router.get("/pgtest", response_model=PgTestResponse)
async def pgtest(db: AsyncSession = Depends(get_db)) -> PgTestResponse:
    try:
        now = await database_time(db)
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Database probe failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        ) from exc

    return PgTestResponse(status="ok", now=now)
