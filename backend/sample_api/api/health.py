"""
GET /healthcheck — NLB target and container health check.

No database access: a task with an unreachable database still reports healthy
so that /api/pgtest can surface the failure.
"""
from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()


class MessageResponse(BaseModel):
    message: str


@router.get("/healthcheck", response_model=MessageResponse, tags=["health"])
async def health_check() -> MessageResponse:
    return MessageResponse(message="OK")
