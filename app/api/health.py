import logging
import os
import time
from typing import Dict

import sqlalchemy.exc
from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

STARTED_AT = time.time()


class HealthResponse(BaseModel):
    status: str
    version: str
    dependencies: Dict[str, str]
    uptime: float


async def _database_status(request: Request) -> str:
    database = getattr(request.app.state, "database", None)
    if database is None:
        logger.warning("Health: no database attached to the application")
        return "disconnected"
    try:
        return "connected" if await database.ping() else "disconnected"
    except (sqlalchemy.exc.SQLAlchemyError, OSError) as e:
        logger.warning(f"Health: database ping failed: {e}")
        return "disconnected"


def _uploads_status() -> str:
    return "writable" if os.access(settings.UPLOAD_DIR, os.W_OK) else "read-only"


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(request: Request, response: Response):
    """Liveness plus database reachability; 503 while the database is unreachable."""
    dependencies = {"database": await _database_status(request), "uploads": _uploads_status()}
    healthy = dependencies["database"] == "connected"
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=request.app.version,
        dependencies=dependencies,
        uptime=time.time() - STARTED_AT,
    )
