"""Health check endpoint reporting account store and cache connectivity."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.cache import CacheLayer, get_cache
from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    cache: Annotated[CacheLayer, Depends(get_cache)],
) -> HealthResponse:
    """
    Return service health plus database and Redis connectivity.
    A down cache degrades profile reads; a down database fails logins.
    """
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        cache="connected" if cache.ping() else "disconnected",
    )
