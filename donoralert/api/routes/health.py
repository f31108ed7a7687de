"""GET /health and /api/health: liveness and database connectivity."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from donoralert.api.deps import get_db
from donoralert.core.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", summary="Basic health check")
@router.get("/api/health", summary="Basic health check", include_in_schema=False)
def health_check(db: Session = Depends(get_db)) -> dict[str, str]:
    settings = get_settings()
    try:
        db.execute(text("SELECT 1"))
        database = "Connected"
    except SQLAlchemyError as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        db.rollback()
        database = "Disconnected"
    return {
        "status": "ok",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
    }
