"""Health check routes."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from blockcanvas.api.config import get_settings
from blockcanvas.db.base import get_db

router = APIRouter()


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    ready: bool
    timestamp: str
    checks: dict[str, bool]


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check: database reachable, provider configured."""
    checks = {}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception:
        checks["database"] = False

    # Informational: generation still works through pattern matching
    checks["provider"] = get_settings().has_provider_key

    return ReadinessResponse(
        ready=checks["database"],
        timestamp=datetime.utcnow().isoformat(),
        checks=checks,
    )
