import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from asset_ledger.config import get_settings
from asset_ledger.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a round trip to the ledger database."""
    settings = get_settings()
    body = {
        "success": True,
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "database": {"dialect": db.get_bind().dialect.name, "status": "ok"},
        "attachments": {"backend": settings.ATTACHMENT_BACKEND},
        "time": datetime.now(timezone.utc).isoformat(),
    }
    try:
        db.execute(text("SELECT 1")).scalar_one()
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc, extra={"operation": "Health"})
        body["success"] = False
        body["status"] = "degraded"
        body["database"]["status"] = "unavailable"
        return JSONResponse(status_code=503, content=body)
    return body


__all__ = ["router"]
