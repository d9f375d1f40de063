from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from asset_ledger.dependencies import get_db
from asset_ledger.schemas.common import envelope
from asset_ledger.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    return envelope(dashboard_service.dashboard_stats(db))


@router.get("/status-distribution")
def status_distribution(db: Session = Depends(get_db)):
    return envelope(dashboard_service.status_distribution(db))


@router.get("/inventory-by-type")
def inventory_by_type(db: Session = Depends(get_db)):
    return envelope(dashboard_service.inventory_by_type(db))


@router.get("/recent-activity")
def recent_activity(
    limit: Optional[int] = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return envelope(dashboard_service.recent_activity(db, limit))


__all__ = ["router"]
