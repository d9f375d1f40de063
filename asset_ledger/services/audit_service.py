from datetime import date, datetime
from typing import Optional

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from asset_ledger.models.history import AssetHistory
from asset_ledger.models.reference import User


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot(record) -> dict:
    """Full JSON-safe state of a mapped row, keyed by column name."""
    mapper = inspect(record).mapper
    return {
        column.key: _json_value(getattr(record, column.key))
        for column in mapper.column_attrs
    }


def append(
    db: Session,
    asset_id: int,
    action_type: str,
    actor_id: Optional[int],
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
    note: Optional[str] = None,
) -> AssetHistory:
    entry = AssetHistory(
        asset_id=asset_id,
        action_type=action_type,
        changed_by=actor_id,
        old_values=old_values,
        new_values=new_values,
        notes=note,
    )
    db.add(entry)
    db.flush()
    return entry


def _history_query():
    return (
        select(
            AssetHistory.id,
            AssetHistory.asset_id,
            AssetHistory.action_type,
            AssetHistory.changed_by,
            User.full_name.label("changed_by_name"),
            AssetHistory.old_values,
            AssetHistory.new_values,
            AssetHistory.notes,
            AssetHistory.created_at,
        )
        .outerjoin(User, User.id == AssetHistory.changed_by)
        .order_by(AssetHistory.created_at.desc(), AssetHistory.id.desc())
    )


def list_history(db: Session, asset_id: int) -> list[dict]:
    rows = db.execute(
        _history_query().where(AssetHistory.asset_id == asset_id)
    ).mappings()
    return [dict(row) for row in rows]


def recent_activity(db: Session, limit: int = 10) -> list[dict]:
    rows = db.execute(_history_query().limit(limit)).mappings()
    return [dict(row) for row in rows]


__all__ = ["append", "list_history", "recent_activity", "snapshot"]
