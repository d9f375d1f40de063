from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from asset_ledger.core.constants import (
    ASSET_STATUS_IN_STOCK,
    ASSET_STATUS_ISSUED,
    ASSET_STATUS_RECEIVED,
    DEVICE_STATUSES,
)
from asset_ledger.models.asset import Asset
from asset_ledger.models.reference import AssetType
from asset_ledger.models.stock import StockEntry
from asset_ledger.services import audit_service


def _count_where(condition, label):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0).label(label)


def dashboard_stats(db: Session) -> dict:
    status_row = db.execute(
        select(
            func.count(Asset.id).label("total_assets"),
            _count_where(Asset.status == ASSET_STATUS_ISSUED, "issued_assets"),
            _count_where(Asset.status == ASSET_STATUS_RECEIVED, "received_assets"),
            _count_where(Asset.status == ASSET_STATUS_IN_STOCK, "in_stock_assets"),
        )
    ).mappings().one()
    device_row = db.execute(
        select(
            *(
                _count_where(Asset.device_status == status, status.lower())
                for status in DEVICE_STATUSES
            )
        ).select_from(Asset)
    ).mappings().one()

    stats = {key: int(value) for key, value in status_row.items()}
    stats["device_stats"] = {key: int(value) for key, value in device_row.items()}
    return stats


def status_distribution(db: Session) -> list[dict]:
    count = func.count(Asset.id).label("count")
    rows = db.execute(
        select(Asset.status, count).group_by(Asset.status).order_by(count.desc(), Asset.status)
    ).mappings()
    return [dict(row) for row in rows]


def _assets_by_type(db: Session) -> list[dict]:
    total = func.count(Asset.id).label("total")
    columns = [
        func.coalesce(AssetType.type_name, "Unknown").label("type_name"),
        total,
        _count_where(Asset.status == ASSET_STATUS_ISSUED, "issued"),
        _count_where(Asset.status == ASSET_STATUS_RECEIVED, "received"),
        _count_where(Asset.status == ASSET_STATUS_IN_STOCK, "in_stock"),
    ]
    columns.extend(
        _count_where(Asset.device_status == status, f"device_{status.lower()}")
        for status in DEVICE_STATUSES
    )
    rows = db.execute(
        select(*columns)
        .select_from(Asset)
        .outerjoin(AssetType, AssetType.id == Asset.type_id)
        .group_by(AssetType.type_name)
        .order_by(total.desc())
    ).mappings()

    result = []
    for row in rows:
        item = {
            "type_name": row["type_name"],
            "total": int(row["total"]),
            "issued": int(row["issued"]),
            "received": int(row["received"]),
            "in_stock": int(row["in_stock"]),
            "device_status": {
                status.lower(): int(row[f"device_{status.lower()}"])
                for status in DEVICE_STATUSES
            },
        }
        result.append(item)
    return result


def _stock_by_category(db: Session) -> list[dict]:
    total = func.count(StockEntry.id).label("total")
    rows = db.execute(
        select(
            StockEntry.category.label("type_name"),
            total,
            func.coalesce(func.sum(StockEntry.quantity), 0).label("total_quantity"),
            func.coalesce(
                func.sum(StockEntry.quantity * StockEntry.purchase_price), 0
            ).label("total_value"),
        )
        .group_by(StockEntry.category)
        .order_by(total.desc())
    ).mappings()
    return [
        {
            "type_name": row["type_name"],
            "total": int(row["total"]),
            "total_quantity": float(row["total_quantity"]),
            "total_value": float(row["total_value"]),
        }
        for row in rows
    ]


def inventory_by_type(db: Session) -> dict:
    """Assets per type (with status breakdown) alongside stock per category."""
    assets = _assets_by_type(db)
    stock = _stock_by_category(db)
    return {
        "assets": assets,
        "stock": stock,
        "summary": {
            "asset_types": len(assets),
            "total_assets": sum(item["total"] for item in assets),
            "stock_categories": len(stock),
            "total_stock_entries": sum(item["total"] for item in stock),
            "total_stock_value": round(sum(item["total_value"] for item in stock), 2),
        },
    }


def recent_activity(db: Session, limit: int = 10) -> list[dict]:
    return audit_service.recent_activity(db, limit)


__all__ = [
    "dashboard_stats",
    "inventory_by_type",
    "recent_activity",
    "status_distribution",
]
