import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, aliased, outerjoin

from asset_ledger.config import get_settings
from asset_ledger.core.constants import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    ASSET_STATUS_ALIASES,
    ASSET_STATUS_IN_STOCK,
    ASSET_STATUS_ISSUED,
    ASSET_STATUS_RECEIVED,
    DEFAULT_DEVICE_STATUS,
    DEFAULT_RECOVERY_STATUS,
)
from asset_ledger.core.dates import is_blank
from asset_ledger.core.errors import NotFoundError, ValidationError
from asset_ledger.database.session import run_transaction
from asset_ledger.models._time import utcnow
from asset_ledger.models.asset import Asset
from asset_ledger.models.reference import AssetBrand, AssetType, User
from asset_ledger.schemas.asset import AssetFilter, AssetInput
from asset_ledger.services import attachment_service, audit_service, reference_service
from asset_ledger.services.attachment_service import BlobJournal, UploadedFile
from asset_ledger.services.query_builder import Predicate, paginate
from asset_ledger.storage.provider import BlobStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("type_name", "brand_name", "model_name")

_TEXT_FIELDS = (
    "vehicle_number",
    "serial_number",
    "imei_number",
    "ip_address",
    "gid",
    "issued_to",
    "received_from",
    "device_remark",
    "recovery_name",
    "replace_device_sn_imei",
)

_Preparer = aliased(User, name="preparer")
_Approver = aliased(User, name="approver")

SEARCH_COLUMNS = (
    Asset.model_name,
    Asset.vehicle_number,
    Asset.serial_number,
    Asset.imei_number,
    Asset.ip_address,
    Asset.gid,
    Asset.issued_to,
    Asset.received_from,
    Asset.device_remark,
)

QUICK_SEARCH_COLUMNS = SEARCH_COLUMNS + (AssetType.type_name, AssetBrand.brand_name)


def _asset_from():
    return (
        outerjoin(Asset, AssetType, Asset.type_id == AssetType.id)
        .outerjoin(AssetBrand, Asset.brand_id == AssetBrand.id)
        .outerjoin(_Preparer, Asset.prepared_by == _Preparer.id)
        .outerjoin(_Approver, Asset.approved_by == _Approver.id)
    )


def _asset_select():
    return select(
        *Asset.__table__.c,
        AssetType.type_name,
        AssetBrand.brand_name,
        _Preparer.full_name.label("prepared_by_name"),
        _Approver.full_name.label("approved_by_name"),
    ).select_from(_asset_from())


def normalize_status(value: Optional[str]) -> str:
    if is_blank(value):
        return ASSET_STATUS_IN_STOCK
    value = value.strip()
    normalized = ASSET_STATUS_ALIASES.get(value.lower())
    if normalized is None:
        raise ValidationError(f"Invalid status: {value}", ["status"])
    return normalized


def _status_filter(value: Optional[str]) -> Optional[str]:
    if is_blank(value):
        return None
    return ASSET_STATUS_ALIASES.get(value.strip().lower(), value.strip())


def derive_dates(
    status: str, issue_date: Optional[date], received_date: Optional[date]
) -> tuple[Optional[date], Optional[date]]:
    """Issue/received date pair implied by ``status``; at most one is set."""
    if status == ASSET_STATUS_ISSUED:
        return issue_date or date.today(), None
    if status == ASSET_STATUS_RECEIVED:
        return None, received_date or date.today()
    return None, None


def _validate(data: AssetInput) -> None:
    missing = [field for field in REQUIRED_FIELDS if is_blank(getattr(data, field))]
    if missing:
        raise ValidationError.missing(missing)


def _text(value: Optional[str], default: str = "") -> str:
    if is_blank(value):
        return default
    return value.strip()


def _column_values(db: Session, data: AssetInput) -> dict:
    settings = get_settings()
    status = normalize_status(data.status)
    issue_date, received_date = derive_dates(status, data.issue_date, data.received_date)

    values = {field: _text(getattr(data, field)) for field in _TEXT_FIELDS}
    values.update(
        type_id=reference_service.resolve(db, "type", data.type_name),
        brand_id=reference_service.resolve(db, "brand", data.brand_name),
        model_name=data.model_name.strip(),
        status=status,
        issue_date=issue_date,
        received_date=received_date,
        device_status=_text(data.device_status, DEFAULT_DEVICE_STATUS),
        recovery_status=_text(data.recovery_status, DEFAULT_RECOVERY_STATUS),
        prepared_by=reference_service.resolve(
            db, "person", _text(data.prepared_by, settings.DEFAULT_PREPARED_BY)
        ),
        approved_by=reference_service.resolve(
            db, "person", _text(data.approved_by, settings.DEFAULT_APPROVED_BY)
        ),
        mail_date=data.mail_date,
    )
    return values


def _load_row(db: Session, asset_id: int) -> dict:
    row = db.execute(_asset_select().where(Asset.id == asset_id)).mappings().first()
    if row is None:
        raise NotFoundError("Asset not found")
    return dict(row)


def _compose(db: Session, asset_id: int, *, with_history: bool) -> dict:
    asset = _load_row(db, asset_id)
    asset["images"] = attachment_service.list_images(db, asset_id)
    asset["documents"] = attachment_service.list_documents(db, asset_id)
    if with_history:
        asset["history"] = audit_service.list_history(db, asset_id)
    return asset


def create_asset(
    db: Session,
    data: AssetInput,
    images: Iterable[UploadedFile] = (),
    document: Optional[UploadedFile] = None,
    blobs: Optional[BlobStore] = None,
) -> dict:
    _validate(data)
    journal = BlobJournal(blobs)

    def work():
        values = _column_values(db, data)
        asset = Asset(**values)
        db.add(asset)
        db.flush()
        attachment_service.add_images(db, asset.id, images, journal)
        if document is not None:
            attachment_service.set_document(db, asset.id, document, journal)
        audit_service.append(
            db,
            asset.id,
            ACTION_CREATE,
            values["prepared_by"],
            new_values=audit_service.snapshot(asset),
            note="Asset created",
        )
        return asset.id

    asset_id = run_transaction(db, "Create asset", work, journal)
    logger.info(
        "Asset %s created",
        asset_id,
        extra={"operation": "Create asset", "asset_id": asset_id},
    )
    return _compose(db, asset_id, with_history=False)


def update_asset(
    db: Session,
    asset_id: int,
    data: AssetInput,
    images: Iterable[UploadedFile] = (),
    document: Optional[UploadedFile] = None,
    blobs: Optional[BlobStore] = None,
) -> dict:
    """Replace every scalar column of an asset from ``data``.

    Images are only added here; removing one goes through ``remove_image``.
    A new document replaces the existing ones.
    """
    _validate(data)
    journal = BlobJournal(blobs)

    def work():
        asset = db.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("Asset not found")
        old_values = audit_service.snapshot(asset)
        values = _column_values(db, data)
        for key, value in values.items():
            setattr(asset, key, value)
        asset.updated_at = utcnow()
        db.flush()
        attachment_service.add_images(db, asset.id, images, journal)
        if document is not None:
            attachment_service.set_document(db, asset.id, document, journal)
        audit_service.append(
            db,
            asset.id,
            ACTION_UPDATE,
            values["prepared_by"],
            old_values=old_values,
            new_values=audit_service.snapshot(asset),
            note="Asset updated",
        )

    run_transaction(db, "Update asset", work, journal)
    logger.info(
        "Asset %s updated",
        asset_id,
        extra={"operation": "Update asset", "asset_id": asset_id},
    )
    return _compose(db, asset_id, with_history=False)


def delete_asset(
    db: Session,
    asset_id: int,
    actor: Optional[str] = None,
    blobs: Optional[BlobStore] = None,
) -> None:
    journal = BlobJournal(blobs)

    def work():
        asset = db.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("Asset not found")
        actor_id = reference_service.resolve(db, "person", actor) or asset.prepared_by
        audit_service.append(
            db,
            asset_id,
            ACTION_DELETE,
            actor_id,
            old_values=audit_service.snapshot(asset),
            note="Asset deleted",
        )
        images, documents = attachment_service.delete_for_asset(db, asset_id, journal)
        db.delete(asset)
        db.flush()
        return images, documents

    images, documents = run_transaction(db, "Delete asset", work, journal)
    logger.info(
        "Asset %s deleted with %d image(s) and %d document(s)",
        asset_id,
        images,
        documents,
        extra={"operation": "Delete asset", "asset_id": asset_id},
    )


def remove_image(
    db: Session, asset_id: int, image_id: int, blobs: Optional[BlobStore] = None
) -> None:
    journal = BlobJournal(blobs)
    run_transaction(
        db,
        "Remove image",
        lambda: attachment_service.remove_image(db, asset_id, image_id, journal),
        journal,
    )
    logger.info(
        "Image %s removed from asset %s",
        image_id,
        asset_id,
        extra={"operation": "Remove image", "asset_id": asset_id},
    )


def get_asset(db: Session, asset_id: int) -> dict:
    return _compose(db, asset_id, with_history=True)


def asset_predicate(filters: Optional[AssetFilter]) -> Predicate:
    filters = filters or AssetFilter()
    return (
        Predicate()
        .equals(Asset.status, _status_filter(filters.status))
        .equals(Asset.device_status, filters.device_status)
        .search(filters.search, SEARCH_COLUMNS)
    )


def list_assets(
    db: Session,
    filters: Optional[AssetFilter] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
) -> tuple[list[dict], int]:
    """Joined asset rows matching ``filters`` plus the total match count.

    ``limit=None`` returns every matching row (used by the export).
    """
    stmt = _asset_select().order_by(Asset.created_at.desc(), Asset.id.desc())
    return paginate(db, stmt, _asset_from(), asset_predicate(filters), page, limit)


def export_rows(db: Session, filters: Optional[AssetFilter] = None) -> list[dict]:
    rows, _total = list_assets(db, filters, page=None, limit=None)
    return rows


def quick_search(db: Session, query: Optional[str], limit: int = 20) -> list[dict]:
    if is_blank(query):
        return []
    predicate = Predicate().search(query, QUICK_SEARCH_COLUMNS)
    stmt = predicate.apply(
        select(
            Asset.id,
            AssetType.type_name,
            AssetBrand.brand_name,
            Asset.model_name,
            Asset.status,
            Asset.vehicle_number,
            Asset.serial_number,
            Asset.imei_number,
            Asset.issued_to,
            Asset.received_from,
        )
        .select_from(_asset_from())
        .order_by(Asset.id.desc())
        .limit(limit)
    )
    return [dict(row) for row in db.execute(stmt).mappings()]


def stock_summary(db: Session) -> list[dict]:
    def status_count(status, label):
        return func.sum(case((Asset.status == status, 1), else_=0)).label(label)

    stmt = (
        select(
            AssetType.type_name,
            AssetBrand.brand_name,
            Asset.model_name,
            status_count(ASSET_STATUS_ISSUED, "issued_count"),
            status_count(ASSET_STATUS_RECEIVED, "received_count"),
            status_count(ASSET_STATUS_IN_STOCK, "in_stock_count"),
            func.count().label("total_count"),
        )
        .select_from(_asset_from())
        .group_by(AssetType.type_name, AssetBrand.brand_name, Asset.model_name)
        .order_by(AssetType.type_name, AssetBrand.brand_name, Asset.model_name)
    )
    return [dict(row) for row in db.execute(stmt).mappings()]


__all__ = [
    "asset_predicate",
    "create_asset",
    "delete_asset",
    "derive_dates",
    "export_rows",
    "get_asset",
    "list_assets",
    "normalize_status",
    "quick_search",
    "remove_image",
    "stock_summary",
    "update_asset",
]
