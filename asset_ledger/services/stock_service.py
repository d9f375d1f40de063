import logging
import math
from datetime import date
from typing import Optional, Union

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, aliased, outerjoin

from asset_ledger.config import get_settings
from asset_ledger.core.constants import BILL_MIME_TYPE, STOCK_ISSUE_ISSUED
from asset_ledger.core.dates import is_blank
from asset_ledger.core.errors import NotFoundError, ValidationError
from asset_ledger.database.session import run_transaction, transaction
from asset_ledger.models._time import utcnow
from asset_ledger.models.reference import User
from asset_ledger.models.stock import StockEntry, StockIssue
from asset_ledger.schemas.stock import StockEntryInput, StockFilter
from asset_ledger.services import reference_service
from asset_ledger.services.attachment_service import (
    BlobJournal,
    UploadedFile,
    bill_columns,
    cleared_bill_columns,
    load_payload,
    validate_bill,
)
from asset_ledger.services.query_builder import Predicate, paginate
from asset_ledger.storage.provider import BlobStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("product_name", "category", "supplier", "unit", "warehouse")

SEARCH_COLUMNS = (
    StockEntry.product_name,
    StockEntry.category,
    StockEntry.supplier,
    StockEntry.batch_number,
    StockEntry.description,
)

_HIDDEN_COLUMNS = ("bill_pdf", "bill_storage_key")

_Preparer = aliased(User, name="stock_preparer")
_Approver = aliased(User, name="stock_approver")


def _issued_total():
    return (
        select(func.coalesce(func.sum(StockIssue.quantity), 0))
        .where(
            StockIssue.stock_entry_id == StockEntry.id,
            StockIssue.status == STOCK_ISSUE_ISSUED,
        )
        .correlate(StockEntry)
        .scalar_subquery()
    )


def _entry_from():
    return outerjoin(StockEntry, _Preparer, StockEntry.prepared_by == _Preparer.id).outerjoin(
        _Approver, StockEntry.approved_by == _Approver.id
    )


def _entry_select():
    columns = [c for c in StockEntry.__table__.c if c.key not in _HIDDEN_COLUMNS]
    return select(
        *columns,
        (StockEntry.quantity - _issued_total()).label("current_stock"),
        _Preparer.full_name.label("prepared_by_name"),
        _Approver.full_name.label("approved_by_name"),
    ).select_from(_entry_from())


def parse_number(value: Union[float, int, str, None], field: str) -> float:
    """Parse a quantity or price; it must be a finite, non-negative number."""
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: must be a number", [field]) from None
    if not math.isfinite(number) or number < 0:
        raise ValidationError(f"Invalid {field}: must be a non-negative number", [field])
    return number


def _validate(data: StockEntryInput) -> dict:
    missing = [field for field in REQUIRED_FIELDS if is_blank(getattr(data, field))]
    if data.quantity is None or is_blank(str(data.quantity)):
        missing.insert(0, "quantity")
    if missing:
        raise ValidationError.missing(missing)

    numbers = {"quantity": parse_number(data.quantity, "quantity")}
    for field in ("purchase_price", "selling_price"):
        value = getattr(data, field)
        numbers[field] = 0.0 if value is None or is_blank(str(value)) else parse_number(value, field)
    return numbers


def _optional_text(value: Optional[str]) -> Optional[str]:
    return None if is_blank(value) else value.strip()


def _column_values(db: Session, data: StockEntryInput, numbers: dict) -> dict:
    settings = get_settings()
    prepared_by = _optional_text(data.prepared_by) or settings.DEFAULT_PREPARED_BY
    approved_by = _optional_text(data.approved_by) or settings.DEFAULT_APPROVED_BY
    return {
        "entry_date": data.entry_date or date.today(),
        "product_name": data.product_name.strip(),
        "category": data.category.strip(),
        "supplier": data.supplier.strip(),
        "unit": data.unit.strip(),
        "warehouse": data.warehouse.strip(),
        "expiry_date": data.expiry_date,
        "batch_number": _optional_text(data.batch_number),
        "rack_number": _optional_text(data.rack_number),
        "description": _optional_text(data.description),
        "prepared_by": reference_service.resolve(db, "person", prepared_by),
        "approved_by": reference_service.resolve(db, "person", approved_by),
        **numbers,
    }


def _require_entry(db: Session, entry_id: int) -> StockEntry:
    entry = db.get(StockEntry, entry_id)
    if entry is None:
        raise NotFoundError("Stock entry not found")
    return entry


def create_entry(
    db: Session,
    data: StockEntryInput,
    bill: Optional[UploadedFile] = None,
    blobs: Optional[BlobStore] = None,
) -> dict:
    numbers = _validate(data)
    if bill is not None:
        validate_bill(bill)
    journal = BlobJournal(blobs)

    def work():
        values = _column_values(db, data, numbers)
        if bill is not None:
            values.update(bill_columns(bill, journal))
        entry = StockEntry(**values)
        db.add(entry)
        db.flush()
        return entry.id

    entry_id = run_transaction(db, "Create stock entry", work, journal)
    logger.info(
        "Stock entry %s created",
        entry_id,
        extra={"operation": "Create stock entry", "entry_id": entry_id},
    )
    return get_entry(db, entry_id)


def update_entry(
    db: Session,
    entry_id: int,
    data: StockEntryInput,
    bill: Optional[UploadedFile] = None,
    clear_bill: bool = False,
    blobs: Optional[BlobStore] = None,
) -> dict:
    """Replace every scalar column of a stock entry.

    The stored bill is kept unless a new ``bill`` is given (replace) or
    ``clear_bill`` is set (remove). A new bill wins over ``clear_bill``.
    """
    numbers = _validate(data)
    if bill is not None:
        validate_bill(bill)
    journal = BlobJournal(blobs)

    def work():
        entry = _require_entry(db, entry_id)
        values = _column_values(db, data, numbers)
        if bill is not None:
            journal.retire(entry.bill_storage_key)
            values.update(bill_columns(bill, journal))
        elif clear_bill:
            journal.retire(entry.bill_storage_key)
            values.update(cleared_bill_columns())
        for key, value in values.items():
            setattr(entry, key, value)
        entry.updated_at = utcnow()
        db.flush()

    run_transaction(db, "Update stock entry", work, journal)
    logger.info(
        "Stock entry %s updated",
        entry_id,
        extra={"operation": "Update stock entry", "entry_id": entry_id},
    )
    return get_entry(db, entry_id)


def delete_entry(db: Session, entry_id: int, blobs: Optional[BlobStore] = None) -> None:
    journal = BlobJournal(blobs)

    def work():
        entry = _require_entry(db, entry_id)
        issues = db.execute(
            delete(StockIssue).where(StockIssue.stock_entry_id == entry_id)
        ).rowcount
        journal.retire(entry.bill_storage_key)
        db.delete(entry)
        db.flush()
        return issues or 0

    issues = run_transaction(db, "Delete stock entry", work, journal)
    logger.info(
        "Stock entry %s deleted with %d issue(s)",
        entry_id,
        issues,
        extra={"operation": "Delete stock entry", "entry_id": entry_id},
    )


def get_entry(db: Session, entry_id: int) -> dict:
    row = db.execute(_entry_select().where(StockEntry.id == entry_id)).mappings().first()
    if row is None:
        raise NotFoundError("Stock entry not found")
    return dict(row)


def current_stock(db: Session, entry_id: int) -> float:
    """Entry quantity minus everything issued against it; never stored."""
    stock = db.execute(
        select(StockEntry.quantity - _issued_total()).where(StockEntry.id == entry_id)
    ).scalar()
    if stock is None:
        raise NotFoundError("Stock entry not found")
    return float(stock)


def issue(
    db: Session,
    entry_id: int,
    quantity: Union[float, str],
    issued_to: Optional[str] = None,
) -> dict:
    quantity = parse_number(quantity, "quantity")
    if quantity == 0:
        raise ValidationError("Invalid quantity: must be greater than zero", ["quantity"])
    settings = get_settings()

    with transaction(db, "Issue stock"):
        _require_entry(db, entry_id)
        available = current_stock(db, entry_id)
        if quantity > available:
            if not settings.STOCK_ALLOW_OVERISSUE:
                raise ValidationError(
                    f"Cannot issue {quantity:g}; only {available:g} in stock",
                    ["quantity"],
                )
            logger.warning(
                "Over-issuing stock entry %s: issuing %s with %s in stock",
                entry_id,
                quantity,
                available,
            )
        record = StockIssue(
            stock_entry_id=entry_id,
            quantity=quantity,
            status=STOCK_ISSUE_ISSUED,
            issued_to=_optional_text(issued_to),
        )
        db.add(record)
        db.flush()
        result = {
            "id": record.id,
            "stock_entry_id": record.stock_entry_id,
            "quantity": record.quantity,
            "status": record.status,
            "issued_to": record.issued_to,
            "issued_at": record.issued_at,
        }

    logger.info(
        "Issued %s from stock entry %s",
        quantity,
        entry_id,
        extra={"operation": "Issue stock", "entry_id": entry_id},
    )
    return result


def list_issues(db: Session, entry_id: int) -> list[dict]:
    _require_entry(db, entry_id)
    rows = db.execute(
        select(
            StockIssue.id,
            StockIssue.stock_entry_id,
            StockIssue.quantity,
            StockIssue.status,
            StockIssue.issued_to,
            StockIssue.issued_at,
        )
        .where(StockIssue.stock_entry_id == entry_id)
        .order_by(StockIssue.issued_at.desc(), StockIssue.id.desc())
    ).mappings()
    return [dict(row) for row in rows]


def get_bill(db: Session, entry_id: int, blobs: Optional[BlobStore] = None) -> dict:
    entry = _require_entry(db, entry_id)
    if entry.bill_pdf is None and not entry.bill_storage_key:
        raise NotFoundError("Bill not found")
    return {
        "file_name": entry.bill_filename or f"bill-{entry_id}.pdf",
        "mime_type": BILL_MIME_TYPE,
        "data": load_payload(blobs, entry.bill_pdf, entry.bill_storage_key),
        "inline": True,
    }


def entry_predicate(filters: Optional[StockFilter]) -> Predicate:
    filters = filters or StockFilter()
    return (
        Predicate()
        .equals(StockEntry.category, filters.category)
        .equals(StockEntry.warehouse, filters.warehouse)
        .search(filters.search, SEARCH_COLUMNS)
    )


def list_entries(
    db: Session,
    filters: Optional[StockFilter] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
) -> tuple[list[dict], int]:
    stmt = _entry_select().order_by(StockEntry.entry_date.desc(), StockEntry.id.desc())
    return paginate(db, stmt, _entry_from(), entry_predicate(filters), page, limit)


def export_rows(db: Session, filters: Optional[StockFilter] = None) -> list[dict]:
    rows, _total = list_entries(db, filters, page=None, limit=None)
    return rows


__all__ = [
    "create_entry",
    "current_stock",
    "delete_entry",
    "entry_predicate",
    "export_rows",
    "get_bill",
    "get_entry",
    "issue",
    "list_entries",
    "list_issues",
    "parse_number",
    "update_entry",
]
