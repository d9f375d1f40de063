from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from asset_ledger.core.constants import SPREADSHEET_MIME_TYPE
from asset_ledger.dependencies import blob_store, get_db, page_params
from asset_ledger.routers.forms import attachment_response, read_body
from asset_ledger.schemas.common import envelope
from asset_ledger.schemas.stock import StockEntryInput, StockFilter, StockIssueCreate
from asset_ledger.services import export_service, stock_service

router = APIRouter(prefix="/stock", tags=["Stock"])


@router.get("")
def list_entries(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    warehouse: Optional[str] = Query(None),
    paging: tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, limit = paging
    filters = StockFilter(search=search, category=category, warehouse=warehouse)
    rows, total = stock_service.list_entries(db, filters, page, limit)
    return envelope(rows, page=page, limit=limit, total=total)


@router.post("", status_code=201)
async def create_entry(
    request: Request,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    body = await read_body(request)
    data = body.model(StockEntryInput)
    bill = await body.file("bill_pdf")
    entry = await run_in_threadpool(stock_service.create_entry, db, data, bill, blobs)
    return envelope(entry, message="Stock entry created successfully")


@router.get("/export")
def export_entries(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    warehouse: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    filters = StockFilter(search=search, category=category, warehouse=warehouse)
    content = export_service.build_stock_workbook(stock_service.export_rows(db, filters))
    filename = export_service.export_filename("stock_entries")
    return Response(
        content=content,
        media_type=SPREADSHEET_MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{entry_id}")
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return envelope(stock_service.get_entry(db, entry_id))


@router.put("/{entry_id}")
async def update_entry(
    entry_id: int,
    request: Request,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    body = await read_body(request)
    data = body.model(StockEntryInput)
    bill = await body.file("bill_pdf")
    entry = await run_in_threadpool(
        stock_service.update_entry,
        db,
        entry_id,
        data,
        bill,
        clear_bill=body.flag("clear_bill"),
        blobs=blobs,
    )
    return envelope(entry, message="Stock entry updated successfully")


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    stock_service.delete_entry(db, entry_id, blobs)
    return envelope(message="Stock entry deleted successfully")


@router.get("/{entry_id}/bill")
def get_bill(
    entry_id: int,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    return attachment_response(stock_service.get_bill(db, entry_id, blobs))


@router.get("/{entry_id}/issues")
def list_issues(entry_id: int, db: Session = Depends(get_db)):
    issues = stock_service.list_issues(db, entry_id)
    current = stock_service.current_stock(db, entry_id)
    return envelope({"issues": issues, "current_stock": current})


@router.post("/{entry_id}/issues", status_code=201)
def issue_stock(entry_id: int, payload: StockIssueCreate, db: Session = Depends(get_db)):
    record = stock_service.issue(db, entry_id, payload.quantity, payload.issued_to)
    record["current_stock"] = stock_service.current_stock(db, entry_id)
    return envelope(record, message="Stock issued successfully")


__all__ = ["router"]
