from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from asset_ledger.config import get_settings
from asset_ledger.core.constants import SPREADSHEET_MIME_TYPE
from asset_ledger.dependencies import blob_store, get_db, page_params
from asset_ledger.routers.forms import attachment_response, read_body
from asset_ledger.schemas.asset import AssetFilter, AssetInput
from asset_ledger.schemas.common import envelope
from asset_ledger.services import asset_service, attachment_service, export_service

router = APIRouter(prefix="/assets", tags=["Assets"])


@router.get("")
def list_assets(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    device_status: Optional[str] = Query(None),
    paging: tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, limit = paging
    filters = AssetFilter(search=search, status=status, device_status=device_status)
    rows, total = asset_service.list_assets(db, filters, page, limit)
    return envelope(rows, page=page, limit=limit, total=total)


@router.post("", status_code=201)
async def create_asset(
    request: Request,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    body = await read_body(request)
    data = body.model(AssetInput)
    images = await body.files("images")
    document = await body.file("document")
    asset = await run_in_threadpool(
        asset_service.create_asset, db, data, images, document, blobs
    )
    return envelope(asset, message="Asset created successfully")


@router.get("/search")
def quick_search(
    q: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    settings = get_settings()
    limit = min(limit or settings.QUICK_SEARCH_LIMIT, settings.MAX_PAGE_SIZE)
    return envelope(asset_service.quick_search(db, q, limit))


@router.get("/stock-summary")
def stock_summary(db: Session = Depends(get_db)):
    return envelope(asset_service.stock_summary(db))


@router.get("/export")
def export_assets(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    device_status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    filters = AssetFilter(search=search, status=status, device_status=device_status)
    content = export_service.build_asset_workbook(asset_service.export_rows(db, filters))
    filename = export_service.export_filename("assets")
    return Response(
        content=content,
        media_type=SPREADSHEET_MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{asset_id}")
def get_asset(asset_id: int, db: Session = Depends(get_db)):
    return envelope(asset_service.get_asset(db, asset_id))


@router.put("/{asset_id}")
async def update_asset(
    asset_id: int,
    request: Request,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    body = await read_body(request)
    data = body.model(AssetInput)
    images = await body.files("images")
    document = await body.file("document")
    asset = await run_in_threadpool(
        asset_service.update_asset, db, asset_id, data, images, document, blobs
    )
    return envelope(asset, message="Asset updated successfully")


@router.delete("/{asset_id}")
def delete_asset(
    asset_id: int,
    actor: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    asset_service.delete_asset(db, asset_id, actor, blobs)
    return envelope(message="Asset deleted successfully")


@router.get("/{asset_id}/images/{image_id}")
def get_image(
    asset_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    return attachment_response(attachment_service.get_image(db, asset_id, image_id, blobs))


@router.delete("/{asset_id}/images/{image_id}")
def delete_image(
    asset_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    asset_service.remove_image(db, asset_id, image_id, blobs)
    return envelope(message="Image removed successfully")


@router.get("/{asset_id}/documents/{document_id}")
def get_document(
    asset_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    blobs=Depends(blob_store),
):
    return attachment_response(
        attachment_service.get_document(db, asset_id, document_id, blobs)
    )


__all__ = ["router"]
