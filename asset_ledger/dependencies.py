from typing import Optional

from fastapi import Query

from asset_ledger.config import get_settings
from asset_ledger.database.session import get_db
from asset_ledger.storage import BlobStore, get_blob_store


def blob_store() -> Optional[BlobStore]:
    return get_blob_store()


def page_params(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> tuple[int, int]:
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    return page, limit


__all__ = ["blob_store", "get_db", "page_params"]
