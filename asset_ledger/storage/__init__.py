from functools import lru_cache
from typing import Optional

from asset_ledger.config import get_settings
from asset_ledger.storage.local_provider import LocalBlobStore
from asset_ledger.storage.provider import BlobStore


@lru_cache
def get_blob_store() -> Optional[BlobStore]:
    """Blob store for the configured backend; None keeps payloads in-row."""
    settings = get_settings()
    backend = settings.ATTACHMENT_BACKEND.strip().lower()
    if backend == "local":
        return LocalBlobStore(settings.ATTACHMENT_DIR)
    if backend != "database":
        raise RuntimeError(f"Unknown ATTACHMENT_BACKEND: {settings.ATTACHMENT_BACKEND}")
    return None


__all__ = ["BlobStore", "LocalBlobStore", "get_blob_store"]
