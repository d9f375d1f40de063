"""
Local filesystem blob store.
Payloads are written under a base directory with random keys.
"""
import logging
import uuid
from pathlib import Path

from asset_ledger.core.errors import AttachmentError
from asset_ledger.storage.provider import BlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    def __init__(self, base_dir: str = "var/attachments"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        clean_key = key.strip().replace("/", "").replace("\\", "").replace("..", "")
        if not clean_key:
            raise AttachmentError(f"Invalid blob key: {key!r}")
        # Two-level fan-out keeps directories small.
        return self.base_dir / clean_key[:2] / clean_key

    def put(self, data: bytes) -> str:
        key = uuid.uuid4().hex
        path = self._get_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise AttachmentError(f"Unable to write blob {key}", cause=exc) from exc
        return key

    def get(self, key: str) -> bytes:
        try:
            return self._get_path(key).read_bytes()
        except OSError as exc:
            raise AttachmentError(f"Unable to read blob {key}", cause=exc) from exc

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Unable to delete blob %s: %s", key, exc)
