import logging
import mimetypes
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from asset_ledger.core.constants import (
    BILL_MIME_TYPE,
    DOCUMENT_MIME_TYPES,
    DOCUMENT_TYPE_OTHER,
    DOCUMENT_TYPES,
    INLINE_DOCUMENT_EXTENSIONS,
)
from asset_ledger.core.errors import AttachmentError, NotFoundError, ValidationError
from asset_ledger.models.asset import AssetDocument, AssetImage
from asset_ledger.storage.provider import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." not in self.file_name:
            return ""
        return self.file_name.rsplit(".", 1)[-1].lower()

    def guessed_type(self) -> str:
        if self.content_type and self.content_type != "application/octet-stream":
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.file_name)
        return guessed or self.content_type or "application/octet-stream"


class BlobJournal:
    """Tracks blobs written or replaced during one unit of work.

    Without a blob store payloads stay in-row and the journal is a no-op.
    New blobs are discarded when the work is rolled back; replaced blobs are
    removed once it commits.
    """

    def __init__(self, blobs: Optional[BlobStore] = None):
        self.blobs = blobs
        self.staged: list[str] = []
        self.retired: list[str] = []

    def store(self, data: bytes) -> tuple[Optional[bytes], Optional[str]]:
        if self.blobs is None:
            return data, None
        key = self.blobs.put(data)
        self.staged.append(key)
        return None, key

    def retire(self, key: Optional[str]) -> None:
        if key:
            self.retired.append(key)

    def commit(self) -> None:
        self._discard(self.retired)

    def rollback(self) -> None:
        self._discard(self.staged)

    def _discard(self, keys: list[str]) -> None:
        if self.blobs is None:
            return
        for key in keys:
            self.blobs.delete(key)
        keys.clear()


def load_payload(
    blobs: Optional[BlobStore], inline: Optional[bytes], key: Optional[str]
) -> Optional[bytes]:
    if not key:
        return inline
    if blobs is None:
        raise AttachmentError(f"Payload {key} is stored externally but no blob store is configured")
    return blobs.get(key)


def document_type_for(file_name: str) -> str:
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    return extension if extension in DOCUMENT_TYPES else DOCUMENT_TYPE_OTHER


def _image_metadata(image: AssetImage) -> dict:
    return {
        "id": image.id,
        "asset_id": image.asset_id,
        "image_name": image.image_name,
        "image_size": image.image_size,
        "mime_type": image.mime_type,
        "is_primary": bool(image.is_primary),
        "uploaded_at": image.uploaded_at,
    }


def _document_metadata(document: AssetDocument) -> dict:
    return {
        "id": document.id,
        "asset_id": document.asset_id,
        "document_name": document.document_name,
        "document_type": document.document_type,
        "file_size": document.file_size,
        "uploaded_at": document.uploaded_at,
    }


def _has_primary_image(db: Session, asset_id: int) -> bool:
    count = db.execute(
        select(func.count())
        .select_from(AssetImage)
        .where(AssetImage.asset_id == asset_id, AssetImage.is_primary.is_(True))
    ).scalar_one()
    return count > 0


def add_images(
    db: Session,
    asset_id: int,
    files: Iterable[UploadedFile],
    journal: Optional[BlobJournal] = None,
) -> list[dict]:
    """Store image uploads for an asset, additively.

    The first image stored for an asset without a primary image is flagged
    primary. The check is not isolated from concurrent uploads.
    """
    files = list(files)
    if not files:
        return []
    rejected = [f.file_name for f in files if not f.guessed_type().startswith("image/")]
    if rejected:
        raise ValidationError(
            "Not an image: {}".format(", ".join(rejected)), ["images"]
        )

    journal = journal or BlobJournal()
    has_primary = _has_primary_image(db, asset_id)
    images = []
    try:
        for upload in files:
            inline, key = journal.store(upload.data)
            image = AssetImage(
                asset_id=asset_id,
                image_data=inline,
                storage_key=key,
                image_name=upload.file_name,
                image_size=upload.size,
                mime_type=upload.guessed_type(),
                is_primary=not has_primary,
            )
            has_primary = True
            db.add(image)
            images.append(image)
        db.flush()
    except SQLAlchemyError as exc:
        raise AttachmentError(f"Unable to store images for asset {asset_id}", cause=exc) from exc
    logger.debug("Stored %d image(s) for asset %s", len(images), asset_id)
    return [_image_metadata(image) for image in images]


def set_document(
    db: Session,
    asset_id: int,
    upload: UploadedFile,
    journal: Optional[BlobJournal] = None,
) -> dict:
    """Replace the asset's document set with a single new document."""
    journal = journal or BlobJournal()
    try:
        for key in db.execute(
            select(AssetDocument.storage_key).where(AssetDocument.asset_id == asset_id)
        ).scalars():
            journal.retire(key)
        db.execute(delete(AssetDocument).where(AssetDocument.asset_id == asset_id))

        inline, key = journal.store(upload.data)
        document = AssetDocument(
            asset_id=asset_id,
            document_data=inline,
            storage_key=key,
            document_name=upload.file_name,
            document_type=document_type_for(upload.file_name),
            file_size=upload.size,
        )
        db.add(document)
        db.flush()
    except SQLAlchemyError as exc:
        raise AttachmentError(f"Unable to store document for asset {asset_id}", cause=exc) from exc
    return _document_metadata(document)


def list_images(db: Session, asset_id: int) -> list[dict]:
    images = db.execute(
        select(AssetImage)
        .where(AssetImage.asset_id == asset_id)
        .order_by(AssetImage.is_primary.desc(), AssetImage.id)
    ).scalars()
    return [_image_metadata(image) for image in images]


def list_documents(db: Session, asset_id: int) -> list[dict]:
    documents = db.execute(
        select(AssetDocument)
        .where(AssetDocument.asset_id == asset_id)
        .order_by(AssetDocument.id)
    ).scalars()
    return [_document_metadata(document) for document in documents]


def get_image(
    db: Session, asset_id: int, image_id: int, blobs: Optional[BlobStore] = None
) -> dict:
    image = db.execute(
        select(AssetImage).where(AssetImage.id == image_id, AssetImage.asset_id == asset_id)
    ).scalar_one_or_none()
    if image is None:
        raise NotFoundError("Image not found")
    return {
        "file_name": image.image_name or "image",
        "mime_type": image.mime_type or "image/jpeg",
        "data": load_payload(blobs, image.image_data, image.storage_key) or b"",
        "inline": True,
    }


def get_document(
    db: Session, asset_id: int, document_id: int, blobs: Optional[BlobStore] = None
) -> dict:
    document = db.execute(
        select(AssetDocument).where(
            AssetDocument.id == document_id, AssetDocument.asset_id == asset_id
        )
    ).scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document not found")

    extension = (document.document_type or "").lower()
    if extension in ("", DOCUMENT_TYPE_OTHER) and "." in document.document_name:
        extension = document.document_name.rsplit(".", 1)[-1].lower()
    return {
        "file_name": document.document_name,
        "mime_type": DOCUMENT_MIME_TYPES.get(extension, "application/octet-stream"),
        "data": load_payload(blobs, document.document_data, document.storage_key) or b"",
        "inline": extension in INLINE_DOCUMENT_EXTENSIONS,
    }


def remove_image(
    db: Session, asset_id: int, image_id: int, journal: Optional[BlobJournal] = None
) -> None:
    journal = journal or BlobJournal()
    image = db.execute(
        select(AssetImage).where(AssetImage.id == image_id, AssetImage.asset_id == asset_id)
    ).scalar_one_or_none()
    if image is None:
        raise NotFoundError("Image not found")

    was_primary = bool(image.is_primary)
    journal.retire(image.storage_key)
    db.delete(image)
    db.flush()

    if was_primary:
        successor = db.execute(
            select(AssetImage)
            .where(AssetImage.asset_id == asset_id)
            .order_by(AssetImage.uploaded_at, AssetImage.id)
            .limit(1)
        ).scalar_one_or_none()
        if successor is not None:
            successor.is_primary = True
            db.flush()


def delete_for_asset(
    db: Session, asset_id: int, journal: Optional[BlobJournal] = None
) -> tuple[int, int]:
    """Remove every image and document row of an asset; absent rows are fine."""
    journal = journal or BlobJournal()
    for key in db.execute(
        select(AssetImage.storage_key).where(AssetImage.asset_id == asset_id)
    ).scalars():
        journal.retire(key)
    for key in db.execute(
        select(AssetDocument.storage_key).where(AssetDocument.asset_id == asset_id)
    ).scalars():
        journal.retire(key)

    images = db.execute(delete(AssetImage).where(AssetImage.asset_id == asset_id)).rowcount
    documents = db.execute(
        delete(AssetDocument).where(AssetDocument.asset_id == asset_id)
    ).rowcount
    return images or 0, documents or 0


def validate_bill(upload: UploadedFile) -> None:
    if upload.extension != "pdf" and upload.guessed_type() != BILL_MIME_TYPE:
        raise ValidationError(f"Bill must be a PDF document: {upload.file_name}", ["bill_pdf"])


def bill_columns(upload: UploadedFile, journal: BlobJournal) -> dict:
    validate_bill(upload)
    inline, key = journal.store(upload.data)
    return {
        "bill_filename": upload.file_name,
        "bill_pdf": inline,
        "bill_storage_key": key,
        "bill_filesize": upload.size,
    }


def cleared_bill_columns() -> dict:
    return {
        "bill_filename": None,
        "bill_pdf": None,
        "bill_storage_key": None,
        "bill_filesize": None,
    }


__all__ = [
    "BlobJournal",
    "UploadedFile",
    "add_images",
    "bill_columns",
    "cleared_bill_columns",
    "delete_for_asset",
    "document_type_for",
    "get_document",
    "get_image",
    "list_documents",
    "list_images",
    "load_payload",
    "remove_image",
    "set_document",
    "validate_bill",
]
