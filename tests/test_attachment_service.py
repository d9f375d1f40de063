import tempfile
import unittest
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from asset_ledger.core.errors import AttachmentError, NotFoundError, ValidationError
from asset_ledger.database.base import Base
from asset_ledger.models import Asset, import_all_models
from asset_ledger.services import attachment_service
from asset_ledger.services.attachment_service import BlobJournal, UploadedFile
from asset_ledger.storage.local_provider import LocalBlobStore

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _image(name="photo.png"):
    return UploadedFile(file_name=name, content_type="image/png", data=PNG)


class AttachmentServiceTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        self.db = sessionmaker(bind=engine)()
        asset = Asset(type_id=1, brand_id=1, model_name="Latitude")
        self.db.add(asset)
        self.db.flush()
        self.asset_id = asset.id

    def tearDown(self):
        self.db.close()

    def test_first_image_becomes_primary(self):
        stored = attachment_service.add_images(
            self.db, self.asset_id, [_image("a.png"), _image("b.png")]
        )
        self.assertEqual([item["is_primary"] for item in stored], [True, False])
        self.assertEqual(stored[0]["image_size"], len(PNG))

        more = attachment_service.add_images(self.db, self.asset_id, [_image("c.png")])
        self.assertFalse(more[0]["is_primary"])

    def test_non_image_upload_rejected(self):
        upload = UploadedFile(file_name="notes.txt", content_type="text/plain", data=b"hi")
        with self.assertRaises(ValidationError) as ctx:
            attachment_service.add_images(self.db, self.asset_id, [upload])
        self.assertEqual(ctx.exception.fields, ["images"])

    def test_content_type_guessed_from_name(self):
        upload = UploadedFile(
            file_name="scan.JPG", content_type="application/octet-stream", data=b"jpg"
        )
        stored = attachment_service.add_images(self.db, self.asset_id, [upload])
        self.assertEqual(stored[0]["mime_type"], "image/jpeg")

    def test_set_document_replaces_existing(self):
        attachment_service.set_document(
            self.db,
            self.asset_id,
            UploadedFile(file_name="invoice.pdf", content_type="application/pdf", data=b"%PDF"),
        )
        attachment_service.set_document(
            self.db,
            self.asset_id,
            UploadedFile(file_name="handover.docx", content_type="", data=b"PK"),
        )
        documents = attachment_service.list_documents(self.db, self.asset_id)
        self.assertEqual(len(documents), 1)
        self.assertEqual(documents[0]["document_name"], "handover.docx")
        self.assertEqual(documents[0]["document_type"], "docx")
        self.assertNotIn("document_data", documents[0])

    def test_document_type_classification(self):
        self.assertEqual(attachment_service.document_type_for("a.PDF"), "pdf")
        self.assertEqual(attachment_service.document_type_for("a.doc"), "doc")
        self.assertEqual(attachment_service.document_type_for("a.xlsx"), "other")
        self.assertEqual(attachment_service.document_type_for("README"), "other")

    def test_get_document_returns_payload_and_mime_type(self):
        stored = attachment_service.set_document(
            self.db,
            self.asset_id,
            UploadedFile(file_name="sheet.xlsx", content_type="", data=b"xlsx-bytes"),
        )
        payload = attachment_service.get_document(self.db, self.asset_id, stored["id"])
        self.assertEqual(payload["data"], b"xlsx-bytes")
        self.assertEqual(
            payload["mime_type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        self.assertFalse(payload["inline"])

    def test_get_image_unknown_id(self):
        with self.assertRaises(NotFoundError):
            attachment_service.get_image(self.db, self.asset_id, 999)

    def test_removing_primary_promotes_oldest_remaining(self):
        stored = attachment_service.add_images(
            self.db, self.asset_id, [_image("a.png"), _image("b.png"), _image("c.png")]
        )
        attachment_service.remove_image(self.db, self.asset_id, stored[0]["id"])
        images = attachment_service.list_images(self.db, self.asset_id)
        self.assertEqual(len(images), 2)
        self.assertEqual(images[0]["id"], stored[1]["id"])
        self.assertTrue(images[0]["is_primary"])

    def test_delete_for_asset_counts_rows(self):
        attachment_service.add_images(self.db, self.asset_id, [_image(), _image()])
        attachment_service.set_document(
            self.db,
            self.asset_id,
            UploadedFile(file_name="a.pdf", content_type="application/pdf", data=b"%PDF"),
        )
        self.assertEqual(attachment_service.delete_for_asset(self.db, self.asset_id), (2, 1))
        self.assertEqual(attachment_service.delete_for_asset(self.db, self.asset_id), (0, 0))

    def test_bill_must_be_pdf(self):
        attachment_service.validate_bill(
            UploadedFile(file_name="bill.pdf", content_type="application/pdf", data=b"%PDF")
        )
        with self.assertRaises(ValidationError):
            attachment_service.validate_bill(
                UploadedFile(file_name="bill.png", content_type="image/png", data=PNG)
            )


class BlobJournalTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.blobs = LocalBlobStore(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _exists(self, key):
        return (Path(self._tmp.name) / key[:2] / key).exists()

    def test_without_store_payload_stays_inline(self):
        journal = BlobJournal()
        self.assertEqual(journal.store(b"data"), (b"data", None))

    def test_rollback_discards_staged_blobs(self):
        journal = BlobJournal(self.blobs)
        inline, key = journal.store(b"data")
        self.assertIsNone(inline)
        self.assertTrue(self._exists(key))
        journal.rollback()
        self.assertFalse(self._exists(key))

    def test_commit_discards_only_retired_blobs(self):
        old_key = self.blobs.put(b"old")
        journal = BlobJournal(self.blobs)
        _inline, new_key = journal.store(b"new")
        journal.retire(old_key)
        journal.commit()
        self.assertFalse(self._exists(old_key))
        self.assertEqual(self.blobs.get(new_key), b"new")

    def test_load_payload_requires_store_for_keys(self):
        key = self.blobs.put(b"payload")
        self.assertEqual(attachment_service.load_payload(self.blobs, None, key), b"payload")
        self.assertEqual(attachment_service.load_payload(None, b"inline", None), b"inline")
        with self.assertRaises(AttachmentError):
            attachment_service.load_payload(None, None, key)

    def test_missing_blob_raises(self):
        with self.assertRaises(AttachmentError):
            self.blobs.get("0123456789abcdef")


if __name__ == "__main__":
    unittest.main()
