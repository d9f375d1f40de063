import unittest
from datetime import date

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from asset_ledger.core.errors import NotFoundError, ValidationError
from asset_ledger.database.base import Base
from asset_ledger.models import (
    Asset,
    AssetDocument,
    AssetHistory,
    AssetImage,
    AssetType,
    import_all_models,
)
from asset_ledger.schemas.asset import AssetFilter, AssetInput
from asset_ledger.services import asset_service, audit_service
from asset_ledger.services.attachment_service import UploadedFile

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

SCALAR_FIELDS = (
    "model_name",
    "status",
    "vehicle_number",
    "serial_number",
    "imei_number",
    "ip_address",
    "gid",
    "issued_to",
    "received_from",
    "issue_date",
    "received_date",
    "device_status",
    "device_remark",
    "recovery_name",
    "recovery_status",
    "mail_date",
    "replace_device_sn_imei",
)


def _image(name="photo.png"):
    return UploadedFile(file_name=name, content_type="image/png", data=PNG)


class AssetServiceTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        self.db = sessionmaker(bind=engine)()

    def tearDown(self):
        self.db.close()

    def _count(self, model, *criteria):
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return self.db.execute(stmt).scalar_one()

    def _create(self, **fields):
        values = {"type_name": "Laptop", "brand_name": "Dell", "model_name": "Latitude"}
        values.update(fields)
        return asset_service.create_asset(self.db, AssetInput(**values))

    def test_create_in_stock_asset(self):
        result = self._create(status="InStock")
        self.assertEqual(result["images"], [])
        self.assertEqual(result["status"], "InStock")
        self.assertIsNone(result["issue_date"])
        self.assertIsNone(result["received_date"])
        self.assertEqual(result["type_name"], "Laptop")
        self.assertEqual(result["brand_name"], "Dell")
        self.assertEqual(result["prepared_by_name"], "Admin User")
        self.assertEqual(result["approved_by_name"], "Manager")

    def test_create_writes_exactly_one_create_history_entry(self):
        result = self._create()
        history = audit_service.list_history(self.db, result["id"])
        self.assertEqual([entry["action_type"] for entry in history], ["CREATE"])
        self.assertEqual(history[0]["new_values"]["model_name"], "Latitude")
        self.assertEqual(history[0]["changed_by_name"], "Admin User")

    def test_get_returns_submitted_scalars(self):
        data = AssetInput(
            type_name="GPS Tracker",
            brand_name="Teltonika",
            model_name="FMB920",
            status="Issued",
            vehicleno="KA01AB1234",
            serial_no="SN-1",
            imei_no="356307042441013",
            ip_address="10.0.0.5",
            gid="G-77",
            issued_to="Ravi Kumar",
            received_from="",
            issue_date="2024-03-01",
            device_status="Active",
            device_remark="Mounted under dash",
            recovery_name="Sunil",
            recovery_status="Done",
            prepared_by="Asha Rao",
            approved_by="Manager",
            mail_date="2024-03-02",
            replace_device_sn_imei="OLD-SN",
        )
        created = asset_service.create_asset(self.db, data)
        fetched = asset_service.get_asset(self.db, created["id"])
        for field in SCALAR_FIELDS:
            self.assertEqual(fetched[field], getattr(data, field), field)
        self.assertEqual(fetched["prepared_by_name"], "Asha Rao")
        self.assertEqual(len(fetched["history"]), 1)

    def test_update_is_full_replace_and_keeps_images(self):
        created = asset_service.create_asset(
            self.db,
            AssetInput(
                type_name="Laptop",
                brand_name="Dell",
                model_name="Latitude",
                status="InStock",
                vehicle_number="OLD-1",
            ),
            images=[_image()],
        )
        updated = asset_service.update_asset(
            self.db,
            created["id"],
            AssetInput(
                type_name="Laptop",
                brand_name="Dell",
                model_name="Latitude 7420",
                status="Issued",
                issue_date="2024-01-15",
            ),
        )
        self.assertEqual(updated["issue_date"], date(2024, 1, 15))
        self.assertIsNone(updated["received_date"])
        self.assertEqual(updated["model_name"], "Latitude 7420")
        self.assertEqual(updated["vehicle_number"], "")
        self.assertEqual(len(updated["images"]), 1)

        history = audit_service.list_history(self.db, created["id"])
        self.assertEqual(history[0]["action_type"], "UPDATE")
        self.assertEqual(history[0]["old_values"]["model_name"], "Latitude")
        self.assertEqual(history[0]["new_values"]["model_name"], "Latitude 7420")

    def test_received_without_date_defaults_to_today(self):
        result = self._create(status="Received", issue_date="2024-01-01")
        self.assertEqual(result["received_date"], date.today())
        self.assertIsNone(result["issue_date"])

    def test_legacy_status_spelling_is_normalized(self):
        self.assertEqual(self._create(status="In Stock")["status"], "InStock")

    def test_invalid_status_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self._create(status="Lost")
        self.assertEqual(ctx.exception.fields, ["status"])

    def test_missing_required_fields_are_named(self):
        with self.assertRaises(ValidationError) as ctx:
            asset_service.create_asset(self.db, AssetInput(type_name="Laptop", brand_name=" "))
        self.assertEqual(ctx.exception.fields, ["brand_name", "model_name"])
        self.assertEqual(self._count(Asset), 0)

    def test_failed_create_rolls_back_everything(self):
        bad = UploadedFile(file_name="notes.txt", content_type="text/plain", data=b"x")
        with self.assertRaises(ValidationError):
            asset_service.create_asset(
                self.db,
                AssetInput(type_name="Scanner", brand_name="Zebra", model_name="DS2208"),
                images=[_image(), bad],
            )
        self.assertEqual(self._count(Asset), 0)
        self.assertEqual(self._count(AssetImage), 0)
        self.assertEqual(self._count(AssetHistory), 0)
        self.assertEqual(self._count(AssetType), 0)

    def test_update_unknown_asset(self):
        with self.assertRaises(NotFoundError):
            asset_service.update_asset(
                self.db,
                404,
                AssetInput(type_name="Laptop", brand_name="Dell", model_name="X"),
            )

    def test_delete_removes_attachments_and_keeps_history(self):
        created = asset_service.create_asset(
            self.db,
            AssetInput(type_name="Laptop", brand_name="Dell", model_name="Latitude"),
            images=[_image("a.png"), _image("b.png")],
            document=UploadedFile(
                file_name="invoice.pdf", content_type="application/pdf", data=b"%PDF"
            ),
        )
        asset_id = created["id"]
        asset_service.delete_asset(self.db, asset_id, actor="Asha Rao")

        with self.assertRaises(NotFoundError):
            asset_service.get_asset(self.db, asset_id)
        self.assertEqual(self._count(AssetImage, AssetImage.asset_id == asset_id), 0)
        self.assertEqual(self._count(AssetDocument, AssetDocument.asset_id == asset_id), 0)

        history = audit_service.list_history(self.db, asset_id)
        self.assertEqual([entry["action_type"] for entry in history], ["DELETE", "CREATE"])
        self.assertEqual(history[0]["old_values"]["model_name"], "Latitude")
        self.assertEqual(history[0]["changed_by_name"], "Asha Rao")

    def test_delete_unknown_asset(self):
        with self.assertRaises(NotFoundError):
            asset_service.delete_asset(self.db, 12345)

    def test_remove_image(self):
        created = asset_service.create_asset(
            self.db,
            AssetInput(type_name="Laptop", brand_name="Dell", model_name="Latitude"),
            images=[_image("a.png"), _image("b.png")],
        )
        first = created["images"][0]
        asset_service.remove_image(self.db, created["id"], first["id"])
        images = asset_service.get_asset(self.db, created["id"])["images"]
        self.assertEqual(len(images), 1)
        self.assertTrue(images[0]["is_primary"])

    def test_search_matches_page_and_total(self):
        self._create(brand_name="Dell", model_name="Latitude")
        self._create(brand_name="HP", model_name="EliteBook", device_remark="swapped for a DELL")
        self._create(brand_name="HP", model_name="ProBook", vehicle_number="DELL-VAN-2")
        self._create(brand_name="HP", model_name="ZBook")
        self._create(brand_name="Lenovo", model_name="ThinkPad", serial_number="xdellx-99")

        rows, total = asset_service.list_assets(
            self.db, AssetFilter(search="Dell"), page=1, limit=2
        )
        self.assertEqual(total, 3)
        self.assertEqual(len(rows), 2)

        rows, total = asset_service.list_assets(
            self.db, AssetFilter(search="Dell"), page=None, limit=None
        )
        self.assertEqual(len(rows), total)
        searchable = (
            "model_name",
            "vehicle_number",
            "serial_number",
            "imei_number",
            "ip_address",
            "gid",
            "issued_to",
            "received_from",
            "device_remark",
        )
        for row in rows:
            self.assertTrue(
                any("dell" in str(row[key] or "").lower() for key in searchable),
                row,
            )

    def test_search_ignores_brand_and_type_names(self):
        self._create(type_name="Laptop", brand_name="Dell", model_name="Latitude")

        rows, total = asset_service.list_assets(self.db, AssetFilter(search="Dell"))
        self.assertEqual(total, 0)
        self.assertEqual(rows, [])

        _rows, total = asset_service.list_assets(self.db, AssetFilter(search="laptop"))
        self.assertEqual(total, 0)

        hits = asset_service.quick_search(self.db, "dell", limit=10)
        self.assertEqual([hit["brand_name"] for hit in hits], ["Dell"])

    def test_filters_on_status_and_device_status(self):
        self._create(status="Issued", device_status="Faulty")
        self._create(status="Issued")
        self._create(status="InStock")

        _rows, total = asset_service.list_assets(self.db, AssetFilter(status="Issued"))
        self.assertEqual(total, 2)
        _rows, total = asset_service.list_assets(self.db, AssetFilter(status="In Stock"))
        self.assertEqual(total, 1)
        _rows, total = asset_service.list_assets(
            self.db, AssetFilter(status="all", device_status="Faulty")
        )
        self.assertEqual(total, 1)

    def test_quick_search_and_stock_summary(self):
        self._create(status="Issued")
        self._create(status="InStock")
        self._create(brand_name="HP", model_name="ProBook", status="Received")

        hits = asset_service.quick_search(self.db, "latitude", limit=10)
        self.assertEqual(len(hits), 2)
        self.assertEqual(asset_service.quick_search(self.db, "  ", limit=10), [])

        summary = asset_service.stock_summary(self.db)
        dell = next(row for row in summary if row["brand_name"] == "Dell")
        self.assertEqual(dell["total_count"], 2)
        self.assertEqual(dell["issued_count"], 1)
        self.assertEqual(dell["in_stock_count"], 1)
        self.assertEqual(dell["received_count"], 0)

    def test_derive_dates(self):
        day = date(2024, 1, 15)
        self.assertEqual(asset_service.derive_dates("Issued", day, day), (day, None))
        self.assertEqual(asset_service.derive_dates("Received", day, day), (None, day))
        self.assertEqual(asset_service.derive_dates("InStock", day, day), (None, None))


if __name__ == "__main__":
    unittest.main()
