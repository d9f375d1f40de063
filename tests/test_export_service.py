import unittest
from datetime import date, datetime, timezone
from io import BytesIO

from openpyxl import load_workbook

from asset_ledger.services.export_service import (
    ASSET_COLUMNS,
    build_asset_workbook,
    build_stock_workbook,
    stock_summary_rows,
)


class ExportServiceTest(unittest.TestCase):
    def test_asset_workbook_layout(self):
        content = build_asset_workbook(
            [
                {
                    "id": 1,
                    "type_name": "Laptop",
                    "brand_name": "Dell",
                    "model_name": "Latitude",
                    "status": "Issued",
                    "issue_date": date(2024, 1, 15),
                    "prepared_by_name": "Admin User",
                    "mail_date": date(2024, 3, 2),
                    "replace_device_sn_imei": "OLD-SN-1",
                    "created_at": datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
                }
            ]
        )
        workbook = load_workbook(BytesIO(content))
        self.assertEqual(workbook.sheetnames, ["Assets"])
        sheet = workbook["Assets"]

        headers = [cell.value for cell in sheet[1]]
        self.assertEqual(headers, [header for header, _key, _width in ASSET_COLUMNS])
        self.assertTrue(sheet["A1"].font.bold)
        self.assertEqual(sheet.auto_filter.ref, "A1:W1")

        row = [cell.value for cell in sheet[2]]
        self.assertEqual(row[0], 1)
        self.assertEqual(row[1], "Laptop")
        self.assertEqual(row[headers.index("Prepared By")], "Admin User")
        self.assertEqual(str(row[headers.index("Mail Date")])[:10], "2024-03-02")
        self.assertEqual(row[headers.index("Replaced Device SN/IMEI")], "OLD-SN-1")
        self.assertEqual(row[headers.index("Created At")], datetime(2024, 1, 15, 9, 30))

    def test_empty_asset_export_has_header_only(self):
        sheet = load_workbook(BytesIO(build_asset_workbook([])))["Assets"]
        self.assertEqual(sheet.max_row, 1)

    def test_stock_workbook_has_summary(self):
        rows = [
            {"id": 1, "product_name": "Bolts", "category": "Hardware", "quantity": 100.0,
             "purchase_price": 2.5, "current_stock": 60.0},
            {"id": 2, "product_name": "SIM Card", "category": "Telecom", "quantity": 50.0,
             "purchase_price": 1.0, "current_stock": 50.0},
        ]
        workbook = load_workbook(BytesIO(build_stock_workbook(rows)))
        self.assertEqual(workbook.sheetnames, ["Stock Entries", "Summary"])

        entries = workbook["Stock Entries"]
        headers = [cell.value for cell in entries[1]]
        self.assertEqual(entries.cell(row=2, column=headers.index("Total Value") + 1).value, 250.0)

        summary = {
            row[0].value: row[1].value for row in workbook["Summary"].iter_rows(min_row=2)
        }
        self.assertEqual(summary["Total Stock Entries"], 2)
        self.assertEqual(summary["Total Quantity"], 150.0)
        self.assertEqual(summary["Total Purchase Value"], 300.0)
        self.assertEqual(summary["Total Current Stock"], 110.0)
        self.assertEqual(summary["Number of Categories"], 2)

    def test_summary_of_no_rows(self):
        summary = dict(stock_summary_rows([]))
        self.assertEqual(summary["Total Stock Entries"], 0)
        self.assertEqual(summary["Total Purchase Value"], 0)


if __name__ == "__main__":
    unittest.main()
