from datetime import date, datetime, timezone
from io import BytesIO
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

ASSET_COLUMNS = (
    ("ID", "id", 10),
    ("Type", "type_name", 15),
    ("Brand", "brand_name", 15),
    ("Model", "model_name", 20),
    ("Status", "status", 12),
    ("Vehicle No", "vehicle_number", 15),
    ("Serial No", "serial_number", 20),
    ("IMEI No", "imei_number", 20),
    ("IP Address", "ip_address", 15),
    ("GID", "gid", 15),
    ("Issued To", "issued_to", 25),
    ("Received From", "received_from", 25),
    ("Issue Date", "issue_date", 12),
    ("Received Date", "received_date", 12),
    ("Device Status", "device_status", 15),
    ("Device Remark", "device_remark", 30),
    ("Recovery Name", "recovery_name", 25),
    ("Recovery Status", "recovery_status", 15),
    ("Prepared By", "prepared_by_name", 20),
    ("Approved By", "approved_by_name", 20),
    ("Mail Date", "mail_date", 12),
    ("Replaced Device SN/IMEI", "replace_device_sn_imei", 25),
    ("Created At", "created_at", 20),
)

STOCK_COLUMNS = (
    ("ID", "id", 10),
    ("Entry Date", "entry_date", 15),
    ("Product Name", "product_name", 30),
    ("Category", "category", 20),
    ("Supplier", "supplier", 25),
    ("Quantity", "quantity", 12),
    ("Unit", "unit", 10),
    ("Purchase Price", "purchase_price", 15),
    ("Selling Price", "selling_price", 15),
    ("Total Value", "total_value", 15),
    ("Current Stock", "current_stock", 15),
    ("Batch Number", "batch_number", 20),
    ("Expiry Date", "expiry_date", 15),
    ("Warehouse", "warehouse", 20),
    ("Rack Number", "rack_number", 15),
    ("Description", "description", 40),
    ("Bill Attached", "bill_filename", 20),
    ("Prepared By", "prepared_by_name", 20),
    ("Approved By", "approved_by_name", 20),
    ("Created At", "created_at", 20),
)

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="4F46E5")


def _cell_value(value):
    # Excel cannot store timezone-aware datetimes.
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, (date, int, float, str)) or value is None:
        return value
    return str(value)


def _write_sheet(worksheet, columns, rows: Iterable[dict]) -> None:
    worksheet.append([header for header, _key, _width in columns])
    for row in rows:
        worksheet.append([_cell_value(row.get(key)) for _header, key, _width in columns])

    for index, (_header, _key, width) in enumerate(columns, start=1):
        worksheet.column_dimensions[get_column_letter(index)].width = width
    for cell in worksheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(vertical="center", horizontal="center")
    worksheet.auto_filter.ref = "A1:{}1".format(get_column_letter(len(columns)))
    worksheet.freeze_panes = "A2"


def _to_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_asset_workbook(rows: Iterable[dict]) -> bytes:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Assets"
    _write_sheet(worksheet, ASSET_COLUMNS, rows)
    return _to_bytes(workbook)


def stock_summary_rows(rows: list[dict]) -> list[tuple[str, object]]:
    total_quantity = sum(float(row.get("quantity") or 0) for row in rows)
    total_value = sum(float(row.get("total_value") or 0) for row in rows)
    total_current = sum(float(row.get("current_stock") or 0) for row in rows)
    categories = {row.get("category") for row in rows if row.get("category")}
    return [
        ("Total Stock Entries", len(rows)),
        ("Total Quantity", round(total_quantity, 2)),
        ("Total Purchase Value", round(total_value, 2)),
        ("Total Current Stock", round(total_current, 2)),
        ("Number of Categories", len(categories)),
        ("Report Generated", datetime.now().replace(microsecond=0)),
    ]


def build_stock_workbook(rows: Iterable[dict]) -> bytes:
    """Stock entries sheet with per-row total value, plus a Summary sheet."""
    rows = [
        {
            **row,
            "total_value": float(row.get("quantity") or 0) * float(row.get("purchase_price") or 0),
        }
        for row in rows
    ]

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Stock Entries"
    _write_sheet(worksheet, STOCK_COLUMNS, rows)

    summary = workbook.create_sheet("Summary")
    _write_sheet(
        summary,
        (("Metric", "metric", 25), ("Value", "value", 25)),
        [{"metric": metric, "value": value} for metric, value in stock_summary_rows(rows)],
    )
    return _to_bytes(workbook)


def export_filename(prefix: str) -> str:
    return f"{prefix}_{date.today().isoformat()}.xlsx"


__all__ = [
    "build_asset_workbook",
    "build_stock_workbook",
    "export_filename",
    "stock_summary_rows",
]
