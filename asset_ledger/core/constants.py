ASSET_STATUS_ISSUED = "Issued"
ASSET_STATUS_RECEIVED = "Received"
ASSET_STATUS_IN_STOCK = "InStock"

ASSET_STATUS_ALIASES = {
    "issued": ASSET_STATUS_ISSUED,
    "received": ASSET_STATUS_RECEIVED,
    "instock": ASSET_STATUS_IN_STOCK,
    "in_stock": ASSET_STATUS_IN_STOCK,
    "in stock": ASSET_STATUS_IN_STOCK,
}

DEVICE_STATUSES = ("Active", "Good", "Faulty", "Damaged")
DEFAULT_DEVICE_STATUS = "Good"
DEFAULT_RECOVERY_STATUS = "Pending"

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"

DOCUMENT_TYPES = ("pdf", "doc", "docx")
DOCUMENT_TYPE_OTHER = "other"

STOCK_ISSUE_ISSUED = "issued"

REFERENCE_KINDS = ("type", "brand", "person")

DEFAULT_PERSON_ROLE = "staff"
USER_ROLES = ("admin", "manager", "staff")

SPREADSHEET_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
BILL_MIME_TYPE = "application/pdf"

DOCUMENT_MIME_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": SPREADSHEET_MIME_TYPE,
    "txt": "text/plain",
    "csv": "text/csv",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "zip": "application/zip",
}

INLINE_DOCUMENT_EXTENSIONS = ("pdf", "jpg", "jpeg", "png", "gif", "txt")
