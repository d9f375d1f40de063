from asset_ledger.services import (
    attachment_service,
    audit_service,
    query_builder,
    reference_service,
)
from asset_ledger.services import (
    asset_service,
    dashboard_service,
    export_service,
    stock_service,
    user_service,
)
from asset_ledger.services.attachment_service import BlobJournal, UploadedFile
from asset_ledger.services.query_builder import Predicate

__all__ = [
    "BlobJournal",
    "Predicate",
    "UploadedFile",
    "asset_service",
    "attachment_service",
    "audit_service",
    "dashboard_service",
    "export_service",
    "query_builder",
    "reference_service",
    "stock_service",
    "user_service",
]
