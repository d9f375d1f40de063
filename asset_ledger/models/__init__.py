import importlib

from asset_ledger.models.asset import Asset, AssetDocument, AssetImage
from asset_ledger.models.history import AssetHistory
from asset_ledger.models.reference import AssetBrand, AssetType, User
from asset_ledger.models.stock import StockEntry, StockIssue


def import_all_models() -> None:
    for module_name in (
        "asset_ledger.models.asset",
        "asset_ledger.models.history",
        "asset_ledger.models.reference",
        "asset_ledger.models.stock",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Asset",
    "AssetBrand",
    "AssetDocument",
    "AssetHistory",
    "AssetImage",
    "AssetType",
    "StockEntry",
    "StockIssue",
    "User",
    "import_all_models",
]
