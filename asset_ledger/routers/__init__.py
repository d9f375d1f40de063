from asset_ledger.routers.assets import router as assets_router
from asset_ledger.routers.dashboard import router as dashboard_router
from asset_ledger.routers.health import router as health_router
from asset_ledger.routers.references import router as references_router
from asset_ledger.routers.stock import router as stock_router
from asset_ledger.routers.users import router as users_router

__all__ = [
    "assets_router",
    "dashboard_router",
    "health_router",
    "references_router",
    "stock_router",
    "users_router",
]
