from fastapi import FastAPI

from asset_ledger.config import Settings, get_settings
from asset_ledger.core.handlers import setup_exception_handlers
from asset_ledger.core.logging import setup_logging
from asset_ledger.database import Base, engine, ensure_sqlite_schema
from asset_ledger.models import import_all_models
from asset_ledger.routers import (
    assets_router,
    dashboard_router,
    health_router,
    references_router,
    stock_router,
    users_router,
)

setup_logging()
settings: Settings = get_settings()

import_all_models()
Base.metadata.create_all(bind=engine)
ensure_sqlite_schema()

app = FastAPI(title=settings.APP_NAME)
setup_exception_handlers(app)

app.include_router(health_router)
app.include_router(assets_router)
app.include_router(stock_router)
app.include_router(references_router)
app.include_router(users_router)
app.include_router(dashboard_router)


__all__ = ["app"]
