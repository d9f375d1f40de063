from asset_ledger.database.base import Base
from asset_ledger.database.engine import engine, ensure_sqlite_schema
from asset_ledger.database.session import SessionLocal, run_transaction, transaction

__all__ = [
    "Base",
    "engine",
    "ensure_sqlite_schema",
    "SessionLocal",
    "run_transaction",
    "transaction",
]
