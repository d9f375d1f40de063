import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool

from asset_ledger.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000

_db_url = make_url(app_settings.DATABASE_URL)
is_sqlite = _db_url.get_backend_name() == "sqlite"
is_sqlite_memory = False
if is_sqlite:
    sqlite_db = _db_url.database
    is_sqlite_memory = sqlite_db in (None, "", ":memory:")
    if not is_sqlite_memory and _db_url.query.get("mode") == "memory":
        is_sqlite_memory = True

connect_args = {}
engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
if is_sqlite:
    connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
    if is_sqlite_memory:
        engine_kwargs.update(poolclass=StaticPool)

engine = create_engine(
    app_settings.DATABASE_URL,
    connect_args=connect_args,
    **engine_kwargs,
)

if is_sqlite:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
            if not is_sqlite_memory:
                try:
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                except sqlite3.DatabaseError:
                    pass
        finally:
            cursor.close()


# Columns introduced after the first deployments; older SQLite files get them
# through ALTER TABLE since create_all never touches existing tables.
_SQLITE_COLUMN_DEFAULTS = {
    "assets": {
        "mail_date": "DATE",
        "replace_device_sn_imei": "TEXT",
        "updated_at": "DATETIME NOT NULL DEFAULT '1970-01-01 00:00:00'",
    },
    "asset_images": {
        "storage_key": "TEXT",
    },
    "asset_documents": {
        "storage_key": "TEXT",
    },
    "stock_entries": {
        "bill_storage_key": "TEXT",
        "updated_at": "DATETIME NOT NULL DEFAULT '1970-01-01 00:00:00'",
    },
    "stock_issues": {
        "issued_to": "TEXT",
        "issued_at": "DATETIME NOT NULL DEFAULT '1970-01-01 00:00:00'",
    },
    "users": {
        "updated_at": "DATETIME NOT NULL DEFAULT '1970-01-01 00:00:00'",
    },
}

_SQLITE_POST_ADD_UPDATES = {
    ("assets", "updated_at"): (
        "UPDATE assets SET updated_at = created_at "
        "WHERE updated_at = '1970-01-01 00:00:00'"
    ),
    ("stock_entries", "updated_at"): (
        "UPDATE stock_entries SET updated_at = created_at "
        "WHERE updated_at = '1970-01-01 00:00:00'"
    ),
    ("stock_issues", "issued_at"): (
        "UPDATE stock_issues SET issued_at = CURRENT_TIMESTAMP "
        "WHERE issued_at = '1970-01-01 00:00:00'"
    ),
    ("users", "updated_at"): (
        "UPDATE users SET updated_at = created_at "
        "WHERE updated_at = '1970-01-01 00:00:00'"
    ),
}


def _escape_sqlite_identifier(value: str) -> str:
    return value.replace('"', '""')


def _get_sqlite_columns(conn, table_name: str):
    escaped_table = _escape_sqlite_identifier(table_name)
    # noinspection SqlNoDataSourceInspection
    result = conn.exec_driver_sql(
        f'PRAGMA table_info("{escaped_table}")'
    ).mappings()
    return {row["name"] for row in result}


def ensure_sqlite_schema(bind=None):
    bind = bind if bind is not None else engine
    if bind.dialect.name != "sqlite":
        return []
    added_columns = []
    with bind.connect() as conn:
        with conn.begin():
            for table_name, columns in _SQLITE_COLUMN_DEFAULTS.items():
                existing = _get_sqlite_columns(conn, table_name)
                if not existing:
                    continue
                for column_name, ddl in columns.items():
                    if column_name in existing:
                        continue
                    escaped_table = _escape_sqlite_identifier(table_name)
                    escaped_column = _escape_sqlite_identifier(column_name)
                    # noinspection SqlNoDataSourceInspection
                    conn.exec_driver_sql(
                        f'ALTER TABLE "{escaped_table}" ADD COLUMN "{escaped_column}" {ddl}'
                    )
                    added_columns.append((table_name, column_name))
            for table_name, column_name in added_columns:
                update_stmt = _SQLITE_POST_ADD_UPDATES.get(
                    (table_name, column_name)
                )
                if update_stmt:
                    # noinspection SqlNoDataSourceInspection
                    conn.exec_driver_sql(update_stmt)
    for table_name, column_name in added_columns:
        logger.info("Added missing column %s.%s", table_name, column_name)
    return added_columns
