import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool

from simpligest.config import Settings, get_settings


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


# Columns introduced after the first release; older databases get them added
# in place instead of being rebuilt.
_SQLITE_COLUMN_DEFAULTS = {
    "products": {
        "unit": "TEXT NOT NULL DEFAULT 'unit'",
        "supplier": "TEXT NOT NULL DEFAULT ''",
        "sale_price": "REAL NOT NULL DEFAULT 0",
        "updated_at": "DATETIME",
    },
    "sales": {
        "product_name": "TEXT NOT NULL DEFAULT ''",
    },
    "transactions": {
        "source": "TEXT NOT NULL DEFAULT 'manual'",
    },
    "business_settings": {
        "whatsapp_from": "TEXT",
        "whatsapp_daily_summary_time": "TEXT",
        "sii_resolution_number": "TEXT",
        "sii_office": "TEXT",
        "whatsapp_last_summary_date": "TEXT",
    },
}

_SQLITE_POST_ADD_UPDATES = {
    ("products", "updated_at"): (
        "UPDATE products SET updated_at = created_at WHERE updated_at IS NULL"
    ),
    ("sales", "product_name"): (
        "UPDATE sales SET product_name = "
        "(SELECT products.name FROM products WHERE products.id = sales.product_id) "
        "WHERE product_name = '' AND EXISTS "
        "(SELECT 1 FROM products WHERE products.id = sales.product_id)"
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
    bind = bind or engine
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
                update_stmt = _SQLITE_POST_ADD_UPDATES.get((table_name, column_name))
                if update_stmt:
                    # noinspection SqlNoDataSourceInspection
                    conn.exec_driver_sql(update_stmt)
    for table_name, column_name in added_columns:
        logger.info("Added missing column %s.%s", table_name, column_name)
    return added_columns
