from simpligest.database.base import Base
from simpligest.database.engine import engine, ensure_sqlite_schema
from simpligest.database.session import SessionLocal, session_scope

__all__ = ["Base", "engine", "ensure_sqlite_schema", "SessionLocal", "session_scope"]
