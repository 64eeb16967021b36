"""Database layer - engine, base classes, and session scope."""

from backoffice_kernel.db.base import Base, TrackedBase, UUIDString
from backoffice_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
