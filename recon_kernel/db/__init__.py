"""Database layer - engine, declarative base, and audit-log immutability."""

from recon_kernel.db.base import Base, UUIDString
from recon_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "Base",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
