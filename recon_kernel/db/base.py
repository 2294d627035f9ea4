"""
Module: recon_kernel.db.base
Responsibility: Declarative base class for the kernel's own ORM models (the
    audit log).  Pipeline record tables are owned by other systems and are
    reached through reflection in recon_kernel.stores.sql, not mapped here.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel's persistence side.  MUST NOT import from models/, services/,
    stores/, or outer layers.

Invariants enforced:
    - UUID primary keys stored as String(36) for cross-database portability.
    - datetime maps to DateTime(timezone=True) -- always timezone-aware.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for the kernel's ORM models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36), unless
          the caller supplies one.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )
