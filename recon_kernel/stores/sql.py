"""
SQL store adapters (``recon_kernel.stores.sql``).

Responsibility:
    ``SqlRecordStore`` reads and conditionally updates pipeline records in
    tables owned by other systems; ``SqlAuditSink`` appends
    ``AuditLogEntry`` rows.

Architecture position:
    Kernel > Stores.  May import from db/, models/, domain/.

Invariants enforced:
    - Flush-only: neither adapter ends the caller's transaction.  When both share
      one session, the caller's ``session_scope()`` commits the status
      write and its audit entry together, or neither.
    - Compare-and-set: ``save`` is a single
      ``UPDATE ... WHERE id = :id AND status = :expected`` statement, so
      two writers that loaded the same status cannot both succeed, even
      across processes.
    - A failed audit append is confined to its own savepoint and leaves the
      status write in place for the orchestrator to compensate.

Failure modes:
    - ``sqlalchemy.exc.NoSuchTableError`` if the collection does not exist.
    - Any ``SQLAlchemyError`` from the driver propagates unchanged; the
      orchestrator wraps it as a StorageError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import MetaData, Table, or_, select, update
from sqlalchemy.orm import Session

from recon_kernel.domain.audit import AUDIT_COLLECTION, AuditEntry
from recon_kernel.domain.storage import Record
from recon_kernel.logging_config import get_logger
from recon_kernel.models.audit_log import AuditLogEntry

logger = get_logger("stores.sql")


class SqlRecordStore:
    """
    Record store over reflected pipeline tables.

    Args:
        session: The caller's session; shared with SqlAuditSink for atomicity.
        id_field: Primary-key column of the pipeline tables.
        status_field: Status column of the pipeline tables.
        lock_on_load: Issue ``SELECT ... FOR UPDATE`` on load (PostgreSQL),
            holding a row lock until the caller's transaction ends.
    """

    def __init__(
        self,
        session: Session,
        *,
        id_field: str = "id",
        status_field: str = "status",
        lock_on_load: bool = False,
    ):
        self._session = session
        self._id_field = id_field
        self._status_field = status_field
        self._lock_on_load = lock_on_load
        self._metadata = MetaData()
        self._tables: dict[str, Table] = {}

    def _table(self, collection: str) -> Table:
        table = self._tables.get(collection)
        if table is None:
            table = Table(
                collection,
                self._metadata,
                autoload_with=self._session.connection(),
            )
            self._tables[collection] = table
        return table

    def load(self, collection: str, record_id: str) -> Record | None:
        table = self._table(collection)
        stmt = select(table).where(table.c[self._id_field] == record_id)
        if self._lock_on_load:
            stmt = stmt.with_for_update()
        row = self._session.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def save(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        expected_status: str | None,
    ) -> bool:
        table = self._table(collection)
        status_col = table.c[self._status_field]
        record_id = record[self._id_field]

        values = {
            key: value for key, value in record.items()
            if key != self._id_field and key in table.c
        }

        if expected_status is None:
            status_matches = or_(status_col.is_(None), status_col == "")
        else:
            status_matches = status_col == expected_status

        stmt = (
            update(table)
            .where(table.c[self._id_field] == record_id)
            .where(status_matches)
            .values(**values)
        )
        result = self._session.execute(stmt)
        self._session.flush()

        applied = result.rowcount == 1
        if not applied:
            logger.debug(
                "conditional_write_missed",
                extra={
                    "collection": collection,
                    "record_id": str(record_id),
                    "expected_status": expected_status,
                },
            )
        return applied


class SqlAuditSink:
    """
    Appends audit entries to the ``audit_log`` table.

    Each append runs in a SAVEPOINT.  A failed insert rolls back only that
    savepoint, so the session stays usable and the status manager can
    still restore the previous status before the caller's transaction
    ends.
    """

    def __init__(self, session: Session):
        self._session = session

    def append(self, collection: str, entry: AuditEntry) -> None:
        if collection != AUDIT_COLLECTION:
            raise ValueError(
                f"SqlAuditSink writes to '{AUDIT_COLLECTION}', not '{collection}'"
            )
        savepoint = self._session.begin_nested()
        try:
            self._session.add(AuditLogEntry.from_entry(entry))
            self._session.flush()
        except Exception:
            savepoint.rollback()
            raise
        savepoint.commit()

    def entries_for(self, entity_type: str, entity_id: str) -> tuple[AuditEntry, ...]:
        """Entries for one record, oldest first."""
        rows = self._session.execute(
            select(AuditLogEntry)
            .where(
                AuditLogEntry.entity_type == entity_type,
                AuditLogEntry.entity_id == entity_id,
            )
            .order_by(AuditLogEntry.timestamp)
        ).scalars()
        return tuple(row.to_entry() for row in rows)
