"""
Pytest fixtures for the reconciliation kernel test suite.

Provides:
- Structured log capture
- The deployed transition registry
- In-memory record store / audit sink and a StatusManager wired to them
- A file-backed SQLite engine with the audit log and pipeline tables

SQL tests run against SQLite.  Pipeline tables are owned by other systems
in production, so the fixture creates minimal stand-ins via SQLAlchemy Core.
"""

import json
import logging
from io import StringIO
from typing import Callable

import pytest
from sqlalchemy import Column, MetaData, String, Table, Text

from recon_config import get_active_registry
from recon_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.domain.clock import DeterministicClock
from recon_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from recon_kernel.services.record_locks import RecordLocks
from recon_kernel.services.status_manager import StatusManager
from recon_kernel.stores.memory import InMemoryAuditSink, InMemoryRecordStore


# Actor used by pipeline-stage style tests
TEST_ACTOR = "test-stage"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture recon_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, manager):
            manager.transition(...)
            logs = captured_logs()
            assert any(r["message"] == "status_transition_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("recon_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture(scope="session")
def registry():
    """The deployed transition registry (recon_config/sets/pipeline.yaml)."""
    return get_active_registry()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


# =============================================================================
# In-memory wiring
# =============================================================================


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def record_locks():
    """A private lock table so tests never contend with each other."""
    return RecordLocks()


@pytest.fixture
def manager(registry, record_store, audit_sink, deterministic_clock, record_locks):
    return StatusManager(
        registry,
        record_store,
        audit_sink,
        clock=deterministic_clock,
        locks=record_locks,
        lock_timeout_seconds=2.0,
    )


@pytest.fixture
def seed_record(record_store) -> Callable[..., dict]:
    """
    Put a record into the in-memory store.

    ``status=None`` leaves the status field out entirely.
    """

    def _seed(kind: EntityKind, record_id: str, status: Status | str | None, **fields) -> dict:
        record = {"id": record_id, **fields}
        if status is not None:
            record["status"] = status.code if isinstance(status, Status) else status
        record_store.put(kind.collection, record)
        return record

    return _seed


# =============================================================================
# SQL wiring (SQLite file per test)
# =============================================================================


def _pipeline_metadata() -> MetaData:
    metadata = MetaData()
    for kind in EntityKind:
        Table(
            kind.collection,
            metadata,
            Column("id", String(64), primary_key=True),
            Column("status", String(50), nullable=True),
            Column("payload", Text, nullable=True),
        )
    return metadata


@pytest.fixture
def sqlite_engine(tmp_path):
    """
    Fresh SQLite database with the audit log and pipeline tables.

    File-backed so that each session gets its own connection and committed
    state is observable from outside the session under test.
    """
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'recon.db'}")
    create_tables()
    pipeline = _pipeline_metadata()
    pipeline.create_all(engine)
    yield engine
    pipeline.drop_all(engine)
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_session(sqlite_engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def seed_sql_record(sqlite_engine) -> Callable[..., None]:
    """Insert a pipeline row and commit it."""
    pipeline = _pipeline_metadata()

    def _seed(kind: EntityKind, record_id: str, status: Status | str | None, payload: str | None = None) -> None:
        code = status.code if isinstance(status, Status) else status
        table = pipeline.tables[kind.collection]
        with get_engine().begin() as conn:
            conn.execute(
                table.insert().values(id=record_id, status=code, payload=payload)
            )

    return _seed


@pytest.fixture
def read_sql_status(sqlite_engine) -> Callable[[EntityKind, str], str | None]:
    """Read a pipeline row's committed status."""
    pipeline = _pipeline_metadata()

    def _read(kind: EntityKind, record_id: str) -> str | None:
        table = pipeline.tables[kind.collection]
        with get_engine().connect() as conn:
            return conn.execute(
                table.select().where(table.c.id == record_id)
            ).mappings().one()["status"]

    return _read
