"""Record store and audit sink adapters."""

from recon_kernel.stores.memory import InMemoryAuditSink, InMemoryRecordStore
from recon_kernel.stores.sql import SqlAuditSink, SqlRecordStore

__all__ = [
    "InMemoryAuditSink",
    "InMemoryRecordStore",
    "SqlAuditSink",
    "SqlRecordStore",
]
