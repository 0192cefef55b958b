"""Metal record persistence.

Provides the RecordStore interface, its aiosqlite implementation, and the
best-effort JSON snapshot writer.
"""

from bullion.store.base import RecordStore
from bullion.store.database import MetalDatabase
from bullion.store.snapshot import SnapshotWriter
from bullion.store.sqlite_store import SqliteRecordStore

__all__ = [
    "MetalDatabase",
    "RecordStore",
    "SnapshotWriter",
    "SqliteRecordStore",
]
