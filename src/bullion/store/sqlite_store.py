"""SQLite-backed record store.

Each metal is one JSON document in metal_records. Replacing a row with
INSERT OR REPLACE in a single statement keeps record writes atomic.

CRITICAL: Decimals are serialized as strings inside the JSON documents and
restored as Decimal on read.
"""

import json
from typing import Any

import aiosqlite

from bullion.exceptions import StoreReadFailure, StoreWriteFailure
from bullion.logging import get_logger
from bullion.models import HistoryEntry, MetalKind, MetalRecord
from bullion.store.base import RecordStore
from bullion.store.database import MetalDatabase

logger = get_logger(__name__)


class SqliteRecordStore(RecordStore):
    """RecordStore persisted through a MetalDatabase connection."""

    def __init__(self, database: MetalDatabase) -> None:
        self._database = database

    async def _fetch_document(self, table: str, key_column: str, key: str) -> dict[str, Any] | None:
        try:
            cursor = await self._database.db.execute(
                f"SELECT document FROM {table} WHERE {key_column} = ?",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreReadFailure(f"reading {table}/{key}: {e}") from e
        if row is None:
            return None
        return json.loads(row[0])

    async def get(self, metal: MetalKind) -> MetalRecord | None:
        document = await self._fetch_document("metal_records", "metal", metal.value)
        if document is None:
            return None
        return MetalRecord.from_dict(document)

    async def set(self, metal: MetalKind, record: MetalRecord) -> None:
        payload = json.dumps(record.to_dict())
        try:
            await self._database.db.execute(
                "INSERT OR REPLACE INTO metal_records (metal, document, updated_at) "
                "VALUES (?, ?, ?)",
                (metal.value, payload, record.last_updated.isoformat()),
            )
            await self._database.db.commit()
        except aiosqlite.Error as e:
            raise StoreWriteFailure(f"writing metal_records/{metal.value}: {e}") from e

        logger.debug(
            "metal_record_written",
            metal=metal.value,
            history_len=len(record.history),
        )

    async def get_history(self, metal: MetalKind) -> list[HistoryEntry]:
        document = await self._fetch_document("metal_records", "metal", metal.value)
        if document is None:
            return []
        return [HistoryEntry.from_dict(h) for h in document.get("history") or []]

    async def get_config(self, key: str) -> dict[str, Any] | None:
        return await self._fetch_document("app_config", "key", key)

    async def set_config(self, key: str, value: dict[str, Any]) -> None:
        try:
            await self._database.db.execute(
                "INSERT OR REPLACE INTO app_config (key, document) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            await self._database.db.commit()
        except aiosqlite.Error as e:
            raise StoreWriteFailure(f"writing app_config/{key}: {e}") from e
