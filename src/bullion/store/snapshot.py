"""Static JSON snapshots of metal records for file-hosting consumers.

Snapshots are secondary: the record store is the source of truth. A failed
snapshot write is logged and never propagates to the caller.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any

from bullion.exceptions import SecondaryWriteFailure
from bullion.logging import get_logger
from bullion.models import MetalKind, MetalRecord

logger = get_logger(__name__)

ALL_METALS_FILE = "all-metals.json"


class SnapshotWriter:
    """Writes `<metal>.json` and `all-metals.json` into a directory.

    Files are written to a temporary name and renamed into place so readers
    never see a partially written document.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _write(self, filename: str, payload: dict[str, Any]) -> Path:
        target = self._directory / filename
        tmp = target.with_suffix(target.suffix + ".tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp, target)
        except OSError as e:
            raise SecondaryWriteFailure(f"writing {target}: {e}") from e
        return target

    async def _write_best_effort(self, filename: str, payload: dict[str, Any]) -> bool:
        try:
            target = await asyncio.to_thread(self._write, filename, payload)
        except SecondaryWriteFailure as e:
            logger.warning("snapshot_write_failed", file=filename, error=str(e))
            return False
        logger.debug("snapshot_written", path=str(target))
        return True

    async def write_metal(self, metal: MetalKind, record: MetalRecord) -> bool:
        """Write one metal's snapshot. Returns False (after logging) on failure."""
        return await self._write_best_effort(f"{metal.value}.json", record.to_dict())

    async def write_all(self, payload: dict[str, Any]) -> bool:
        """Write the combined all-metals snapshot. Returns False on failure."""
        return await self._write_best_effort(ALL_METALS_FILE, payload)
