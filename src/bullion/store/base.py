"""Abstract metal record store interface.

Defines the contract the reconciler and service depend on. The store is a
key-value document store: one document per metal, replaced as a whole on
every write, plus a handful of operator configuration documents.
"""

from abc import ABC, abstractmethod
from typing import Any

from bullion.models import HistoryEntry, MetalKind, MetalRecord


class RecordStore(ABC):
    """Abstract base class for metal record persistence.

    Implementations must be strongly consistent per key. Read errors raise
    StoreReadFailure and write errors raise StoreWriteFailure.
    """

    @abstractmethod
    async def get(self, metal: MetalKind) -> MetalRecord | None:
        """Return the stored record for a metal, or None if never written."""
        ...

    @abstractmethod
    async def set(self, metal: MetalKind, record: MetalRecord) -> None:
        """Replace the record for a metal in a single atomic write."""
        ...

    @abstractmethod
    async def get_history(self, metal: MetalKind) -> list[HistoryEntry]:
        """Return the stored history for a metal (newest-first), or [] if none."""
        ...

    @abstractmethod
    async def get_config(self, key: str) -> dict[str, Any] | None:
        """Return an operator configuration document, or None if unset."""
        ...

    @abstractmethod
    async def set_config(self, key: str, value: dict[str, Any]) -> None:
        """Replace an operator configuration document."""
        ...
