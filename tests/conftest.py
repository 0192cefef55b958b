"""Shared test fixtures for the metal price service."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pytest

from bullion.clock import FixedClock
from bullion.config import ApiSettings, AppSettings, StoreSettings
from bullion.exceptions import StoreReadFailure, StoreWriteFailure
from bullion.models import HistoryEntry, MetalKind, MetalRate, MetalRecord
from bullion.pricing.reconciler import HistoryReconciler
from bullion.service import MetalPriceService
from bullion.store.base import RecordStore


class InMemoryRecordStore(RecordStore):
    """RecordStore double that round-trips documents like a real store.

    Records are serialized on write and parsed on read, so tests never share
    mutable objects with the store. Set fail_reads / fail_writes to simulate
    storage outages.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.config: dict[str, dict[str, Any]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.write_count = 0

    async def get(self, metal: MetalKind) -> MetalRecord | None:
        if self.fail_reads:
            raise StoreReadFailure("simulated read failure")
        document = self.documents.get(metal.value)
        return MetalRecord.from_dict(document) if document is not None else None

    async def set(self, metal: MetalKind, record: MetalRecord) -> None:
        if self.fail_writes:
            raise StoreWriteFailure("simulated write failure")
        self.documents[metal.value] = record.to_dict()
        self.write_count += 1

    async def get_history(self, metal: MetalKind) -> list[HistoryEntry]:
        record = await self.get(metal)
        return record.history if record is not None else []

    async def get_config(self, key: str) -> dict[str, Any] | None:
        return self.config.get(key)

    async def set_config(self, key: str, value: dict[str, Any]) -> None:
        self.config[key] = dict(value)


def make_rates(*prices: str, purities: tuple[str, ...] = ("999", "916", "750", "585")) -> list[MetalRate]:
    """Build a rate list from price strings, base purity first."""
    return [MetalRate(purity=p, price=Decimal(v)) for p, v in zip(purities, prices)]


def seed_record(
    store: InMemoryRecordStore,
    metal: MetalKind,
    history: list[tuple[date, str, str]],
    rates: list[MetalRate] | None = None,
) -> None:
    """Write a record directly, bypassing the reconciler (history newest-first)."""
    entries = [HistoryEntry(date=d, price=Decimal(p), change=Decimal(c)) for d, p, c in history]
    entries.sort(key=lambda h: h.date, reverse=True)
    store.documents[metal.value] = MetalRecord(
        name=metal.display_name,
        symbol_code=metal.symbol_code,
        last_updated=datetime(2026, 10, 1, 9, 0).astimezone(),
        rates=rates or [],
        history=entries,
    ).to_dict()


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at 2026-10-19 10:00 IST."""
    return FixedClock(datetime(2026, 10, 19, 10, 0))


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def reconciler(store: InMemoryRecordStore, clock: FixedClock) -> HistoryReconciler:
    return HistoryReconciler(store=store, clock=clock)


@pytest.fixture
def service(
    reconciler: HistoryReconciler, store: InMemoryRecordStore, clock: FixedClock
) -> MetalPriceService:
    return MetalPriceService(reconciler, store, clock)


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:  # type: ignore[no-untyped-def]
    """AppSettings with a test API key and temp storage paths."""
    return AppSettings(
        log_level="DEBUG",
        store=StoreSettings(
            db_path=str(tmp_path / "metals.db"),
            snapshot_dir=str(tmp_path / "live-data"),
        ),
        api=ApiSettings(api_key="test-api-key"),  # type: ignore[arg-type]
    )
