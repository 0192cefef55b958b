"""Metal price service -- the entrypoints used by the API, CLI, and sync.

Wraps the HistoryReconciler with one asyncio.Lock per metal, so updates and
repairs of the same metal never interleave while different metals proceed in
parallel. Also owns the read side (single metal, all metals), mock
initialization, manual updates, and the operator configuration documents
(`schedule` and `api`).
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any

from bullion.clock import ReferenceClock
from bullion.config import SourceSettings
from bullion.exceptions import InvalidConfiguration
from bullion.logging import get_logger
from bullion.models import MetalKind, MetalRate, MetalRecord, Observation, PriceUnit
from bullion.pricing.purity import derive_rates, rates_from_observation
from bullion.pricing.reconciler import HistoryReconciler
from bullion.sources.api_ninjas import API_CONFIG_KEY
from bullion.store.base import RecordStore
from bullion.store.snapshot import SnapshotWriter

logger = get_logger(__name__)

# Base (999) per-gram prices used to seed metals that have never been written.
MOCK_BASE_PRICES: dict[MetalKind, Decimal] = {
    MetalKind.GOLD: Decimal("6850"),
    MetalKind.SILVER: Decimal("82"),
    MetalKind.PLATINUM: Decimal("3200"),
}

SCHEDULE_CONFIG_KEY = "schedule"

MASK_PREFIX = "•••••"

DEFAULT_SCHEDULE: dict[str, Any] = {
    "enabled": True,
    "frequency": "0,30 9 * * * and 0 10 * * * and 55 11 * * *",
    "timezone": "Asia/Kolkata",
    "lastRun": None,
}


class MetalPriceService:
    """Serialized access to metal records.

    Args:
        reconciler: Applies updates and repairs.
        store: Primary record store (for reads and config).
        clock: Reference clock for timestamps.
        snapshots: Optional best-effort snapshot writer for the all-metals file.
        source_settings: Fallback API key and exchange rate for the `api` config.
    """

    def __init__(
        self,
        reconciler: HistoryReconciler,
        store: RecordStore,
        clock: ReferenceClock,
        snapshots: SnapshotWriter | None = None,
        source_settings: SourceSettings | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._store = store
        self._clock = clock
        self._snapshots = snapshots
        self._source_settings = source_settings or SourceSettings()
        self._locks: dict[MetalKind, asyncio.Lock] = {m: asyncio.Lock() for m in MetalKind}

    # ââââââââââââââââââââââââââââââââââââââââââââââ
    # Writes
    # ââââââââââââââââââââââââââââââââââââââââââââââ

    async def update_prices(
        self,
        metal: MetalKind,
        rates: list[MetalRate],
        date: date | None = None,
    ) -> MetalRecord:
        """Reconcile rates for a metal under that metal's lock."""
        async with self._locks[metal]:
            return await self._reconciler.update_prices(metal, rates, date)

    async def manual_update(
        self,
        metal: MetalKind,
        price: Decimal,
        unit: PriceUnit = PriceUnit.GRAM,
        date: date | None = None,
    ) -> MetalRecord:
        """Update a metal from a single operator-entered base price."""
        observation = Observation(metal=metal, price=price, unit=unit, source="manual")
        rates = rates_from_observation(observation)
        logger.info(
            "manual_update",
            metal=metal.value,
            price=str(price),
            unit=unit.value,
            base_per_gram=str(rates[0].price),
        )
        return await self.update_prices(metal, rates, date)

    async def initialize_with_mock_data(self) -> list[MetalKind]:
        """Seed every metal without a record. Returns the metals created."""
        created = []
        for metal in MetalKind:
            if await self._store.get(metal) is not None:
                continue
            await self.update_prices(metal, derive_rates(metal, MOCK_BASE_PRICES[metal]))
            created.append(metal)
        logger.info("mock_data_initialized", created=[m.value for m in created])
        return created

    async def recalculate_all(self) -> dict[str, bool]:
        """Repair stored changes for every metal, in parallel across metals.

        A failure for one metal is logged and reported as False; the other
        metals are still processed.
        """

        async def _one(metal: MetalKind) -> bool:
            try:
                async with self._locks[metal]:
                    return await self._reconciler.recalculate(metal)
            except Exception as e:
                logger.error("recalculate_failed", metal=metal.value, error=str(e), exc_info=True)
                return False

        metals = list(MetalKind)
        outcomes = await asyncio.gather(*(_one(m) for m in metals))
        results = {m.value: ok for m, ok in zip(metals, outcomes)}
        logger.info("recalculation_complete", results=results)
        return results

    # ââââââââââââââââââââââââââââââââââââââââââââââ
    # Reads
    # ââââââââââââââââââââââââââââââââââââââââââââââ

    async def get_metal(self, metal: MetalKind) -> MetalRecord | None:
        return await self._store.get(metal)

    async def get_all(self) -> dict[str, Any]:
        """All records as serialized documents, plus a response timestamp.

        Metals that were never written map to None. The combined document is
        also written as a snapshot (best-effort).
        """
        payload: dict[str, Any] = {}
        for metal in MetalKind:
            record = await self._store.get(metal)
            payload[metal.value] = record.to_dict() if record is not None else None
        payload["lastUpdated"] = self._clock.now().isoformat()

        if self._snapshots is not None:
            await self._snapshots.write_all(payload)
        return payload

    # ââââââââââââââââââââââââââââââââââââââââââââââ
    # Schedule configuration
    # ââââââââââââââââââââââââââââââââââââââââââââââ

    async def get_schedule_config(self) -> dict[str, Any]:
        stored = await self._store.get_config(SCHEDULE_CONFIG_KEY)
        return {**DEFAULT_SCHEDULE, **(stored or {})}

    async def update_schedule_config(self, changes: dict[str, Any]) -> dict[str, Any]:
        """Merge the given fields into the schedule config and persist it."""
        allowed = {k: v for k, v in changes.items() if k in DEFAULT_SCHEDULE and v is not None}
        config = {**(await self.get_schedule_config()), **allowed}
        await self._store.set_config(SCHEDULE_CONFIG_KEY, config)
        logger.info("schedule_config_updated", fields=sorted(allowed))
        return config

    async def mark_sync_run(self) -> None:
        """Record the current time as the schedule's lastRun."""
        await self.update_schedule_config({"lastRun": self._clock.now().isoformat()})

    # ──────────────────────────────────────────────
    # API source configuration
    # ──────────────────────────────────────────────

    async def get_api_config(self) -> dict[str, Any]:
        """Public view of the API source configuration.

        The key is never returned: only whether one is set and its last four
        characters. Stored values take precedence over SourceSettings.
        """
        stored = await self._store.get_config(API_CONFIG_KEY) or {}
        api_key = stored.get("apiNinjasKey") or self._source_settings.api_ninjas_key.get_secret_value()
        rate = stored.get("usdToInrRate")
        return {
            "apiNinjasConfigured": bool(api_key),
            "apiNinjasKeyMasked": mask_secret(api_key),
            "usdToInrRate": str(rate) if rate is not None else str(self._source_settings.usd_to_inr_rate),
        }

    async def update_api_config(
        self,
        api_ninjas_key: str | None = None,
        usd_to_inr_rate: Decimal | None = None,
    ) -> dict[str, Any]:
        """Store a new API key and/or exchange rate.

        Raises:
            InvalidConfiguration: If neither value is usable.
        """
        changes: dict[str, str] = {}
        if api_ninjas_key and api_ninjas_key.strip():
            changes["apiNinjasKey"] = api_ninjas_key.strip()
        if usd_to_inr_rate is not None:
            if not usd_to_inr_rate.is_finite() or usd_to_inr_rate <= 0:
                raise InvalidConfiguration(f"exchange rate must be positive, got {usd_to_inr_rate}")
            changes["usdToInrRate"] = str(usd_to_inr_rate)
        if not changes:
            raise InvalidConfiguration("No configuration values provided")

        stored = await self._store.get_config(API_CONFIG_KEY) or {}
        await self._store.set_config(API_CONFIG_KEY, {**stored, **changes})
        logger.info("api_config_updated", fields=sorted(changes))
        return await self.get_api_config()


def mask_secret(value: str) -> str:
    """Mask all but the last four characters; short values mask to ''."""
    if len(value) <= 4:
        return ""
    return MASK_PREFIX + value[-4:]
