"""Price sync orchestrator -- fetch, derive, and reconcile every metal.

Each metal is handled independently and concurrently:
  1. FETCH: ask the observation source for the metal's raw price
  2. DERIVE: validate, convert to per gram, build the purity rate table
  3. RECONCILE: hand the rates to MetalPriceService (per-metal lock)

One metal failing never affects the others. A run succeeds when at least one
metal was updated; partial success is reported, not raised.
"""

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal

from bullion.logging import get_logger, sync_context
from bullion.models import MetalKind
from bullion.pricing.purity import rates_from_observation
from bullion.service import MetalPriceService
from bullion.sources.base import ObservationSource

logger = get_logger(__name__)


@dataclass
class MetalSyncResult:
    """Outcome of syncing one metal."""

    metal: MetalKind
    success: bool
    price: Decimal | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "price": str(self.price) if self.price is not None else None,
            "error": self.error,
        }


@dataclass
class SyncReport:
    """Aggregate outcome of a sync run."""

    source: str
    results: dict[MetalKind, MetalSyncResult] = field(default_factory=dict)

    @property
    def updated_count(self) -> int:
        return sum(1 for r in self.results.values() if r.success)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.updated_count

    @property
    def success(self) -> bool:
        return self.updated_count > 0

    @property
    def message(self) -> str:
        if not self.success:
            return f"Unable to fetch prices from {self.source}. Please try manual update."
        return f"Updated {self.updated_count} metal(s) from {self.source}"

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "updated": self.updated_count,
            "failed": self.failed_count,
            "results": {m.value: r.to_dict() for m, r in self.results.items()},
        }


class PriceSync:
    """Runs one source against the price service for a set of metals.

    Args:
        source: Observation source to fetch from.
        service: Price service receiving the derived rates.
    """

    def __init__(self, source: ObservationSource, service: MetalPriceService) -> None:
        self._source = source
        self._service = service

    async def sync_metal(self, metal: MetalKind) -> MetalSyncResult:
        """Fetch and reconcile one metal, capturing any failure in the result."""
        try:
            observation = await self._source.fetch_observation(metal)
            rates = rates_from_observation(observation)
            await self._service.update_prices(metal, rates)
        except Exception as e:
            logger.warning(
                "metal_sync_failed",
                metal=metal.value,
                source=self._source.name,
                error=str(e),
                exc_info=True,
            )
            return MetalSyncResult(metal=metal, success=False, error=str(e))

        logger.info(
            "metal_synced",
            metal=metal.value,
            source=self._source.name,
            base_price=str(rates[0].price),
        )
        return MetalSyncResult(metal=metal, success=True, price=rates[0].price)

    async def sync_all(self, metals: list[MetalKind] | None = None) -> SyncReport:
        """Sync the given metals (default: all) concurrently."""
        targets = list(metals) if metals is not None else list(MetalKind)
        with sync_context(sync_source=self._source.name):
            logger.info("sync_started", metals=[m.value for m in targets])
            outcomes = await asyncio.gather(*(self.sync_metal(m) for m in targets))

        report = SyncReport(source=self._source.name, results={r.metal: r for r in outcomes})

        log = logger.info if report.success else logger.error
        log(
            "sync_complete",
            source=self._source.name,
            updated=report.updated_count,
            failed=report.failed_count,
        )
        return report
