"""History reconciliation -- merges a day's price into a metal's record.

Each update is a read-modify-write of one metal's record:
  1. LOAD: read stored history, order it oldest -> newest
  2. DIFF: compare the new rates against the latest entry strictly before the
     target date (the last *recorded* day, not the previous calendar day)
  3. MERGE: replace any entry for the target date, re-sort, and re-diff the
     entry immediately after it when the write was backdated
  4. TRIM: keep the most recent `history_limit` entries
  5. RATES: take the new rates only if the target date is the latest date
  6. PERSIST: rebuild chart series and write the whole record at once

History stores only the base purity price. The previous price of any other
purity is reconstructed with the same ratio that links it to the base today.

The reconciler does no locking. Callers must serialize calls per metal
(MetalPriceService does this with one asyncio.Lock per metal).
"""

from dataclasses import replace
from datetime import date as date_type
from decimal import Decimal

from bullion.clock import ReferenceClock
from bullion.exceptions import InvalidObservation
from bullion.logging import get_logger
from bullion.models import HistoryEntry, MetalKind, MetalRate, MetalRecord
from bullion.pricing.change import calculate_change, quantize_price
from bullion.pricing.charts import build_chart_series
from bullion.store.base import RecordStore
from bullion.store.snapshot import SnapshotWriter

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 30


def _validate_rates(metal: MetalKind, rates: list[MetalRate]) -> None:
    if not rates:
        raise InvalidObservation(f"{metal.value}: no rates supplied")
    for rate in rates:
        if not rate.price.is_finite() or rate.price < 0:
            raise InvalidObservation(
                f"{metal.value}: purity {rate.purity} has invalid price {rate.price}"
            )
    if rates[0].price == 0:
        raise InvalidObservation(f"{metal.value}: base purity price must be positive")


def rates_against(rates: list[MetalRate], previous_base: Decimal | None) -> list[MetalRate]:
    """Compute each purity's change against an implied previous-period price.

    The implied previous price of a purity is previous_base scaled by that
    purity's ratio to today's base price. With no previous entry every change
    is zero.
    """
    base_price = rates[0].price
    result = []
    for rate in rates:
        if previous_base is None:
            change, change_percent = Decimal("0.00"), Decimal("0.00")
        else:
            implied_previous = previous_base * (rate.price / base_price)
            change, change_percent = calculate_change(rate.price, implied_previous)
        result.append(
            MetalRate(
                purity=rate.purity,
                price=rate.price,
                change=change,
                change_percent=change_percent,
            )
        )
    return result


def _latest_before(history: list[HistoryEntry], target: date_type) -> HistoryEntry | None:
    """Latest entry strictly before target in an ascending history."""
    previous = None
    for entry in history:
        if entry.date >= target:
            break
        previous = entry
    return previous


class HistoryReconciler:
    """Applies price updates and repairs to metal records.

    Args:
        store: Primary record store.
        clock: Reference clock deciding "today" and lastUpdated.
        snapshots: Optional best-effort snapshot writer.
        history_limit: Maximum history entries kept per metal.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: ReferenceClock,
        snapshots: SnapshotWriter | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._store = store
        self._clock = clock
        self._snapshots = snapshots
        self._history_limit = history_limit

    async def update_prices(
        self,
        metal: MetalKind,
        rates: list[MetalRate],
        date: date_type | None = None,
    ) -> MetalRecord:
        """Merge a new observation for `date` (default: today) into the record.

        Args:
            metal: Metal being updated.
            rates: Purity rates, base purity first. Change fields are ignored.
            date: Calendar day the rates belong to.

        Returns:
            The persisted MetalRecord.

        Raises:
            InvalidObservation: If rates are empty or carry unusable prices.
            StoreReadFailure / StoreWriteFailure: Propagated from the store.
        """
        _validate_rates(metal, rates)
        target_date = date or self._clock.today()

        stored = await self._store.get_history(metal)
        history = sorted(stored, key=lambda h: h.date)
        previous = _latest_before(history, target_date)

        updated_rates = rates_against(rates, previous.price if previous else None)
        new_entry = HistoryEntry(
            date=target_date,
            price=updated_rates[0].price,
            change=updated_rates[0].change,
        )

        merged = [h for h in history if h.date != target_date]
        merged.append(new_entry)
        merged.sort(key=lambda h: h.date)

        index = merged.index(new_entry)
        if index < len(merged) - 1:
            following = merged[index + 1]
            change, _ = calculate_change(following.price, new_entry.price)
            merged[index + 1] = replace(following, change=change)
            logger.info(
                "following_entry_rediffed",
                metal=metal.value,
                date=following.date.isoformat(),
                change=str(change),
            )

        merged = merged[-self._history_limit:]
        latest_date = merged[-1].date

        if target_date >= latest_date:
            record_rates = updated_rates
        else:
            record_rates = await self._rates_for_backdated_write(metal, rates, new_entry, merged)

        record = MetalRecord(
            name=metal.display_name,
            symbol_code=metal.symbol_code,
            last_updated=self._clock.now(),
            rates=record_rates,
            history=list(reversed(merged)),
            chart_series=build_chart_series(merged, self._clock.today()),
        )
        await self._store.set(metal, record)

        logger.info(
            "metal_prices_reconciled",
            metal=metal.value,
            date=target_date.isoformat(),
            base_price=str(new_entry.price),
            change=str(new_entry.change),
            backdated=target_date < latest_date,
            history_len=len(merged),
        )

        if self._snapshots is not None:
            await self._snapshots.write_metal(metal, record)
        return record

    async def _rates_for_backdated_write(
        self,
        metal: MetalKind,
        rates: list[MetalRate],
        new_entry: HistoryEntry,
        history: list[HistoryEntry],
    ) -> list[MetalRate]:
        """Rates to keep on the record when the write was not for the latest day.

        The persisted rates already describe the latest day and are kept as is.
        Without persisted rates, the incoming table is scaled by
        latest_price / backdated_price and diffed against the second-latest
        entry, using the same ratio rule as a regular update.
        """
        existing = await self._store.get(metal)
        if existing is not None and existing.rates:
            return existing.rates

        latest = history[-1]
        second = history[-2] if len(history) > 1 else None
        ratio = latest.price / new_entry.price
        base_price = rates[0].price

        scaled = []
        for rate in rates:
            price = quantize_price(rate.price * ratio)
            if second is None:
                change, change_percent = Decimal("0.00"), Decimal("0.00")
            else:
                implied_previous = second.price * (rate.price / base_price)
                change, change_percent = calculate_change(price, implied_previous)
            scaled.append(
                MetalRate(
                    purity=rate.purity,
                    price=price,
                    change=change,
                    change_percent=change_percent,
                )
            )
        logger.info(
            "backdated_rates_rebuilt",
            metal=metal.value,
            latest_date=latest.date.isoformat(),
            ratio=str(ratio),
        )
        return scaled

    async def recalculate(self, metal: MetalKind) -> bool:
        """Repair a metal's stored changes from its history.

        Every entry's change is recomputed against its predecessor (the oldest
        entry gets 0). The stored rates are then scaled so the base matches the
        latest history price, with each purity's change proportional to its
        price and one shared percent change.

        Returns:
            False if the metal has no history to repair, True once written.
        """
        record = await self._store.get(metal)
        if record is None or not record.history:
            logger.warning("recalculate_no_history", metal=metal.value)
            return False

        ordered = sorted(record.history, key=lambda h: h.date)[-self._history_limit:]
        repaired: list[HistoryEntry] = []
        for i, entry in enumerate(ordered):
            if i == 0:
                change = Decimal("0.00")
            else:
                change, _ = calculate_change(entry.price, ordered[i - 1].price)
            repaired.append(replace(entry, change=change))

        latest = repaired[-1]
        if len(repaired) > 1:
            base_change, base_percent = calculate_change(latest.price, repaired[-2].price)
        else:
            base_change, base_percent = Decimal("0.00"), Decimal("0.00")

        rates = record.rates
        if rates and rates[0].price > 0 and latest.price > 0:
            ratio = latest.price / rates[0].price
            rescaled = []
            for rate in rates:
                price = quantize_price(rate.price * ratio)
                rescaled.append(
                    MetalRate(
                        purity=rate.purity,
                        price=price,
                        change=quantize_price(base_change * price / latest.price),
                        change_percent=base_percent,
                    )
                )
            rates = rescaled

        record = replace(
            record,
            rates=rates,
            history=list(reversed(repaired)),
            chart_series=build_chart_series(repaired, self._clock.today()),
        )
        await self._store.set(metal, record)
        logger.info(
            "metal_changes_recalculated",
            metal=metal.value,
            entries=len(repaired),
            latest_date=latest.date.isoformat(),
            change=str(base_change),
        )

        if self._snapshots is not None:
            await self._snapshots.write_metal(metal, record)
        return True
