"""Tests for MetalPriceService: locking, manual updates, mock seeding, repair, config."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from conftest import InMemoryRecordStore, make_rates, seed_record

from bullion.clock import FixedClock
from bullion.config import SourceSettings
from bullion.exceptions import InvalidConfiguration, InvalidObservation
from bullion.models import MetalKind, PriceUnit
from bullion.pricing.reconciler import HistoryReconciler
from bullion.service import DEFAULT_SCHEDULE, MetalPriceService, mask_secret
from bullion.sources.api_ninjas import API_CONFIG_KEY


class TestWrites:
    @pytest.mark.asyncio
    async def test_concurrent_updates_same_metal_are_serialized(
        self, service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        """Two concurrent writes for different days must both land in history."""
        await asyncio.gather(
            service.update_prices(MetalKind.GOLD, make_rates("100"), date=date(2026, 10, 18)),
            service.update_prices(MetalKind.GOLD, make_rates("110"), date=date(2026, 10, 19)),
        )

        record = await store.get(MetalKind.GOLD)
        assert record is not None
        assert [h.date for h in record.history] == [date(2026, 10, 19), date(2026, 10, 18)]
        assert record.history[0].change == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_manual_update_converts_unit(
        self, service: MetalPriceService
    ) -> None:
        record = await service.manual_update(
            MetalKind.GOLD, Decimal("68500"), unit=PriceUnit.TEN_GRAM
        )

        assert [r.price for r in record.rates] == [
            Decimal("6850.00"),
            Decimal("6279.40"),
            Decimal("5137.50"),
            Decimal("3995.61"),
        ]

    @pytest.mark.asyncio
    async def test_manual_update_backdated(
        self, service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        seed_record(store, MetalKind.SILVER, [(date(2026, 10, 19), "82", "0")], rates=make_rates("82"))

        record = await service.manual_update(MetalKind.SILVER, Decimal("80"), date=date(2026, 10, 18))

        assert record.history[0].change == Decimal("2.00")
        assert record.rates[0].price == Decimal("82")

    @pytest.mark.asyncio
    async def test_manual_update_rejects_non_positive(
        self, service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        with pytest.raises(InvalidObservation):
            await service.manual_update(MetalKind.PLATINUM, Decimal("0"))
        assert store.write_count == 0


class TestInitializeWithMockData:
    @pytest.mark.asyncio
    async def test_seeds_only_missing_metals(
        self, service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        seed_record(store, MetalKind.GOLD, [(date(2026, 10, 19), "7000", "0")])

        created = await service.initialize_with_mock_data()

        assert created == [MetalKind.SILVER, MetalKind.PLATINUM]
        gold = await store.get(MetalKind.GOLD)
        silver = await store.get(MetalKind.SILVER)
        platinum = await store.get(MetalKind.PLATINUM)
        assert gold is not None and gold.history[0].price == Decimal("7000")
        assert silver is not None and silver.rates[1].price == Decimal("75.77")
        assert platinum is not None and platinum.rates[0].price == Decimal("3200.00")

    @pytest.mark.asyncio
    async def test_second_run_creates_nothing(self, service: MetalPriceService) -> None:
        await service.initialize_with_mock_data()
        assert await service.initialize_with_mock_data() == []


class TestRecalculateAll:
    @pytest.mark.asyncio
    async def test_reports_per_metal(
        self, service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        seed_record(
            store,
            MetalKind.GOLD,
            [(date(2026, 10, 18), "100", "0"), (date(2026, 10, 19), "105", "0")],
            rates=make_rates("105"),
        )

        results = await service.recalculate_all()

        assert results == {"gold": True, "silver": False, "platinum": False}
        gold = await store.get(MetalKind.GOLD)
        assert gold is not None and gold.history[0].change == Decimal("5.00")

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(
        self, store: InMemoryRecordStore, clock: FixedClock
    ) -> None:
        reconciler = AsyncMock(spec=HistoryReconciler)

        async def recalculate(metal: MetalKind) -> bool:
            if metal is MetalKind.SILVER:
                raise RuntimeError("boom")
            return True

        reconciler.recalculate.side_effect = recalculate
        service = MetalPriceService(reconciler, store, clock)

        assert await service.recalculate_all() == {"gold": True, "silver": False, "platinum": True}


class TestReads:
    @pytest.mark.asyncio
    async def test_get_all_includes_unwritten_metals(
        self, service: MetalPriceService, store: InMemoryRecordStore, clock: FixedClock
    ) -> None:
        seed_record(store, MetalKind.GOLD, [(date(2026, 10, 19), "6850.00", "0")])

        payload = await service.get_all()

        assert payload["gold"]["symbolCode"] == "Au"
        assert payload["silver"] is None
        assert payload["platinum"] is None
        assert payload["lastUpdated"] == clock.now().isoformat()

    @pytest.mark.asyncio
    async def test_get_all_writes_snapshot(
        self, reconciler: HistoryReconciler, store: InMemoryRecordStore, clock: FixedClock
    ) -> None:
        snapshots = AsyncMock()
        service = MetalPriceService(reconciler, store, clock, snapshots=snapshots)

        payload = await service.get_all()

        snapshots.write_all.assert_awaited_once_with(payload)

    @pytest.mark.asyncio
    async def test_get_metal_missing(self, service: MetalPriceService) -> None:
        assert await service.get_metal(MetalKind.PLATINUM) is None


class TestScheduleConfig:
    @pytest.mark.asyncio
    async def test_defaults(self, service: MetalPriceService) -> None:
        assert await service.get_schedule_config() == DEFAULT_SCHEDULE

    @pytest.mark.asyncio
    async def test_update_keeps_known_fields_only(
        self, service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        config = await service.update_schedule_config(
            {"enabled": False, "frequency": None, "unknown": 1}
        )

        assert config["enabled"] is False
        assert config["frequency"] == DEFAULT_SCHEDULE["frequency"]
        assert "unknown" not in config
        assert store.config["schedule"] == config

    @pytest.mark.asyncio
    async def test_mark_sync_run(self, service: MetalPriceService, clock: FixedClock) -> None:
        await service.mark_sync_run()
        config = await service.get_schedule_config()
        assert config["lastRun"] == clock.now().isoformat()


class TestApiConfig:
    @pytest.fixture
    def api_service(
        self, reconciler: HistoryReconciler, store: InMemoryRecordStore, clock: FixedClock
    ) -> MetalPriceService:
        settings = SourceSettings(api_ninjas_key="", usd_to_inr_rate=Decimal("83.5"))  # type: ignore[arg-type]
        return MetalPriceService(reconciler, store, clock, source_settings=settings)

    @pytest.mark.asyncio
    async def test_defaults_from_settings(self, api_service: MetalPriceService) -> None:
        assert await api_service.get_api_config() == {
            "apiNinjasConfigured": False,
            "apiNinjasKeyMasked": "",
            "usdToInrRate": "83.5",
        }

    @pytest.mark.asyncio
    async def test_key_is_trimmed_and_masked(
        self, api_service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        config = await api_service.update_api_config(api_ninjas_key="  abcdef123456  ")

        assert store.config[API_CONFIG_KEY] == {"apiNinjasKey": "abcdef123456"}
        assert config["apiNinjasConfigured"] is True
        assert config["apiNinjasKeyMasked"] == "•••••3456"
        assert "abcdef" not in config["apiNinjasKeyMasked"]

    @pytest.mark.asyncio
    async def test_rate_update_keeps_stored_key(
        self, api_service: MetalPriceService, store: InMemoryRecordStore
    ) -> None:
        await api_service.update_api_config(api_ninjas_key="abcdef123456")
        config = await api_service.update_api_config(usd_to_inr_rate=Decimal("84.25"))

        assert store.config[API_CONFIG_KEY] == {"apiNinjasKey": "abcdef123456", "usdToInrRate": "84.25"}
        assert config["usdToInrRate"] == "84.25"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [
            {},
            {"api_ninjas_key": "   "},
            {"usd_to_inr_rate": Decimal("0")},
            {"usd_to_inr_rate": Decimal("-1")},
        ],
    )
    async def test_unusable_update_rejected(
        self, api_service: MetalPriceService, store: InMemoryRecordStore, changes: dict
    ) -> None:
        with pytest.raises(InvalidConfiguration):
            await api_service.update_api_config(**changes)
        assert API_CONFIG_KEY not in store.config

    @pytest.mark.parametrize(("value", "masked"), [("", ""), ("abcd", ""), ("abcde", "•••••bcde")])
    def test_mask_secret(self, value: str, masked: str) -> None:
        assert mask_secret(value) == masked
