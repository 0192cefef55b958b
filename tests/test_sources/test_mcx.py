"""Tests for the MCX spot price table scraper."""

from decimal import Decimal

import httpx
import pytest

from bullion.config import SourceSettings
from bullion.exceptions import ObservationUnavailable
from bullion.models import MetalKind, PriceUnit
from bullion.sources.mcx import McxSource, find_commodity, parse_spot_table, parse_unit

SPOT_PAGE = """
<html><body>
<table>
  <thead><tr><th>Commodity</th><th>Unit</th><th>Location</th><th>Spot Price (Rs.)</th></tr></thead>
  <tbody>
    <tr><td>ALUMINIUM</td><td>1 KGS</td><td>THANE</td><td>238.45</td></tr>
    <tr><td>GOLD</td><td>10 GRAMS</td><td>AHMEDABAD</td><td>Rs.1,23,456.00</td></tr>
    <tr><td>SILVER</td><td>1 KGS</td><td>AHMEDABAD</td><td>1,48,210.00</td></tr>
    <tr><td>SHORT</td><td>1 KGS</td></tr>
  </tbody>
</table>
</body></html>
"""


def _source(handler) -> McxSource:  # type: ignore[no-untyped-def]
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return McxSource(SourceSettings(), client=client)


class TestParsing:
    @pytest.mark.parametrize(
        ("label", "unit"),
        [
            ("10 GRAMS", PriceUnit.TEN_GRAM),
            ("10 gm", PriceUnit.TEN_GRAM),
            ("1 KGS", PriceUnit.KILOGRAM),
            ("1 GM", PriceUnit.GRAM),
        ],
    )
    def test_parse_unit(self, label: str, unit: PriceUnit) -> None:
        assert parse_unit(label) == unit

    def test_short_rows_skipped(self) -> None:
        rows = parse_spot_table(SPOT_PAGE)
        assert [r.commodity for r in rows] == ["ALUMINIUM", "GOLD", "SILVER"]
        assert rows[1].price == Decimal("123456.00")

    def test_find_commodity_ignores_zero_prices(self) -> None:
        rows = parse_spot_table(SPOT_PAGE.replace("1,48,210.00", "0"))
        assert find_commodity(rows, MetalKind.SILVER) is None


class TestMcxSource:
    @pytest.mark.asyncio
    async def test_gold_row(self) -> None:
        source = _source(lambda request: httpx.Response(200, text=SPOT_PAGE))
        observation = await source.fetch_observation(MetalKind.GOLD)

        assert observation.price == Decimal("123456.00")
        assert observation.unit == PriceUnit.TEN_GRAM
        assert observation.source == "mcx"

    @pytest.mark.asyncio
    async def test_silver_row_per_kilogram(self) -> None:
        source = _source(lambda request: httpx.Response(200, text=SPOT_PAGE))
        observation = await source.fetch_observation(MetalKind.SILVER)

        assert observation.price == Decimal("148210.00")
        assert observation.unit == PriceUnit.KILOGRAM

    @pytest.mark.asyncio
    async def test_platinum_not_quoted_and_not_requested(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, text=SPOT_PAGE)

        source = _source(handler)
        with pytest.raises(ObservationUnavailable):
            await source.fetch_observation(MetalKind.PLATINUM)
        assert calls == []

    @pytest.mark.asyncio
    async def test_empty_table(self) -> None:
        source = _source(lambda request: httpx.Response(200, text="<table><tbody></tbody></table>"))
        with pytest.raises(ObservationUnavailable):
            await source.fetch_observation(MetalKind.GOLD)

    @pytest.mark.asyncio
    async def test_commodity_missing(self) -> None:
        page = SPOT_PAGE.replace("<td>GOLD</td>", "<td>COPPER</td>")
        source = _source(lambda request: httpx.Response(200, text=page))
        with pytest.raises(ObservationUnavailable):
            await source.fetch_observation(MetalKind.GOLD)
