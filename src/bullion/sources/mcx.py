"""MCX India spot market price table scraper (gold and silver only).

The spot price page renders rows of commodity / unit / location / price.
Units vary per row, so the unit column is parsed instead of assumed.
"""

from dataclasses import dataclass
from decimal import Decimal

from bs4 import BeautifulSoup

from bullion.exceptions import ObservationUnavailable
from bullion.logging import get_logger
from bullion.models import MetalKind, Observation, PriceUnit
from bullion.sources.base import HttpObservationSource
from bullion.sources.fivepaisa import parse_price_text

logger = get_logger(__name__)

SPOT_PAGE_URL = "https://www.mcxindia.com/market-data/spot-market-price"

COMMODITY_NAMES: dict[MetalKind, tuple[str, ...]] = {
    MetalKind.GOLD: ("GOLD", "GOLD STANDARD", "GOLD 999", "GOLD (999)"),
    MetalKind.SILVER: ("SILVER", "SILVER 999", "SILVER (999)", "SILVER STANDARD"),
}


@dataclass
class SpotRow:
    """One row of the MCX spot price table."""

    commodity: str
    unit: str
    location: str
    price: Decimal | None


def parse_unit(unit: str) -> PriceUnit:
    """Map an MCX unit label ('10 GRAM', '1 KG', 'GM') to a PriceUnit."""
    label = unit.upper()
    if "10 GRAM" in label or "10 GM" in label or "10GM" in label:
        return PriceUnit.TEN_GRAM
    if "KG" in label or "KILOGRAM" in label:
        return PriceUnit.KILOGRAM
    return PriceUnit.GRAM


def parse_spot_table(html: str) -> list[SpotRow]:
    """Read all rows with at least four cells from the page's tables."""
    soup = BeautifulSoup(html, "html.parser")
    rows = []
    for tr in soup.select("table tbody tr"):
        cells = [td.get_text(strip=True) for td in tr.find_all("td")]
        if len(cells) < 4 or not cells[0]:
            continue
        rows.append(
            SpotRow(
                commodity=cells[0],
                unit=cells[1],
                location=cells[2],
                price=parse_price_text(cells[3].replace("Rs.", "")),
            )
        )
    return rows


def find_commodity(rows: list[SpotRow], metal: MetalKind) -> SpotRow | None:
    """First row whose commodity matches one of the metal's names with a price."""
    names = COMMODITY_NAMES.get(metal, ())
    for row in rows:
        commodity = row.commodity.upper()
        if any(name in commodity for name in names) and row.price and row.price > 0:
            return row
    return None


class McxSource(HttpObservationSource):
    """Reads gold and silver spot prices from the MCX spot price page."""

    name = "mcx"

    async def fetch_observation(self, metal: MetalKind) -> Observation:
        if metal not in COMMODITY_NAMES:
            raise ObservationUnavailable(f"{self.name}: {metal.value} is not quoted")

        response = await self._get(SPOT_PAGE_URL, headers={"Accept": "text/html"})
        rows = parse_spot_table(response.text)
        if not rows:
            raise ObservationUnavailable(f"{self.name}: no rows in spot price table")

        row = find_commodity(rows, metal)
        if row is None:
            logger.warning(
                "mcx_commodity_missing",
                metal=metal.value,
                available=[r.commodity for r in rows],
            )
            raise ObservationUnavailable(f"{self.name}: {metal.value} not in spot price table")

        logger.info(
            "mcx_price_extracted",
            metal=metal.value,
            price=str(row.price),
            unit=row.unit,
            location=row.location,
        )
        return Observation(metal=metal, price=row.price, unit=parse_unit(row.unit), source=self.name)
