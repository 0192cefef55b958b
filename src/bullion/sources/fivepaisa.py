"""5paisa commodity pages scraper.

Gold is quoted per 10 grams in `.gold__value strong`; silver (per gram) and
platinum (per 10 grams) use `.gold-price-page__value`.
"""

import re
from decimal import Decimal, InvalidOperation

from bs4 import BeautifulSoup

from bullion.exceptions import ObservationUnavailable
from bullion.logging import get_logger
from bullion.models import MetalKind, Observation, PriceUnit
from bullion.sources.base import HttpObservationSource

logger = get_logger(__name__)

PAGE_URLS: dict[MetalKind, str] = {
    MetalKind.GOLD: "https://www.5paisa.com/commodity-trading/gold-rate-today",
    MetalKind.SILVER: "https://www.5paisa.com/commodity-trading/silver-rate-today",
    MetalKind.PLATINUM: "https://www.5paisa.com/commodity-trading/platinum",
}

_SELECTORS: dict[MetalKind, str] = {
    MetalKind.GOLD: ".gold__value strong",
    MetalKind.SILVER: ".gold-price-page__value",
    MetalKind.PLATINUM: ".gold-price-page__value",
}

_UNITS: dict[MetalKind, PriceUnit] = {
    MetalKind.GOLD: PriceUnit.TEN_GRAM,
    MetalKind.SILVER: PriceUnit.GRAM,
    MetalKind.PLATINUM: PriceUnit.TEN_GRAM,
}

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def parse_price_text(text: str) -> Decimal | None:
    """Extract the first number from text like '₹1,36,200.50 /10g'."""
    cleaned = re.sub(r"[₹,\s]", "", text)
    match = _NUMBER_RE.search(cleaned)
    if match is None:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def extract_price(html: str, metal: MetalKind) -> Decimal | None:
    """Return the quoted price from a 5paisa page, or None if not found."""
    soup = BeautifulSoup(html, "html.parser")
    element = soup.select_one(_SELECTORS[metal])
    if element is None:
        return None
    return parse_price_text(element.get_text(strip=True))


class FivePaisaSource(HttpObservationSource):
    """Scrapes one 5paisa page per metal."""

    name = "fivepaisa"

    async def fetch_observation(self, metal: MetalKind) -> Observation:
        response = await self._get(
            PAGE_URLS[metal],
            headers={"Accept": "text/html,application/xhtml+xml"},
        )
        price = extract_price(response.text, metal)
        if price is None:
            raise ObservationUnavailable(f"{self.name}: price element not found for {metal.value}")

        logger.info("fivepaisa_price_extracted", metal=metal.value, price=str(price))
        return Observation(metal=metal, price=price, unit=_UNITS[metal], source=self.name)
