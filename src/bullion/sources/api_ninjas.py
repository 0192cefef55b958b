"""API Ninjas commodity price client.

Prices come back in USD per troy ounce. They are converted to INR with the
configured exchange rate; the troy ounce to gram conversion happens later,
with every other unit conversion, before rates are derived.

The API key and exchange rate can be changed at runtime through the `api`
configuration document in the record store. Stored values win over
SourceSettings and are re-read on every fetch.
"""

from decimal import Decimal, InvalidOperation

import httpx

from bullion.config import SourceSettings
from bullion.exceptions import ObservationUnavailable
from bullion.logging import get_logger
from bullion.models import MetalKind, Observation, PriceUnit
from bullion.sources.base import HttpObservationSource
from bullion.store.base import RecordStore

logger = get_logger(__name__)

COMMODITY_PRICE_URL = "https://api.api-ninjas.com/v1/commodityprice"

API_CONFIG_KEY = "api"


class ApiNinjasSource(HttpObservationSource):
    """Fetches commodity prices from the API Ninjas JSON endpoint.

    Args:
        settings: Fallback key, exchange rate, and HTTP client parameters.
        client: Optional pre-built httpx client.
        config_store: Store holding the runtime `api` configuration document.
    """

    name = "api_ninjas"

    def __init__(
        self,
        settings: SourceSettings,
        client: httpx.AsyncClient | None = None,
        config_store: RecordStore | None = None,
    ) -> None:
        super().__init__(settings, client)
        self._config_store = config_store

    async def _credentials(self) -> tuple[str, Decimal]:
        """Current (api_key, usd_to_inr_rate), stored values first."""
        stored = {}
        if self._config_store is not None:
            stored = await self._config_store.get_config(API_CONFIG_KEY) or {}

        api_key = stored.get("apiNinjasKey") or self._settings.api_ninjas_key.get_secret_value()
        rate = stored.get("usdToInrRate")
        usd_to_inr = Decimal(str(rate)) if rate is not None else self._settings.usd_to_inr_rate
        return api_key, usd_to_inr

    async def fetch_observation(self, metal: MetalKind) -> Observation:
        api_key, usd_to_inr = await self._credentials()
        if not api_key:
            raise ObservationUnavailable(f"{self.name}: API key not configured")

        response = await self._get(
            COMMODITY_PRICE_URL,
            params={"name": metal.value},
            headers={"X-Api-Key": api_key},
        )
        try:
            usd_per_ounce = Decimal(str(response.json()["price"]))
        except (ValueError, KeyError, TypeError, InvalidOperation) as e:
            raise ObservationUnavailable(f"{self.name}: malformed response for {metal.value}") from e

        inr_per_ounce = usd_per_ounce * usd_to_inr
        logger.info(
            "api_ninjas_price_received",
            metal=metal.value,
            usd_per_ounce=str(usd_per_ounce),
            usd_to_inr=str(usd_to_inr),
            inr_per_ounce=str(inr_per_ounce),
        )
        return Observation(
            metal=metal,
            price=inr_per_ounce,
            unit=PriceUnit.TROY_OUNCE,
            source=self.name,
        )
