"""Abstract observation source interface.

A source produces one raw price per metal. Sync and reconciliation code
depends only on this interface; the scraping details of each website stay
in the concrete implementations, which are interchangeable.
"""

from abc import ABC, abstractmethod

import httpx

from bullion.config import SourceSettings
from bullion.exceptions import ObservationUnavailable
from bullion.logging import get_logger
from bullion.models import MetalKind, Observation

logger = get_logger(__name__)


class ObservationSource(ABC):
    """Abstract base class for price observation sources."""

    name: str = "source"

    @abstractmethod
    async def fetch_observation(self, metal: MetalKind) -> Observation:
        """Fetch the current price of a metal.

        Raises:
            ObservationUnavailable: If the source cannot produce a price.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...


class HttpObservationSource(ObservationSource):
    """Base for sources that fetch over HTTP with a shared httpx client.

    Args:
        settings: Timeout and user agent configuration.
        client: Optional pre-built client (tests pass one with a MockTransport).
    """

    def __init__(
        self,
        settings: SourceSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.timeout_seconds,
            follow_redirects=True,
            headers={
                "User-Agent": settings.user_agent,
                "Accept-Language": "en-US,en;q=0.9",
            },
        )

    async def _get(self, url: str, **kwargs) -> httpx.Response:  # type: ignore[no-untyped-def]
        try:
            response = await self._client.get(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("source_request_failed", source=self.name, url=url, error=str(e))
            raise ObservationUnavailable(f"{self.name}: request to {url} failed: {e}") from e
        logger.debug("source_response", source=self.name, url=url, size=len(response.content))
        return response

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
