"""
ALPHA INTEL — Base Price Adapter Interface
All price source adapters implement this interface. Adapters raise on any
upstream problem; get_price_source() turns that into an error-tagged quote.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import asyncio
import math

import aiohttp

from alpha_intel.config.settings import get_settings
from alpha_intel.data.feeds import AssetFeed
from alpha_intel.data.models import PriceSource, SourceType
from alpha_intel.utils.errors import SourceError
from alpha_intel.utils.logger import get_logger

logger = get_logger("price_adapter")


class BasePriceAdapter(ABC):
    """Abstract base class for all price source adapters."""

    def __init__(self, name: str, source_type: SourceType):
        self.name = name
        self.source_type = source_type
        self.settings = get_settings().data
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.settings.poll_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            logger.debug("adapter_connected", source=self.name)

    async def disconnect(self) -> None:
        """Clean up the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.debug("adapter_disconnected", source=self.name)

    def supports(self, asset: AssetFeed) -> bool:
        """Whether this source has an identifier for the asset."""
        return True

    @abstractmethod
    async def fetch_quote(self, asset: AssetFeed) -> PriceSource:
        """Fetch one quote. May raise on network or payload errors."""

    async def get_price_source(self, asset: AssetFeed) -> PriceSource:
        """Fetch one quote, degrading any failure to an error-carrying PriceSource."""
        try:
            return await self.fetch_quote(asset)
        except asyncio.TimeoutError:
            logger.warning("price_source_timeout", source=self.name, token=asset.symbol)
            return self.failed("Timeout")
        except Exception as e:
            logger.warning("price_source_failed", source=self.name, token=asset.symbol, error=str(e))
            return self.failed(str(e) or type(e).__name__)

    def quote(
        self,
        price: Optional[float],
        timestamp: Optional[int],
        change_24h: Optional[float] = None,
    ) -> PriceSource:
        """Build a successful quote; a missing or non-positive price is a source error."""
        if price is None:
            raise SourceError("No price in response", source=self.name)
        if not math.isfinite(price) or price <= 0:
            raise SourceError("Invalid price", source=self.name)
        return PriceSource(
            source=self.name,
            type=self.source_type,
            price=price,
            change_24h=change_24h,
            timestamp=timestamp,
        )

    def failed(self, error: str) -> PriceSource:
        return PriceSource.failed(self.name, self.source_type, error)

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self._session:
            await self.connect()
        async with self._session.get(url, params=params) as resp:
            if resp.status != 200:
                raise SourceError(f"HTTP {resp.status}", source=self.name)
            return await resp.json(content_type=None)

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        if not self._session:
            await self.connect()
        async with self._session.post(url, json=payload) as resp:
            if resp.status != 200:
                raise SourceError(f"HTTP {resp.status}", source=self.name)
            return await resp.json(content_type=None)
