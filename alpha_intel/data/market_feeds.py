"""
ALPHA INTEL — Auxiliary Market Feeds
Fear & Greed index, longer-horizon price change, and the Hiro transfer feed.
"""
from typing import Any, Dict, List, Optional

import aiohttp

from alpha_intel.config.settings import get_settings
from alpha_intel.data.models import FearGreed
from alpha_intel.utils.errors import SourceError
from alpha_intel.utils.helpers import to_float
from alpha_intel.utils.logger import get_logger

logger = get_logger("market_feeds")

NEUTRAL_FEAR_GREED = FearGreed(value=50, label="Neutral")


class MarketFeedClient:
    """HTTP client for the non-price feeds used by sentiment and whale tracking."""

    def __init__(self):
        self.settings = get_settings().data
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.settings.poll_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def disconnect(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self._session:
            await self.connect()
        async with self._session.get(url, params=params) as resp:
            if resp.status != 200:
                raise SourceError(f"HTTP {resp.status}", source=url)
            return await resp.json(content_type=None)

    async def fetch_fear_greed(self) -> FearGreed:
        """Latest Fear & Greed reading, neutral when unavailable."""
        try:
            data = await self.get_json(self.settings.fear_greed_url, params={"limit": 1})
            entry = (data.get("data") or [{}])[0]
            return FearGreed(
                value=int(entry.get("value") or 50),
                label=entry.get("value_classification") or "Neutral",
            )
        except Exception as e:
            logger.warning("fear_greed_fetch_failed", error=str(e))
            return NEUTRAL_FEAR_GREED

    async def fetch_change_7d(self, coin_id: str = "bitcoin") -> Optional[float]:
        """7-day price change percentage from CoinGecko coin details."""
        try:
            data = await self.get_json(
                f"{self.settings.coingecko_base_url}/coins/{coin_id}",
                params={
                    "localization": "false",
                    "tickers": "false",
                    "community_data": "false",
                    "developer_data": "false",
                },
            )
            return to_float((data.get("market_data") or {}).get("price_change_percentage_7d"))
        except Exception as e:
            logger.warning("change_7d_fetch_failed", coin=coin_id, error=str(e))
            return None

    async def fetch_token_transfers(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Recent token_transfer transactions from Hiro. Raises on failure."""
        data = await self.get_json(
            f"{self.settings.hiro_base_url}/extended/v1/tx",
            params={"limit": limit or self.settings.whale_feed_limit, "type": "token_transfer"},
        )
        results = data.get("results")
        if not isinstance(results, list):
            raise SourceError("Malformed transaction feed", source="hiro")
        return results


# Singleton
_client: Optional[MarketFeedClient] = None


def get_market_feeds() -> MarketFeedClient:
    global _client
    if _client is None:
        _client = MarketFeedClient()
    return _client
