"""
ALPHA INTEL — CoinGecko & CoinPaprika Adapters
Aggregator sources; CoinGecko also supplies the reference 24h change.
"""
from datetime import datetime

from alpha_intel.data.adapters.base import BasePriceAdapter
from alpha_intel.data.feeds import AssetFeed
from alpha_intel.data.models import PriceSource, SourceType
from alpha_intel.utils.errors import SourceError
from alpha_intel.utils.helpers import epoch_millis, to_float


class CoinGeckoAdapter(BasePriceAdapter):
    """CoinGecko simple/price with 24h change and last-update time."""

    def __init__(self):
        super().__init__("coingecko", SourceType.AGGREGATOR)
        self.base_url = self.settings.coingecko_base_url

    async def fetch_quote(self, asset: AssetFeed) -> PriceSource:
        params = {
            "ids": asset.coingecko,
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_last_updated_at": "true",
        }
        data = await self._get_json(f"{self.base_url}/simple/price", params=params)

        coin = data.get(asset.coingecko) or {}
        updated = coin.get("last_updated_at")
        return self.quote(
            price=to_float(coin.get("usd")),
            change_24h=to_float(coin.get("usd_24h_change")),
            timestamp=int(updated) * 1000 if updated else None,
        )


class CoinPaprikaAdapter(BasePriceAdapter):
    """CoinPaprika ticker endpoint."""

    def __init__(self):
        super().__init__("coinpaprika", SourceType.AGGREGATOR)
        self.base_url = self.settings.coinpaprika_base_url

    async def fetch_quote(self, asset: AssetFeed) -> PriceSource:
        data = await self._get_json(f"{self.base_url}/tickers/{asset.coinpaprika}")
        if data.get("error"):
            raise SourceError(str(data["error"]), source=self.name)

        usd = (data.get("quotes") or {}).get("USD") or {}
        return self.quote(
            price=to_float(usd.get("price")),
            change_24h=to_float(usd.get("percent_change_24h")),
            timestamp=_parse_iso_millis(data.get("last_updated")),
        )


def _parse_iso_millis(value) -> int:
    if not value:
        return epoch_millis()
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return int(parsed.timestamp() * 1000)
