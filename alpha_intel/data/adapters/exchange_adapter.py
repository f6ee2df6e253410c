"""
ALPHA INTEL — KuCoin & Kraken Adapters
Exchange last-trade quotes.
"""
from alpha_intel.data.adapters.base import BasePriceAdapter
from alpha_intel.data.feeds import AssetFeed
from alpha_intel.data.models import PriceSource, SourceType
from alpha_intel.utils.errors import SourceError
from alpha_intel.utils.helpers import epoch_millis, to_float

KUCOIN_OK = "200000"


class KuCoinAdapter(BasePriceAdapter):
    """KuCoin level-1 order book (last price)."""

    def __init__(self):
        super().__init__("kucoin", SourceType.EXCHANGE)
        self.base_url = self.settings.kucoin_base_url

    async def fetch_quote(self, asset: AssetFeed) -> PriceSource:
        data = await self._get_json(
            f"{self.base_url}/market/orderbook/level1",
            params={"symbol": asset.kucoin},
        )
        if data.get("code") != KUCOIN_OK:
            raise SourceError(data.get("msg") or f"KuCoin code {data.get('code')}", source=self.name)

        book = data.get("data") or {}
        return self.quote(
            price=to_float(book.get("price")),
            timestamp=book.get("time") or epoch_millis(),
        )


class KrakenAdapter(BasePriceAdapter):
    """Kraken public ticker (last trade close)."""

    def __init__(self):
        super().__init__("kraken", SourceType.EXCHANGE)
        self.base_url = self.settings.kraken_base_url

    async def fetch_quote(self, asset: AssetFeed) -> PriceSource:
        data = await self._get_json(f"{self.base_url}/Ticker", params={"pair": asset.kraken_pair})
        errors = data.get("error") or []
        if errors:
            raise SourceError(str(errors[0]), source=self.name)

        result = data.get("result") or {}
        pair = next(iter(result), None)
        if pair is None:
            raise SourceError(f"Unknown pair {asset.kraken_pair}", source=self.name)

        close = (result[pair].get("c") or [None])[0]
        price = to_float(close)
        return self.quote(price=price or None, timestamp=epoch_millis())
