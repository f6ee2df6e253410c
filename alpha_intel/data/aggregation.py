"""
ALPHA INTEL — Multi-Source Price Aggregation
Polls every configured source concurrently, keeps per-source failures
isolated, and derives cross-source statistics from the survivors.
"""
import asyncio
from typing import List, Optional

from alpha_intel.data.adapters.aggregator_adapter import CoinGeckoAdapter, CoinPaprikaAdapter
from alpha_intel.data.adapters.base import BasePriceAdapter
from alpha_intel.data.adapters.exchange_adapter import KrakenAdapter, KuCoinAdapter
from alpha_intel.data.adapters.oracle_adapter import PythOracleAdapter
from alpha_intel.data.feeds import DEFAULT_FEED_CONFIG, PriceFeedConfig
from alpha_intel.data.models import PriceSource, PriceStats, TokenPrices
from alpha_intel.utils.helpers import median, utc_timestamp
from alpha_intel.utils.logger import get_logger

logger = get_logger("aggregation")

PRICE_DECIMALS = 6
PERCENT_DECIMALS = 4


def build_default_adapters(config: PriceFeedConfig) -> List[BasePriceAdapter]:
    """Oracle first, then REST sources in registration order."""
    return [
        PythOracleAdapter(config.pyth),
        CoinGeckoAdapter(),
        KuCoinAdapter(),
        CoinPaprikaAdapter(),
        KrakenAdapter(),
    ]


def compute_price_stats(prices: List[float], sources_total: int) -> Optional[PriceStats]:
    """Mean/median/min/max/spread over the reported prices, None when there are none."""
    if not prices:
        return None

    avg = sum(prices) / len(prices)
    low = min(prices)
    high = max(prices)
    spread = (high - low) / avg * 100 if avg else 0.0

    return PriceStats(
        average=round(avg, PRICE_DECIMALS),
        median=round(median(prices), PRICE_DECIMALS),
        min=round(low, PRICE_DECIMALS),
        max=round(high, PRICE_DECIMALS),
        spread_percent=round(spread, PERCENT_DECIMALS),
        sources_available=len(prices),
        sources_total=sources_total,
    )


def annotate_sources(sources: List[PriceSource], stats: Optional[PriceStats]) -> List[PriceSource]:
    """Round prices and attach each source's deviation from the cross-source average."""
    annotated = []
    for src in sources:
        if src.price is None:
            annotated.append(src)
            continue
        deviation = None
        if stats and stats.average:
            deviation = round((src.price - stats.average) / stats.average * 100, PERCENT_DECIMALS)
        annotated.append(
            src.model_copy(update={
                "price": round(src.price, PRICE_DECIMALS),
                "deviation_from_avg": deviation,
            })
        )
    return annotated


class PriceAggregator:
    """
    Cross-source price aggregator.
    Each adapter returns a PriceSource that either carries a price or an
    error; the aggregator awaits them all and folds over the results.
    """

    def __init__(
        self,
        config: PriceFeedConfig = DEFAULT_FEED_CONFIG,
        adapters: Optional[List[BasePriceAdapter]] = None,
    ):
        self.config = config
        self._adapters = adapters if adapters is not None else build_default_adapters(config)

    @property
    def adapters(self) -> List[BasePriceAdapter]:
        return list(self._adapters)

    async def initialize(self) -> None:
        for adapter in self._adapters:
            await adapter.connect()
        logger.info("price_aggregator_initialized", adapters=len(self._adapters))

    async def shutdown(self) -> None:
        for adapter in self._adapters:
            await adapter.disconnect()

    async def fetch_token_prices(self, token: str) -> TokenPrices:
        """Aggregate quotes for one asset across every configured source."""
        asset = self.config.asset(token)
        if asset is None:
            logger.warning("unsupported_token", token=token)
            return TokenPrices(token=token, timestamp=utc_timestamp(), stats=None, sources=())

        adapters = [a for a in self._adapters if a.supports(asset)]
        sources: List[PriceSource] = list(
            await asyncio.gather(*(a.get_price_source(asset) for a in adapters))
        )

        prices = [s.price for s in sources if s.price is not None]
        stats = compute_price_stats(prices, sources_total=len(sources))
        if stats is None:
            logger.warning("no_valid_prices", token=asset.symbol, sources=len(sources))
        elif stats.spread_percent > 0.5:
            logger.info("price_spread_wide", token=asset.symbol, spread_percent=stats.spread_percent)

        return TokenPrices(
            token=asset.symbol,
            timestamp=utc_timestamp(),
            stats=stats,
            sources=annotate_sources(sources, stats),
        )


# Singleton
_aggregator: Optional[PriceAggregator] = None


def get_price_aggregator() -> PriceAggregator:
    global _aggregator
    if _aggregator is None:
        _aggregator = PriceAggregator()
    return _aggregator
