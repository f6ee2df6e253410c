"""
ALPHA INTEL — Test Configuration & Fixtures
Shared snapshot builders for the rule engines and report composer.
"""
import pytest

from alpha_intel.data.models import (
    AggregatedData, FearGreed, PriceSource, PriceStats, SentimentClass,
    SentimentData, SourceType, TokenPricePair, TokenPrices, WhaleActivity,
)
from alpha_intel.engines.yield_model import calculate_yield


def _token_prices(token, price, spread, change_24h):
    sources = [
        PriceSource(
            source="coingecko", type=SourceType.AGGREGATOR, price=price,
            change_24h=change_24h, timestamp=1_700_000_000_000,
        ),
        PriceSource(source="kraken", type=SourceType.EXCHANGE, price=price, timestamp=1_700_000_000_000),
        PriceSource.failed("kucoin", SourceType.EXCHANGE, "HTTP 503"),
    ]
    stats = None
    if spread is not None:
        stats = PriceStats(
            average=price, median=price, min=price, max=price,
            spread_percent=spread, sources_available=2, sources_total=3,
        )
    return TokenPrices(token=token, timestamp="2024-01-01T00:00:00+00:00", stats=stats, sources=sources)


@pytest.fixture
def make_snapshot():
    """Factory for AggregatedData with neutral defaults; override any input by keyword."""
    def _make(
        score=50,
        btc_change=0.0,
        btc_spread=0.1,
        stx_spread=0.1,
        fear_greed=50,
        large_transactions=0,
        net_flow=0.0,
        yield_data=None,
        btc_price=65000.0,
        stx_price=1.85,
    ):
        return AggregatedData(
            prices=TokenPricePair(
                btc=_token_prices("BTC", btc_price, btc_spread, btc_change),
                stx=_token_prices("STX", stx_price, stx_spread, None),
            ),
            sentiment=SentimentData(
                sentiment=SentimentClass.NEUTRAL,
                score=score,
                confidence=0.7,
                fear_greed_index=fear_greed,
                fear_greed_label="Neutral",
                change_24h=btc_change,
                change_7d=None,
            ),
            yield_data=yield_data or calculate_yield(5.0),
            whales=WhaleActivity(net_flow=net_flow, large_transactions=large_transactions, top_transfers=()),
            fear_greed=FearGreed(value=fear_greed, label="Neutral"),
        )
    return _make


@pytest.fixture
def neutral_snapshot(make_snapshot):
    return make_snapshot()
