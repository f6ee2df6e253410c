"""
ALPHA INTEL — Integration Tests for price aggregation, adapters and feeds
All upstream I/O is faked; no network access.
"""
import asyncio
import json

import aiohttp
import pytest
from unittest.mock import AsyncMock, patch

from alpha_intel.data.adapters.aggregator_adapter import CoinGeckoAdapter, CoinPaprikaAdapter
from alpha_intel.data.adapters.base import BasePriceAdapter
from alpha_intel.data.adapters.exchange_adapter import KrakenAdapter, KuCoinAdapter
from alpha_intel.data.adapters.oracle_adapter import PythOracleAdapter
from alpha_intel.data.aggregation import PriceAggregator
from alpha_intel.data.feeds import DEFAULT_FEED_CONFIG
from alpha_intel.data.market_feeds import MarketFeedClient
from alpha_intel.data.models import FearGreed, SentimentClass, SourceType
from alpha_intel.data.oracle import PRICE_MARKER
from alpha_intel.engines.sentiment import SentimentEstimator
from alpha_intel.smart_money.whale_tracker import WhaleTracker
from alpha_intel.utils.errors import SourceError

BTC = DEFAULT_FEED_CONFIG.asset("BTC")


class FakeAdapter(BasePriceAdapter):
    """Adapter returning a canned price, raising a canned error, or stalling."""

    def __init__(self, name, price=None, exc=None, delay=0.0, change_24h=None,
                 source_type=SourceType.EXCHANGE):
        super().__init__(name, source_type)
        self.price = price
        self.exc = exc
        self.delay = delay
        self.change_24h = change_24h
        self.calls = 0

    async def fetch_quote(self, asset):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.quote(price=self.price, timestamp=1_700_000_000_000, change_24h=self.change_24h)


class SlowOracle(PythOracleAdapter):
    def __init__(self, delay, price=97000.0, timeout_seconds=0.05):
        super().__init__(DEFAULT_FEED_CONFIG.pyth, timeout_seconds=timeout_seconds)
        self.delay = delay
        self.price = price

    async def fetch_quote(self, asset):
        await asyncio.sleep(self.delay)
        return self.quote(price=self.price, timestamp=1)


# ─── Aggregator ─────────────────────────────────────────────────

class TestPriceAggregator:
    @pytest.mark.asyncio
    async def test_unsupported_token_makes_no_calls(self):
        adapters = [FakeAdapter("a", price=1.0), FakeAdapter("b", price=2.0)]
        aggregator = PriceAggregator(adapters=adapters)
        result = await aggregator.fetch_token_prices("DOGE")

        assert result.stats is None
        assert result.sources == ()
        assert all(a.calls == 0 for a in adapters)

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        adapters = [
            FakeAdapter("coingecko", price=100.0, change_24h=-1.2, source_type=SourceType.AGGREGATOR),
            FakeAdapter("kucoin", exc=SourceError("HTTP 503", source="kucoin")),
            FakeAdapter("coinpaprika", exc=json.JSONDecodeError("Expecting value", "<html>", 0)),
            FakeAdapter("kraken", price=102.0),
            FakeAdapter("extra", exc=aiohttp.ClientConnectionError("connection reset")),
            FakeAdapter("slow", exc=asyncio.TimeoutError()),
        ]
        result = await PriceAggregator(adapters=adapters).fetch_token_prices("BTC")

        assert [s.source for s in result.sources] == ["coingecko", "kucoin", "coinpaprika", "kraken", "extra", "slow"]
        assert result.stats.sources_available == 2
        assert result.stats.sources_total == 6
        assert result.stats.average == 101.0
        assert result.stats.median == 101.0
        assert result.sources[1].error == "HTTP 503"
        assert result.sources[2].price is None and result.sources[2].error
        assert result.sources[4].error == "connection reset"
        assert result.sources[5].error == "Timeout"
        assert result.sources[5].type == SourceType.EXCHANGE
        assert result.change_24h() == -1.2

    @pytest.mark.asyncio
    async def test_all_sources_failing(self):
        adapters = [FakeAdapter("a", exc=SourceError("down")), FakeAdapter("b", price=None)]
        result = await PriceAggregator(adapters=adapters).fetch_token_prices("STX")

        assert result.token == "STX"
        assert result.stats is None
        assert [s.error for s in result.sources] == ["down", "No price in response"]

    @pytest.mark.asyncio
    async def test_oracle_timeout_keeps_other_sources(self):
        oracle = SlowOracle(delay=1.0)
        adapters = [oracle, FakeAdapter("coingecko", price=64000.0), FakeAdapter("kraken", price=64064.0)]
        result = await PriceAggregator(adapters=adapters).fetch_token_prices("BTC")
        await oracle.disconnect()

        assert result.sources[0].source == "pyth"
        assert result.sources[0].error == "Timeout"
        assert result.sources[0].type == SourceType.ORACLE
        assert result.stats.sources_available == 2
        assert result.stats.spread_percent == pytest.approx(0.1, abs=1e-3)

    @pytest.mark.asyncio
    async def test_shutdown_cancels_abandoned_oracle_fetch(self):
        oracle = SlowOracle(delay=5.0)
        aggregator = PriceAggregator(adapters=[oracle, FakeAdapter("coingecko", price=64000.0)])
        await aggregator.fetch_token_prices("BTC")

        abandoned = list(oracle._abandoned)
        assert len(abandoned) == 1
        await aggregator.shutdown()

        assert oracle._abandoned == set()
        assert abandoned[0].cancelled()

    @pytest.mark.asyncio
    async def test_non_finite_quote_is_isolated(self):
        kraken = KrakenAdapter()
        kucoin = KuCoinAdapter()
        kraken_payload = {"error": [], "result": {"XXBTZUSD": {"c": ["NaN", "0.01"]}}}
        kucoin_payload = {"code": "200000", "data": {"price": "97000", "time": 1700000000000}}
        adapters = [FakeAdapter("coingecko", price=97100.0, source_type=SourceType.AGGREGATOR), kucoin, kraken]

        with patch.object(kraken, "_get_json", AsyncMock(return_value=kraken_payload)), \
                patch.object(kucoin, "_get_json", AsyncMock(return_value=kucoin_payload)):
            result = await PriceAggregator(adapters=adapters).fetch_token_prices("BTC")

        assert result.source("kraken").price is None
        assert result.source("kraken").error == "No price in response"
        assert result.stats.sources_available == 2
        assert result.stats.average == 97050.0
        assert result.stats.spread_percent >= 0
        json.dumps(result.model_dump(mode="json"), allow_nan=False)

    @pytest.mark.asyncio
    async def test_negative_quote_is_isolated(self):
        kucoin = KuCoinAdapter()
        payload = {"code": "200000", "data": {"price": "-97000", "time": 1700000000000}}
        adapters = [FakeAdapter("coingecko", price=10.0, source_type=SourceType.AGGREGATOR), kucoin]

        with patch.object(kucoin, "_get_json", AsyncMock(return_value=payload)):
            result = await PriceAggregator(adapters=adapters).fetch_token_prices("STX")

        assert result.source("kucoin").error == "Invalid price"
        assert result.stats.sources_available == 1
        assert result.stats.spread_percent == 0.0
        assert result.source("coingecko").deviation_from_avg == 0.0

    @pytest.mark.asyncio
    async def test_slow_oracle_stays_first(self):
        oracle = SlowOracle(delay=0.02, timeout_seconds=1.0)
        adapters = [oracle, FakeAdapter("coingecko", price=97000.0)]
        result = await PriceAggregator(adapters=adapters).fetch_token_prices("BTC")

        assert [s.source for s in result.sources] == ["pyth", "coingecko"]
        assert result.sources[0].price == 97000.0
        assert result.sources[0].deviation_from_avg == 0.0

    @pytest.mark.asyncio
    async def test_oracle_skipped_without_feed(self):
        from alpha_intel.data.feeds import AssetFeed, PriceFeedConfig
        config = PriceFeedConfig(
            pyth=DEFAULT_FEED_CONFIG.pyth,
            assets=(AssetFeed(symbol="ETH", coingecko="ethereum", kucoin="ETH-USDT",
                              coinpaprika="eth-ethereum", kraken_pair="ETHUSD"),),
        )
        oracle = SlowOracle(delay=0.0)
        result = await PriceAggregator(config, adapters=[oracle, FakeAdapter("kraken", price=3000.0)]) \
            .fetch_token_prices("eth")

        assert [s.source for s in result.sources] == ["kraken"]
        assert result.stats.sources_total == 1


# ─── Adapters ───────────────────────────────────────────────────

class TestAdapters:
    @pytest.mark.asyncio
    async def test_coingecko_parses_price_and_change(self):
        adapter = CoinGeckoAdapter()
        payload = {"bitcoin": {"usd": 97123.5, "usd_24h_change": -2.4, "last_updated_at": 1700000000}}
        with patch.object(adapter, "_get_json", AsyncMock(return_value=payload)):
            src = await adapter.get_price_source(BTC)
        assert src.price == 97123.5
        assert src.change_24h == -2.4
        assert src.timestamp == 1_700_000_000_000
        assert src.type == SourceType.AGGREGATOR

    @pytest.mark.asyncio
    async def test_coingecko_missing_coin_is_error(self):
        adapter = CoinGeckoAdapter()
        with patch.object(adapter, "_get_json", AsyncMock(return_value={})):
            src = await adapter.get_price_source(BTC)
        assert src.price is None
        assert src.error == "No price in response"

    @pytest.mark.asyncio
    async def test_kucoin_error_code(self):
        adapter = KuCoinAdapter()
        payload = {"code": "400100", "msg": "This pair is not provided at present"}
        with patch.object(adapter, "_get_json", AsyncMock(return_value=payload)):
            src = await adapter.get_price_source(BTC)
        assert src.error == "This pair is not provided at present"

    @pytest.mark.asyncio
    async def test_kucoin_price(self):
        adapter = KuCoinAdapter()
        payload = {"code": "200000", "data": {"price": "97010.1", "time": 1700000000123}}
        with patch.object(adapter, "_get_json", AsyncMock(return_value=payload)):
            src = await adapter.get_price_source(BTC)
        assert src.price == 97010.1
        assert src.timestamp == 1700000000123

    @pytest.mark.asyncio
    async def test_kraken_error_list(self):
        adapter = KrakenAdapter()
        payload = {"error": ["EQuery:Unknown asset pair"], "result": {}}
        with patch.object(adapter, "_get_json", AsyncMock(return_value=payload)):
            src = await adapter.get_price_source(BTC)
        assert src.error == "EQuery:Unknown asset pair"

    @pytest.mark.asyncio
    async def test_kraken_last_close(self):
        adapter = KrakenAdapter()
        payload = {"error": [], "result": {"XXBTZUSD": {"c": ["96990.00000", "0.01"]}}}
        with patch.object(adapter, "_get_json", AsyncMock(return_value=payload)):
            src = await adapter.get_price_source(BTC)
        assert src.price == 96990.0

    @pytest.mark.asyncio
    async def test_coinpaprika(self):
        adapter = CoinPaprikaAdapter()
        payload = {
            "last_updated": "2024-01-01T00:00:00Z",
            "quotes": {"USD": {"price": 97001.2, "percent_change_24h": 1.1}},
        }
        with patch.object(adapter, "_get_json", AsyncMock(return_value=payload)):
            src = await adapter.get_price_source(BTC)
        assert src.price == 97001.2
        assert src.change_24h == 1.1
        assert src.timestamp == 1_704_067_200_000

    @pytest.mark.asyncio
    async def test_http_error_degrades(self):
        adapter = CoinPaprikaAdapter()
        with patch.object(adapter, "_get_json", AsyncMock(side_effect=SourceError("HTTP 429"))):
            src = await adapter.get_price_source(BTC)
        assert src.error == "HTTP 429"

    @pytest.mark.asyncio
    async def test_pyth_decodes_contract_result(self):
        adapter = PythOracleAdapter(DEFAULT_FEED_CONFIG.pyth)
        result = f"0x0c00{PRICE_MARKER}01{9_700_000_000_000:032x}00"
        post = AsyncMock(return_value={"okay": True, "result": result})
        with patch.object(adapter, "_post_json", post):
            src = await adapter.get_price_source(BTC)

        assert src.price == pytest.approx(97000.0)
        payload = post.call_args.args[1]
        assert payload["arguments"] == ["0x0200000020" + BTC.pyth_feed[2:]]
        assert post.call_args.args[0].endswith("/pyth-storage-v4/get-price")

    @pytest.mark.asyncio
    async def test_pyth_missing_marker(self):
        adapter = PythOracleAdapter(DEFAULT_FEED_CONFIG.pyth)
        with patch.object(adapter, "_post_json", AsyncMock(return_value={"okay": True, "result": "0x0900"})):
            src = await adapter.get_price_source(BTC)
        assert src.price is None
        assert "marker" in src.error

    @pytest.mark.asyncio
    async def test_pyth_not_okay(self):
        adapter = PythOracleAdapter(DEFAULT_FEED_CONFIG.pyth)
        with patch.object(adapter, "_post_json", AsyncMock(return_value={"okay": False, "cause": "x"})):
            src = await adapter.get_price_source(BTC)
        assert src.error == "No Pyth feed"


# ─── Sentiment & Whale feeds ────────────────────────────────────

class TestAuxiliaryFeeds:
    @pytest.mark.asyncio
    async def test_sentiment_estimator_uses_coingecko_change(self):
        adapters = [FakeAdapter("coingecko", price=97000.0, change_24h=4.0, source_type=SourceType.AGGREGATOR)]
        aggregator = PriceAggregator(adapters=adapters)
        btc = await aggregator.fetch_token_prices("BTC")
        stx = await aggregator.fetch_token_prices("STX")

        feeds = MarketFeedClient()
        feeds.fetch_change_7d = AsyncMock(return_value=8.0)
        feeds.fetch_fear_greed = AsyncMock(return_value=FearGreed(value=72, label="Greed"))

        result = await SentimentEstimator(feeds).estimate(btc, stx)
        assert result.sentiment == SentimentClass.BULLISH  # 4 + 8/2 = 8
        assert result.score == 69  # (65 + 72) / 2 = 68.5
        assert result.change_24h == 4.0
        assert result.change_7d == 8.0

    @pytest.mark.asyncio
    async def test_fear_greed_defaults_on_failure(self):
        feeds = MarketFeedClient()
        with patch.object(feeds, "get_json", AsyncMock(side_effect=aiohttp.ClientError("dns"))):
            fg = await feeds.fetch_fear_greed()
            change = await feeds.fetch_change_7d()
        assert fg == FearGreed(value=50, label="Neutral")
        assert change is None

    @pytest.mark.asyncio
    async def test_fear_greed_parses_reading(self):
        feeds = MarketFeedClient()
        payload = {"data": [{"value": "23", "value_classification": "Extreme Fear"}]}
        with patch.object(feeds, "get_json", AsyncMock(return_value=payload)):
            fg = await feeds.fetch_fear_greed()
        assert fg.value == 23
        assert fg.label == "Extreme Fear"

    @pytest.mark.asyncio
    async def test_whale_tracker_zero_on_failure(self):
        feeds = MarketFeedClient()
        feeds.fetch_token_transfers = AsyncMock(side_effect=SourceError("HTTP 500"))
        activity = await WhaleTracker(feeds).fetch_activity()
        assert activity.net_flow == 0
        assert activity.large_transactions == 0
        assert activity.top_transfers == ()

    @pytest.mark.asyncio
    async def test_whale_tracker_zero_on_malformed_amount(self):
        feeds = MarketFeedClient()
        feeds.fetch_token_transfers = AsyncMock(return_value=[
            {"tx_id": "0x1", "token_transfer": {"amount": "lots"}},
        ])
        activity = await WhaleTracker(feeds).fetch_activity()
        assert activity.large_transactions == 0

    @pytest.mark.asyncio
    async def test_transfer_feed_rejects_malformed_payload(self):
        feeds = MarketFeedClient()
        with patch.object(feeds, "get_json", AsyncMock(return_value={"results": None})):
            with pytest.raises(SourceError):
                await feeds.fetch_token_transfers()
