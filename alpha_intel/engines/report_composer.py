"""
ALPHA INTEL — Alpha Report Composer
Runs the data collectors in dependency order, builds the immutable snapshot,
and merges signals, risk and the synthesized summary into the paid reports.
"""
import asyncio
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from alpha_intel.config.settings import get_settings
from alpha_intel.data.aggregation import PriceAggregator, get_price_aggregator
from alpha_intel.data.market_feeds import MarketFeedClient, get_market_feeds
from alpha_intel.data.models import (
    AggregatedData, FearGreed, MarketSnapshot, SentimentData, TokenPricePair,
    TokenPrices, WhaleActivity, YieldData,
)
from alpha_intel.engines.risk_assessor import RiskAssessment, assess_risk
from alpha_intel.engines.sentiment import SentimentEstimator
from alpha_intel.engines.signal_detector import Signal, SignalDetector
from alpha_intel.engines.yield_model import calculate_yield
from alpha_intel.smart_money.whale_tracker import NO_ACTIVITY, WhaleTracker
from alpha_intel.synthesis.summary import SummaryGenerator, get_summary_generator
from alpha_intel.utils.helpers import utc_timestamp
from alpha_intel.utils.logger import get_logger

logger = get_logger("report_composer")

QUICK_SIGNAL_LIMIT = 3


class DataSources(BaseModel):
    model_config = ConfigDict(frozen=True)

    prices: TokenPricePair
    sentiment: SentimentData
    whale_activity: WhaleActivity


class AlphaReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    payment_verified: bool
    caller: Optional[str] = None
    market_snapshot: MarketSnapshot
    signals: List[Signal]
    alpha_summary: str
    risk_assessment: RiskAssessment
    yield_opportunity: Optional[YieldData] = None
    data_sources: DataSources


class QuickSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    btc: str
    stx: str
    sentiment: str
    fear_greed: str


class QuickAlphaReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    payment_verified: bool
    caller: Optional[str] = None
    quick_snapshot: QuickSnapshot
    signals: List[Signal]
    risk: str
    action: str


def build_market_snapshot(data: AggregatedData) -> MarketSnapshot:
    btc, stx = data.prices.btc, data.prices.stx
    return MarketSnapshot(
        btc_price=btc.average or 0.0,
        stx_price=stx.average or 0.0,
        btc_change_24h=btc.change_24h(),
        stx_change_24h=stx.change_24h(),
        price_spread_btc=f"{btc.spread_percent:.2f}%",
        price_spread_stx=f"{stx.spread_percent:.2f}%",
        sentiment=data.sentiment.sentiment,
        fear_greed=data.sentiment.fear_greed_index,
    )


def build_quick_snapshot(data: AggregatedData) -> QuickSnapshot:
    btc, stx = data.prices.btc, data.prices.stx
    btc_avg = f"{btc.average:.0f}" if btc.average is not None else "N/A"
    stx_avg = f"{stx.average:.4f}" if stx.average is not None else "N/A"
    change = btc.change_24h()
    return QuickSnapshot(
        btc=f"${btc_avg} ({change:.1f}%)" if change is not None else f"${btc_avg} (0%)",
        stx=f"${stx_avg}",
        sentiment=data.sentiment.sentiment.value,
        fear_greed=f"{data.fear_greed.value} ({data.fear_greed.label})",
    )


class AlphaReportComposer:
    """Orchestrates data collection and analysis for one paid request."""

    def __init__(
        self,
        aggregator: Optional[PriceAggregator] = None,
        feeds: Optional[MarketFeedClient] = None,
        summary: Optional[SummaryGenerator] = None,
        base_apy: Optional[float] = None,
    ):
        self.aggregator = aggregator or get_price_aggregator()
        self.feeds = feeds or get_market_feeds()
        self.summary = summary or get_summary_generator()
        self.sentiment = SentimentEstimator(self.feeds)
        self.whales = WhaleTracker(self.feeds)
        self.detector = SignalDetector()
        self.base_apy = base_apy if base_apy is not None else get_settings().base_apy

    async def initialize(self) -> None:
        await self.aggregator.initialize()
        await self.feeds.connect()

    async def shutdown(self) -> None:
        await self.aggregator.shutdown()
        await self.feeds.disconnect()

    async def _assemble(
        self, btc: TokenPrices, stx: TokenPrices, whales: WhaleActivity, fear_greed: FearGreed
    ) -> AggregatedData:
        sentiment = await self.sentiment.estimate(btc, stx)
        return AggregatedData(
            prices=TokenPricePair(btc=btc, stx=stx),
            sentiment=sentiment,
            yield_data=calculate_yield(self.base_apy),
            whales=whales,
            fear_greed=fear_greed,
        )

    async def collect(self) -> AggregatedData:
        """Full snapshot: prices, whales and Fear & Greed in parallel, then sentiment and yield."""
        btc, stx, whales, fear_greed = await asyncio.gather(
            self.aggregator.fetch_token_prices("BTC"),
            self.aggregator.fetch_token_prices("STX"),
            self.whales.fetch_activity(),
            self.feeds.fetch_fear_greed(),
        )
        return await self._assemble(btc, stx, whales, fear_greed)

    async def collect_quick(self) -> AggregatedData:
        """Snapshot without the whale feed."""
        btc, stx, fear_greed = await asyncio.gather(
            self.aggregator.fetch_token_prices("BTC"),
            self.aggregator.fetch_token_prices("STX"),
            self.feeds.fetch_fear_greed(),
        )
        return await self._assemble(btc, stx, NO_ACTIVITY, fear_greed)

    async def full_report(self, caller: Optional[str]) -> AlphaReport:
        data = await self.collect()
        signals = self.detector.detect(data)
        risk = assess_risk(data)
        alpha_summary = await self.summary.summarize(data, signals, risk)

        logger.info(
            "alpha_report_built",
            signals=[s.type.value for s in signals],
            risk=risk.overall,
            caller=caller,
        )
        return AlphaReport(
            timestamp=utc_timestamp(),
            payment_verified=True,
            caller=caller,
            market_snapshot=build_market_snapshot(data),
            signals=signals,
            alpha_summary=alpha_summary,
            risk_assessment=risk,
            yield_opportunity=data.yield_data,
            data_sources=DataSources(
                prices=data.prices,
                sentiment=data.sentiment,
                whale_activity=data.whales,
            ),
        )

    async def quick_report(self, caller: Optional[str]) -> QuickAlphaReport:
        data = await self.collect_quick()
        signals = self.detector.detect(data)
        risk = assess_risk(data)

        logger.info("quick_report_built", signals=len(signals), risk=risk.overall, caller=caller)
        return QuickAlphaReport(
            timestamp=utc_timestamp(),
            payment_verified=True,
            caller=caller,
            quick_snapshot=build_quick_snapshot(data),
            signals=signals[:QUICK_SIGNAL_LIMIT],
            risk=risk.overall,
            action=signals[0].action.value if signals else "hold",
        )


# Singleton
_composer: Optional[AlphaReportComposer] = None


def get_report_composer() -> AlphaReportComposer:
    global _composer
    if _composer is None:
        _composer = AlphaReportComposer()
    return _composer
