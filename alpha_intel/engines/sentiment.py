"""
ALPHA INTEL — Sentiment Estimator
Blends price momentum with the Fear & Greed index into a five-class
sentiment and a 0-100 score.
"""
import asyncio
import math
from typing import List, Optional, Tuple

from alpha_intel.data.market_feeds import MarketFeedClient, get_market_feeds
from alpha_intel.data.models import FearGreed, SentimentClass, SentimentData, TokenPrices
from alpha_intel.utils.logger import get_logger

logger = get_logger("sentiment")

SENTIMENT_CONFIDENCE = 0.7

# (upper bound on momentum, class, score); anything above the last bound is very bullish
MOMENTUM_BUCKETS: List[Tuple[float, SentimentClass, int]] = [
    (-10.0, SentimentClass.VERY_BEARISH, 15),
    (-3.0, SentimentClass.BEARISH, 35),
    (3.0, SentimentClass.NEUTRAL, 50),
    (10.0, SentimentClass.BULLISH, 65),
]
TOP_BUCKET: Tuple[SentimentClass, int] = (SentimentClass.VERY_BULLISH, 85)


def momentum_of(change_24h: Optional[float], change_7d: Optional[float]) -> float:
    return (change_24h or 0.0) + (change_7d or 0.0) / 2


def classify_momentum(momentum: float) -> Tuple[SentimentClass, int]:
    for bound, sentiment, score in MOMENTUM_BUCKETS:
        if momentum < bound:
            return sentiment, score
    return TOP_BUCKET


def compute_sentiment(
    change_24h: Optional[float],
    change_7d: Optional[float],
    fear_greed: FearGreed,
) -> SentimentData:
    """Pure sentiment computation; equal-weight blend of momentum bucket and Fear & Greed."""
    sentiment, bucket_score = classify_momentum(momentum_of(change_24h, change_7d))
    # half-up rounding
    score = math.floor((bucket_score + fear_greed.value) / 2 + 0.5)

    return SentimentData(
        sentiment=sentiment,
        score=score,
        confidence=SENTIMENT_CONFIDENCE,
        fear_greed_index=fear_greed.value,
        fear_greed_label=fear_greed.label,
        change_24h=change_24h,
        change_7d=change_7d,
    )


class SentimentEstimator:
    """Fetches the auxiliary inputs and applies compute_sentiment."""

    def __init__(self, feeds: Optional[MarketFeedClient] = None):
        self.feeds = feeds or get_market_feeds()

    async def estimate(self, btc_prices: TokenPrices, stx_prices: TokenPrices) -> SentimentData:
        change_7d, fear_greed = await asyncio.gather(
            self.feeds.fetch_change_7d("bitcoin"),
            self.feeds.fetch_fear_greed(),
        )
        result = compute_sentiment(btc_prices.change_24h(), change_7d, fear_greed)
        logger.info(
            "sentiment_estimated",
            sentiment=result.sentiment.value,
            score=result.score,
            stx_sources=len(stx_prices.sources),
        )
        return result
