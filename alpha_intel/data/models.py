"""
ALPHA INTEL — Data Models for Market Data
Canonical, immutable snapshots built once per request.
"""
from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional, List, Literal, Tuple
from enum import Enum
import re


class SourceType(str, Enum):
    ORACLE = "on-chain oracle"
    AGGREGATOR = "aggregator"
    EXCHANGE = "exchange"


class SentimentClass(str, Enum):
    VERY_BEARISH = "very_bearish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    BULLISH = "bullish"
    VERY_BULLISH = "very_bullish"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class PriceSource(FrozenModel):
    """Single quote from one upstream. Carries either a price or an error, never both."""
    source: str
    type: SourceType
    price: Optional[float] = None
    change_24h: Optional[float] = None
    timestamp: Optional[int] = None  # epoch millis
    error: Optional[str] = None
    deviation_from_avg: Optional[float] = None

    @model_validator(mode="after")
    def _price_xor_error(self):
        if (self.price is None) == (self.error is None):
            raise ValueError("price source must carry exactly one of price or error")
        return self

    @classmethod
    def failed(cls, source: str, source_type: SourceType, error: str) -> "PriceSource":
        return cls(source=source, type=source_type, error=error or "Unknown error")

    @property
    def ok(self) -> bool:
        return self.price is not None


class PriceStats(FrozenModel):
    """Cross-source statistics over the sources that reported a price."""
    average: float
    median: float
    min: float
    max: float
    spread_percent: float
    sources_available: int
    sources_total: int


class TokenPrices(FrozenModel):
    token: str
    timestamp: str
    stats: Optional[PriceStats] = None
    sources: Tuple[PriceSource, ...] = ()

    def source(self, name: str) -> Optional[PriceSource]:
        return next((s for s in self.sources if s.source == name), None)

    def change_24h(self, reference: str = "coingecko") -> Optional[float]:
        """24h change as reported by the reference source, if it reported one."""
        src = self.source(reference)
        return src.change_24h if src else None

    @property
    def spread_percent(self) -> float:
        return self.stats.spread_percent if self.stats else 0.0

    @property
    def average(self) -> Optional[float]:
        return self.stats.average if self.stats else None


class FearGreed(FrozenModel):
    value: int = 50
    label: str = "Neutral"


class SentimentData(FrozenModel):
    sentiment: SentimentClass
    score: int
    confidence: float
    fear_greed_index: int
    fear_greed_label: str
    change_24h: Optional[float] = None
    change_7d: Optional[float] = None


_THRESHOLD_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)%")


class YieldData(FrozenModel):
    effective_apy: float
    collateral_multiple: float
    liquidation_risk: str  # "<pct>% price-drop buffer"
    base_apy: float

    @property
    def liquidation_threshold_percent(self) -> float:
        """Percentage parsed back out of the descriptive liquidation string."""
        match = _THRESHOLD_PATTERN.match(self.liquidation_risk)
        return float(match.group(1)) if match else 0.0


class WhaleTransfer(FrozenModel):
    amount: float
    type: Literal["in", "out"] = "in"
    tx_id: str


class WhaleActivity(FrozenModel):
    net_flow: float = 0.0
    large_transactions: int = 0
    top_transfers: Tuple[WhaleTransfer, ...] = ()


class TokenPricePair(FrozenModel):
    btc: TokenPrices
    stx: TokenPrices


class AggregatedData(FrozenModel):
    """The single snapshot consumed by the signal detector and risk assessor."""
    prices: TokenPricePair
    sentiment: SentimentData
    yield_data: YieldData
    whales: WhaleActivity
    fear_greed: FearGreed


class MarketSnapshot(FrozenModel):
    btc_price: float
    stx_price: float
    btc_change_24h: Optional[float] = None
    stx_change_24h: Optional[float] = None
    price_spread_btc: str
    price_spread_stx: str
    sentiment: SentimentClass
    fear_greed: int
