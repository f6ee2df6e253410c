"""
ALPHA INTEL — Signal Detector
Rule engine over the aggregated market snapshot. Rules are evaluated in a
fixed order; several may fire for the same snapshot. Pure, no side effects.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from alpha_intel.data.models import AggregatedData


class SignalType(str, Enum):
    SENTIMENT_DIVERGENCE = "sentiment_divergence"
    YIELD_OPPORTUNITY = "yield_opportunity"
    WHALE_ACCUMULATION = "whale_accumulation"
    WHALE_DISTRIBUTION = "whale_distribution"
    PRICE_ARBITRAGE = "price_arbitrage"
    MOMENTUM_SHIFT = "momentum_shift"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SignalAction(str, Enum):
    ACCUMULATE = "accumulate"
    HOLD = "hold"
    REDUCE = "reduce"
    DEPLOY_CAPITAL = "deploy_capital"
    WAIT = "wait"
    ARBITRAGE = "arbitrage"


class Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: SignalType
    severity: Severity
    description: str
    action: SignalAction


# Thresholds
DIVERGENCE_BULLISH_SCORE = 60
DIVERGENCE_BEARISH_SCORE = 40
DIVERGENCE_PRICE_MOVE = 2.0
YIELD_MEDIUM_APY = 7.0
YIELD_HIGH_APY = 10.0
WHALE_MIN_TRANSACTIONS = 3
WHALE_FLOW_THRESHOLD = 500_000
ARBITRAGE_SPREAD = 0.5
ARBITRAGE_HIGH_SPREAD = 1.0
EXTREME_FEAR = 25
EXTREME_GREED = 75


class SignalDetector:
    """Evaluates the alpha rules in order and returns the signals that fire."""

    def detect(self, data: AggregatedData) -> List[Signal]:
        rules = (
            self._sentiment_divergence,
            self._yield_opportunity,
            self._whale_flow,
            self._price_arbitrage,
            self._momentum_shift,
        )
        signals = []
        for rule in rules:
            signal = rule(data)
            if signal is not None:
                signals.append(signal)
        return signals

    def _sentiment_divergence(self, data: AggregatedData) -> Optional[Signal]:
        score = data.sentiment.score
        change = data.prices.btc.change_24h() or 0.0

        if score > DIVERGENCE_BULLISH_SCORE and change < -DIVERGENCE_PRICE_MOVE:
            return Signal(
                type=SignalType.SENTIMENT_DIVERGENCE,
                severity=Severity.MEDIUM,
                description="Bullish sentiment despite price decline - potential accumulation zone",
                action=SignalAction.ACCUMULATE,
            )
        if score < DIVERGENCE_BEARISH_SCORE and change > DIVERGENCE_PRICE_MOVE:
            return Signal(
                type=SignalType.SENTIMENT_DIVERGENCE,
                severity=Severity.MEDIUM,
                description="Bearish sentiment despite price rise - potential distribution phase",
                action=SignalAction.REDUCE,
            )
        return None

    def _yield_opportunity(self, data: AggregatedData) -> Optional[Signal]:
        y = data.yield_data
        if y.effective_apy <= YIELD_MEDIUM_APY:
            return None
        return Signal(
            type=SignalType.YIELD_OPPORTUNITY,
            severity=Severity.HIGH if y.effective_apy > YIELD_HIGH_APY else Severity.MEDIUM,
            description=(
                f"sBTC yield at {y.effective_apy}% APY with "
                f"{y.collateral_multiple}x loop - above average"
            ),
            action=SignalAction.DEPLOY_CAPITAL,
        )

    def _whale_flow(self, data: AggregatedData) -> Optional[Signal]:
        whales = data.whales
        if whales.large_transactions <= WHALE_MIN_TRANSACTIONS:
            return None

        if whales.net_flow > WHALE_FLOW_THRESHOLD:
            return Signal(
                type=SignalType.WHALE_ACCUMULATION,
                severity=Severity.HIGH,
                description=(
                    f"{whales.large_transactions} large transactions detected with "
                    f"{whales.net_flow / 1_000_000:.2f}M STX net flow"
                ),
                action=SignalAction.ACCUMULATE,
            )
        if whales.net_flow < -WHALE_FLOW_THRESHOLD:
            return Signal(
                type=SignalType.WHALE_DISTRIBUTION,
                severity=Severity.HIGH,
                description=(
                    f"{whales.large_transactions} large transactions detected with "
                    f"{abs(whales.net_flow) / 1_000_000:.2f}M STX outflow"
                ),
                action=SignalAction.REDUCE,
            )
        return None

    def _price_arbitrage(self, data: AggregatedData) -> Optional[Signal]:
        # Only the wider of the two spreads is reported.
        btc_spread = data.prices.btc.spread_percent
        stx_spread = data.prices.stx.spread_percent
        if btc_spread <= ARBITRAGE_SPREAD and stx_spread <= ARBITRAGE_SPREAD:
            return None

        token = "BTC" if btc_spread > stx_spread else "STX"
        spread = max(btc_spread, stx_spread)
        return Signal(
            type=SignalType.PRICE_ARBITRAGE,
            severity=Severity.HIGH if spread > ARBITRAGE_HIGH_SPREAD else Severity.MEDIUM,
            description=f"{token} showing {spread:.2f}% price spread across exchanges",
            action=SignalAction.ARBITRAGE,
        )

    def _momentum_shift(self, data: AggregatedData) -> Optional[Signal]:
        value = data.fear_greed.value
        if value < EXTREME_FEAR:
            return Signal(
                type=SignalType.MOMENTUM_SHIFT,
                severity=Severity.HIGH,
                description=f"Extreme Fear ({value}) - historically good accumulation zone",
                action=SignalAction.ACCUMULATE,
            )
        if value > EXTREME_GREED:
            return Signal(
                type=SignalType.MOMENTUM_SHIFT,
                severity=Severity.MEDIUM,
                description=f"Extreme Greed ({value}) - consider taking profits",
                action=SignalAction.REDUCE,
            )
        return None


def detect_signals(data: AggregatedData) -> List[Signal]:
    return SignalDetector().detect(data)
