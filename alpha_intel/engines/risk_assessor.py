"""
ALPHA INTEL — Risk Assessor
Volatility regime from cross-source spreads, liquidation risk from the
looping yield buffer, and an overall level driven by Fear & Greed extremity.
"""
from typing import Literal

from pydantic import BaseModel, ConfigDict

from alpha_intel.data.models import AggregatedData

VolatilityRegime = Literal["low", "normal", "high", "extreme"]
LiquidationRisk = Literal["low", "moderate", "high"]
OverallRisk = Literal["low", "moderate", "high", "extreme"]


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: OverallRisk
    liquidation_risk: LiquidationRisk
    volatility_regime: VolatilityRegime


def classify_volatility(avg_spread: float) -> VolatilityRegime:
    if avg_spread < 0.2:
        return "low"
    elif avg_spread < 0.5:
        return "normal"
    elif avg_spread < 1:
        return "high"
    return "extreme"


def classify_liquidation(threshold_percent: float) -> LiquidationRisk:
    """A larger price-drop buffer means lower liquidation risk."""
    if threshold_percent > 20:
        return "low"
    elif threshold_percent > 10:
        return "moderate"
    return "high"


def classify_overall(fear_greed: int, volatility: VolatilityRegime) -> OverallRisk:
    if fear_greed < 20 or fear_greed > 80:
        return "extreme" if volatility == "extreme" else "high"
    elif fear_greed < 35 or fear_greed > 65:
        return "high" if volatility == "high" else "moderate"
    return "low" if volatility == "low" else "moderate"


def assess_risk(data: AggregatedData) -> RiskAssessment:
    avg_spread = (data.prices.btc.spread_percent + data.prices.stx.spread_percent) / 2
    volatility = classify_volatility(avg_spread)

    return RiskAssessment(
        overall=classify_overall(data.fear_greed.value, volatility),
        liquidation_risk=classify_liquidation(data.yield_data.liquidation_threshold_percent),
        volatility_regime=volatility,
    )
