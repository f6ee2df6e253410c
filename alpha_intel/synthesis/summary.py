"""
ALPHA INTEL — Alpha Summary Synthesis
Two-to-three sentence market summary. Uses an OpenAI chat completion when
an API key is configured and falls back to a deterministic template.
"""
from typing import List, Optional

import aiohttp

from alpha_intel.config.settings import get_settings
from alpha_intel.data.models import AggregatedData
from alpha_intel.engines.risk_assessor import RiskAssessment
from alpha_intel.engines.signal_detector import Signal, SignalAction
from alpha_intel.utils.helpers import signed_percent
from alpha_intel.utils.logger import get_logger

logger = get_logger("synthesis")

SYSTEM_PROMPT = "You are a concise crypto market analyst. Give actionable insights only."

ACTION_NOTES = {
    SignalAction.ACCUMULATE: "Conditions favor accumulation.",
    SignalAction.REDUCE: "Consider reducing exposure.",
    SignalAction.ARBITRAGE: "Price discrepancies across exchanges detected.",
}


def _fmt_price(value: Optional[float], decimals: int) -> str:
    return "N/A" if value is None else f"{value:.{decimals}f}"


def build_prompt(data: AggregatedData, signals: List[Signal], risk: RiskAssessment) -> str:
    btc, stx = data.prices.btc, data.prices.stx
    y, whales = data.yield_data, data.whales
    signal_lines = "\n".join(
        f"- {s.type.value}: {s.description} ({s.action.value})" for s in signals
    )
    return (
        "You are a crypto market analyst. Generate a 2-3 sentence actionable alpha summary.\n\n"
        "Market Data:\n"
        f"- BTC: ${_fmt_price(btc.average, 0)} ({btc.change_24h() or 0:.1f}% 24h)\n"
        f"- STX: ${_fmt_price(stx.average, 4)}\n"
        f"- Fear & Greed: {data.fear_greed.value} ({data.fear_greed.label})\n"
        f"- Sentiment: {data.sentiment.sentiment.value} (score: {data.sentiment.score})\n"
        f"- sBTC Yield: {y.effective_apy}% APY\n"
        f"- Whale Activity: {whales.large_transactions} large txs, "
        f"{whales.net_flow / 1_000_000:.2f}M STX net flow\n\n"
        f"Signals Detected:\n{signal_lines}\n\n"
        f"Risk: {risk.overall} overall, {risk.volatility_regime} volatility\n\n"
        "Provide actionable insight in 2-3 sentences. Be specific. No fluff."
    )


def template_summary(data: AggregatedData, signals: List[Signal], risk: RiskAssessment) -> str:
    """Deterministic summary from market state, sentiment and the leading signal."""
    btc_price = _fmt_price(data.prices.btc.average, 0)
    btc_change = data.prices.btc.change_24h() or 0.0
    fear_greed = data.fear_greed.value
    y = data.yield_data

    if btc_change > 3:
        market_state = "rallying"
    elif btc_change < -3:
        market_state = "pulling back"
    else:
        market_state = "consolidating"

    if fear_greed < 30:
        sentiment_note = "Extreme fear presents potential buying opportunity."
    elif fear_greed > 70:
        sentiment_note = "Extreme greed suggests caution - consider taking profits."
    else:
        sentiment_note = f"Market sentiment is {data.sentiment.sentiment.value}."

    action_note = ""
    if signals:
        action = signals[0].action
        if action == SignalAction.DEPLOY_CAPITAL:
            action_note = f"sBTC yield at {y.effective_apy}% APY offers attractive returns."
        else:
            action_note = ACTION_NOTES.get(action, "Monitor for clearer signals.")

    yield_note = ""
    if y.effective_apy > 7:
        yield_note = (
            f" sBTC yield at {y.effective_apy}% APY with a "
            f"{y.liquidation_threshold_percent}% liquidation buffer."
        )

    return (
        f"BTC {market_state} at ${btc_price} ({signed_percent(btc_change)}% 24h). "
        f"{sentiment_note} {action_note}{yield_note}"
    )


class SummaryGenerator:
    def __init__(self):
        self.settings = get_settings().synthesis

    async def summarize(
        self, data: AggregatedData, signals: List[Signal], risk: RiskAssessment
    ) -> str:
        if self.settings.openai_api_key:
            summary = await self._model_summary(build_prompt(data, signals, risk))
            if summary:
                return summary
        return template_summary(data, signals, risk)

    async def _model_summary(self, prompt: str) -> Optional[str]:
        payload = {
            "model": self.settings.openai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
        }
        headers = {"Authorization": f"Bearer {self.settings.openai_api_key}"}
        timeout = aiohttp.ClientTimeout(total=get_settings().data.poll_timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    f"{self.settings.openai_base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                ) as resp:
                    result = await resp.json(content_type=None)
            content = result["choices"][0]["message"]["content"]
            return content.strip() or None
        except Exception as e:
            logger.error("ai_synthesis_failed", error=str(e))
            return None


# Singleton
_generator: Optional[SummaryGenerator] = None


def get_summary_generator() -> SummaryGenerator:
    global _generator
    if _generator is None:
        _generator = SummaryGenerator()
    return _generator
