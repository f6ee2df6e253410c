"""
ALPHA INTEL — Whale Activity Tracker
Flags large STX transfers in the recent Hiro transaction feed.

net_flow is a plain sum of the top transfers: every transfer is treated as
inbound because no whale address tracking is done. It is an approximation of
accumulation, not a true net flow.
"""
from typing import Any, Dict, List, Optional

from alpha_intel.data.market_feeds import MarketFeedClient, get_market_feeds
from alpha_intel.data.models import WhaleActivity, WhaleTransfer
from alpha_intel.utils.logger import get_logger

logger = get_logger("whale_tracker")

MICRO_STX = 1_000_000
WHALE_THRESHOLD_STX = 100_000
WHALE_THRESHOLD_MICRO = WHALE_THRESHOLD_STX * MICRO_STX
TOP_TRANSFERS = 5

NO_ACTIVITY = WhaleActivity(net_flow=0.0, large_transactions=0, top_transfers=())


def _transfer_amount(tx: Dict[str, Any]) -> int:
    """Transfer amount in µSTX; absent amounts count as zero."""
    return int((tx.get("token_transfer") or {}).get("amount") or "0")


def summarize_transfers(transactions: List[Dict[str, Any]]) -> WhaleActivity:
    """Filter the feed for whale-sized transfers and summarize the first few."""
    large = [tx for tx in transactions if _transfer_amount(tx) >= WHALE_THRESHOLD_MICRO]

    top = [
        WhaleTransfer(amount=_transfer_amount(tx) / MICRO_STX, type="in", tx_id=tx["tx_id"])
        for tx in large[:TOP_TRANSFERS]
    ]
    return WhaleActivity(
        net_flow=sum(t.amount for t in top),
        large_transactions=len(large),
        top_transfers=top,
    )


class WhaleTracker:
    def __init__(self, feeds: Optional[MarketFeedClient] = None):
        self.feeds = feeds or get_market_feeds()

    async def fetch_activity(self) -> WhaleActivity:
        """Whale activity from the latest feed page; zero activity on any failure."""
        try:
            transactions = await self.feeds.fetch_token_transfers()
            activity = summarize_transfers(transactions)
        except Exception as e:
            logger.warning("whale_feed_failed", error=str(e))
            return NO_ACTIVITY

        logger.info(
            "whale_activity",
            large_transactions=activity.large_transactions,
            net_flow=activity.net_flow,
        )
        return activity
