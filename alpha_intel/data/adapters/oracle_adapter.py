"""
ALPHA INTEL — Pyth On-Chain Oracle Adapter
Reads the Pyth storage contract on Stacks through the Hiro read-only call
endpoint. The call is raced against a fixed timer; a late result is dropped.
"""
import asyncio
from typing import Optional, Set

from alpha_intel.data.adapters.base import BasePriceAdapter
from alpha_intel.data.feeds import AssetFeed, PythContract
from alpha_intel.data.models import PriceSource, SourceType
from alpha_intel.data.oracle import decode_price, encode_feed_argument
from alpha_intel.utils.errors import SourceError
from alpha_intel.utils.helpers import epoch_millis
from alpha_intel.utils.logger import get_logger

logger = get_logger("oracle_adapter")


class PythOracleAdapter(BasePriceAdapter):
    """Pyth price feed read via a Clarity contract call."""

    def __init__(self, contract: PythContract, timeout_seconds: Optional[float] = None):
        super().__init__("pyth", SourceType.ORACLE)
        self.contract = contract
        self.base_url = self.settings.hiro_base_url
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else self.settings.oracle_timeout_seconds
        )
        self._abandoned: Set[asyncio.Task] = set()

    def supports(self, asset: AssetFeed) -> bool:
        return asset.pyth_feed is not None

    async def fetch_quote(self, asset: AssetFeed) -> PriceSource:
        url = (
            f"{self.base_url}/v2/contracts/call-read/"
            f"{self.contract.address}/{self.contract.name}/{self.contract.function}"
        )
        payload = {
            "sender": self.contract.address,
            "arguments": [encode_feed_argument(asset.pyth_feed)],
        }
        data = await self._post_json(url, payload)
        if not data.get("okay") or not data.get("result"):
            raise SourceError("No Pyth feed", source=self.name)

        return self.quote(price=decode_price(data["result"]), timestamp=epoch_millis())

    async def get_price_source(self, asset: AssetFeed) -> PriceSource:
        """First of (real fetch, timer) wins. The fetch is not cancelled on timeout."""
        fetch = asyncio.ensure_future(super().get_price_source(asset))
        done, _ = await asyncio.wait({fetch}, timeout=self.timeout_seconds)
        if fetch in done:
            return fetch.result()

        self._abandoned.add(fetch)
        fetch.add_done_callback(self._abandoned.discard)
        logger.warning("oracle_timeout", token=asset.symbol, timeout=self.timeout_seconds)
        return self.failed("Timeout")

    async def disconnect(self) -> None:
        """Cancel fetches that lost the timeout race, then close the session."""
        pending = list(self._abandoned)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("oracle_abandoned_cancelled", count=len(pending))
        self._abandoned.clear()
        await super().disconnect()
