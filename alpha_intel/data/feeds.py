"""
ALPHA INTEL — Price Feed Configuration
Immutable mapping of assets to their per-source identifiers and the Pyth
storage contract. Passed to the aggregator at construction time.
"""
from typing import Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict


class AssetFeed(BaseModel):
    """Identifiers one asset is known by at each upstream."""
    model_config = ConfigDict(frozen=True)

    symbol: str
    coingecko: str
    kucoin: str
    coinpaprika: str
    kraken_pair: str
    pyth_feed: Optional[str] = None


class PythContract(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    name: str
    function: str = "get-price"

    @property
    def contract_id(self) -> str:
        return f"{self.address}.{self.name}"


class PriceFeedConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    pyth: PythContract
    assets: Tuple[AssetFeed, ...]

    def asset(self, symbol: str) -> Optional[AssetFeed]:
        symbol = symbol.upper()
        return next((a for a in self.assets if a.symbol == symbol), None)

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(a.symbol for a in self.assets)


PYTH_FEED_IDS: Dict[str, str] = {
    "BTC": "0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",
    "STX": "0xec7a775f46379b5e943c3526b1c8d54cd49749176b0b98e02dde68d1bd335c17",
}

DEFAULT_FEED_CONFIG = PriceFeedConfig(
    pyth=PythContract(
        address="SP1CGXWEAMG6P6FT04W66NVGJ7PQWMDAC19R7PJ0Y",
        name="pyth-storage-v4",
    ),
    assets=(
        AssetFeed(
            symbol="BTC",
            coingecko="bitcoin",
            kucoin="BTC-USDT",
            coinpaprika="btc-bitcoin",
            kraken_pair="BTCUSD",
            pyth_feed=PYTH_FEED_IDS["BTC"],
        ),
        AssetFeed(
            symbol="STX",
            coingecko="blockstack",
            kucoin="STX-USDT",
            coinpaprika="stx-stacks",
            kraken_pair="STXUSD",
            pyth_feed=PYTH_FEED_IDS["STX"],
        ),
    ),
)
