"""
ALPHA INTEL — Central Configuration
All settings are loaded from environment variables with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class DataSourceSettings(BaseSettings):
    """Upstream API endpoints and polling limits."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    hiro_base_url: str = "https://api.hiro.so"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    kucoin_base_url: str = "https://api.kucoin.com/api/v1"
    coinpaprika_base_url: str = "https://api.coinpaprika.com/v1"
    kraken_base_url: str = "https://api.kraken.com/0/public"
    fear_greed_url: str = "https://api.alternative.me/fng/"

    poll_timeout_seconds: float = 10.0
    oracle_timeout_seconds: float = 5.0
    whale_feed_limit: int = 50


class PaymentSettings(BaseSettings):
    """Stacks contract that gates the paid endpoints."""
    model_config = SettingsConfigDict(env_prefix="PAYMENT_", env_file=".env", extra="ignore")

    contract_address: str = "SPP5ZMH9NQDFD2K5CEQZ6P02AP8YPWMQ75TJW20M"
    contract_name: str = "simple-oracle"
    function_name: str = "call-with-stx"
    price: int = 5000  # µSTX, full report
    quick_price: int = 2000  # µSTX, quick snapshot
    recipient: str = "SPP5ZMH9NQDFD2K5CEQZ6P02AP8YPWMQ75TJW20M"
    network: str = "mainnet"
    quote_ttl_minutes: int = 10

    @property
    def contract_id(self) -> str:
        return f"{self.contract_address}.{self.contract_name}"


class SynthesisSettings(BaseSettings):
    """Language-model summary configuration."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    max_tokens: int = 200
    temperature: float = 0.7


class AppSettings(BaseSettings):
    """Top-level application settings."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Alpha Intelligence"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    base_apy: float = 5.0

    data: DataSourceSettings = DataSourceSettings()
    payment: PaymentSettings = PaymentSettings()
    synthesis: SynthesisSettings = SynthesisSettings()


# Singleton
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings
