"""
Application settings.

Responsibilities:
- Collect configuration from environment variables and .env.
- Provide defaults for optional knobs (timeouts, retry, cache TTLs).
- Expose a frozen ActivitySettings used to construct the ActivityService.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from vouch_activity.config.env import (
    env_float,
    env_int,
    get_helius_api_base,
    get_helius_api_key,
    get_helius_rpc_url,
    get_solana_network,
    load_vouch_env,
    mock_data_override,
)

COINGECKO_SIMPLE_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"

# Conservative SOL/USD used only when no quote was ever obtained
DEFAULT_SOL_USD_FALLBACK = 100.0


@dataclass(frozen=True)
class ActivitySettings:
    """Runtime configuration for the ingestion pipeline."""

    helius_api_key: str | None = None
    helius_rpc_url: str | None = None
    helius_api_base: str = "https://api.helius.xyz"
    solana_network: str = "devnet"
    force_mock_data: bool = False
    coingecko_url: str = COINGECKO_SIMPLE_PRICE_URL
    coingecko_api_key: str | None = None
    request_timeout_sec: float = 30.0
    retry_max_attempts: int = 3
    retry_base_delay_sec: float = 0.5
    activity_cache_ttl_sec: float = 300.0
    price_cache_ttl_sec: float = 60.0
    enrichment_concurrency: int = 5
    sol_usd_fallback: float = DEFAULT_SOL_USD_FALLBACK

    @property
    def use_mock_data(self) -> bool:
        """
        Mock data is served when forced, when no API key is configured,
        or on any non-mainnet network.
        """
        if self.force_mock_data:
            return True
        if not self.helius_api_key:
            return True
        return self.solana_network != "mainnet"


def get_settings() -> ActivitySettings:
    """Build ActivitySettings from the current environment."""
    load_vouch_env()
    return ActivitySettings(
        helius_api_key=get_helius_api_key(),
        helius_rpc_url=get_helius_rpc_url(),
        helius_api_base=get_helius_api_base(),
        solana_network=get_solana_network(),
        force_mock_data=mock_data_override(),
        coingecko_api_key=(os.getenv("COINGECKO_API_KEY") or "").strip() or None,
        request_timeout_sec=env_float("VOUCH_REQUEST_TIMEOUT_SEC", 30.0),
        retry_max_attempts=env_int("VOUCH_RETRY_MAX_ATTEMPTS", 3),
        retry_base_delay_sec=env_float("VOUCH_RETRY_BASE_DELAY_SEC", 0.5),
        enrichment_concurrency=env_int("VOUCH_ENRICHMENT_CONCURRENCY", 5),
        sol_usd_fallback=env_float("VOUCH_SOL_USD_FALLBACK", DEFAULT_SOL_USD_FALLBACK),
    )
