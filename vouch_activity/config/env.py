"""
Environment variable loading for Vouch activity.

- SOLANA_NETWORK: devnet | mainnet (default: devnet)
- HELIUS_API_KEY: Helius API key; absence forces mock data
- VOUCH_USE_MOCK_DATA: force mock data regardless of other settings
- HELIUS_RPC_URL / HELIUS_API_BASE_URL: optional endpoint overrides
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is vouch_activity/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

HELIUS_MAINNET_RPC_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_RPC_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"
HELIUS_MAINNET_API_BASE = "https://api.helius.xyz"
HELIUS_DEVNET_API_BASE = "https://api-devnet.helius.xyz"

_TRUTHY = ("1", "true", "yes", "on")


def load_vouch_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def get_solana_network() -> str:
    """
    Return SOLANA_NETWORK from env: devnet | mainnet.
    Default: devnet. mainnet-beta is normalised to mainnet.
    """
    load_vouch_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "devnet").strip().lower()
    if raw in ("mainnet", "mainnet-beta"):
        return "mainnet"
    if raw == "testnet":
        return "testnet"
    return "devnet"


def get_helius_api_key() -> str | None:
    load_vouch_env()
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    return key or None


def get_helius_rpc_url() -> str | None:
    """
    Resolve the Helius RPC URL.
    Order: HELIUS_RPC_URL > HELIUS_API_KEY (network-specific) > None.
    """
    load_vouch_env()
    url = (os.getenv("HELIUS_RPC_URL") or "").strip()
    if url:
        return url
    key = get_helius_api_key()
    if not key:
        return None
    if get_solana_network() == "mainnet":
        return HELIUS_MAINNET_RPC_TEMPLATE.format(key=key)
    return HELIUS_DEVNET_RPC_TEMPLATE.format(key=key)


def get_helius_api_base() -> str:
    load_vouch_env()
    base = (os.getenv("HELIUS_API_BASE_URL") or "").strip()
    if base:
        return base.rstrip("/")
    if get_solana_network() == "mainnet":
        return HELIUS_MAINNET_API_BASE
    return HELIUS_DEVNET_API_BASE


def mock_data_override() -> bool:
    """Return True when VOUCH_USE_MOCK_DATA is set to a truthy value."""
    load_vouch_env()
    return (os.getenv("VOUCH_USE_MOCK_DATA") or "").strip().lower() in _TRUTHY


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else default


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def mask_api_key(url: str) -> str:
    """Mask api-key query values for logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
