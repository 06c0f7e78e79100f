"""
Pytest fixtures for Vouch activity tests. No network: Helius and the price
endpoint are faked or served through httpx.MockTransport.
"""

from __future__ import annotations

import pytest

from vouch_activity.config.settings import ActivitySettings


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePriceOracle:
    """Fixed SOL/USD; counts calls."""

    def __init__(self, price: float = 100.0) -> None:
        self.price = price
        self.calls = 0
        self.closed = False

    async def get_price(self) -> float:
        self.calls += 1
        return self.price

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _no_env_leak(monkeypatch):
    """Keep the developer's shell config out of the tests."""
    for name in (
        "HELIUS_API_KEY",
        "HELIUS_RPC_URL",
        "HELIUS_API_BASE_URL",
        "SOLANA_NETWORK",
        "SOLANA_CLUSTER",
        "VOUCH_USE_MOCK_DATA",
        "COINGECKO_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    """Recorded retry delays; use fake_sleep as the service's sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def price_oracle():
    return FakePriceOracle(price=100.0)


@pytest.fixture
def live_settings():
    """Settings that select the live (non-mock) path."""
    return ActivitySettings(
        helius_api_key="test-key",
        helius_rpc_url="https://rpc.test/?api-key=test-key",
        helius_api_base="https://api.test",
        solana_network="mainnet",
        retry_max_attempts=3,
        retry_base_delay_sec=0.5,
    )


@pytest.fixture
def mock_settings():
    return ActivitySettings(force_mock_data=True)
