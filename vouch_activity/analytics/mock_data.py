"""Deterministic activity data served when live ingestion is disabled."""

from __future__ import annotations

import time

from vouch_activity.analytics.models import ProgramRecord, TradingVolume, iso_from_unix

SECONDS_PER_DAY = 86_400

MOCK_PROGRAMS: tuple[tuple[str, int, int], ...] = (
    # (address, days since deploy, TVL)
    ("Prog1111111111111111111111111111111111111111", 90, 50_000),
    ("Prog2222222222222222222222222222222222222222", 60, 40_000),
    ("Prog3333333333333333333333333333333333333333", 30, 30_000),
)

MOCK_TOTAL_VOLUME = 75_000
MOCK_TRADE_COUNT = 42
MOCK_TRADE_AMOUNTS = (25_000, 20_000, 15_000, 10_000, 5_000)


def mock_programs(wallet: str, now: float | None = None) -> list[ProgramRecord]:
    now = time.time() if now is None else now
    return [
        ProgramRecord(
            address=address,
            deployed_at=iso_from_unix(now - days * SECONDS_PER_DAY),
            deployer=wallet,
            estimated_tvl=tvl,
        )
        for address, days, tvl in MOCK_PROGRAMS
    ]


def mock_trading_volume(wallet: str, days_back: int) -> TradingVolume:
    return TradingVolume(
        total_volume=MOCK_TOTAL_VOLUME,
        trade_count=MOCK_TRADE_COUNT,
        amounts=list(MOCK_TRADE_AMOUNTS),
        period=days_back,
        wallet=wallet,
    )
