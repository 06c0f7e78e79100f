"""
Shape activity results into fixed-size proof-circuit inputs.

Circuits take a fixed number of field elements, so lists are truncated to the
circuit maximum and padded with "0". Values are decimal strings.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from vouch_activity.analytics.models import ProgramRecord, TradingVolume

MAX_PROGRAMS = 5
MAX_TRADES = 20
PAD_VALUE = "0"


def pad_amounts(values: Iterable[int], size: int) -> list[str]:
    """First size values as decimal strings, right-padded with "0"."""
    out = [str(int(v)) for v in list(values)[:size]]
    out.extend([PAD_VALUE] * (size - len(out)))
    return out


def dev_reputation_amounts(programs: Sequence[ProgramRecord]) -> tuple[int, list[str]]:
    """(program_count, tvl_amounts) for the developer-reputation circuit."""
    count = min(len(programs), MAX_PROGRAMS)
    return count, pad_amounts((p.estimated_tvl for p in programs), MAX_PROGRAMS)


def whale_trading_amounts(volume: TradingVolume) -> tuple[int, list[str]]:
    """(trade_count, trade_amounts) for the whale-trading circuit."""
    count = min(len(volume.amounts), MAX_TRADES)
    return count, pad_amounts(volume.amounts, MAX_TRADES)
