"""
Result models for the activity pipelines.

Responsibilities:
- Domain records produced by the classifier and the orchestrators.
- ActivityResponse envelope (success / data / error / partial) returned to
  every caller instead of raw exceptions.
- to_dict() with the camelCase keys consumed by the proof front end.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

T = TypeVar("T")

TRADE_TYPE_SWAP = "swap"


def iso_from_unix(ts: int | float) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ProgramDeploymentCandidate:
    address: str
    name: str | None
    timestamp: int | None


@dataclass(frozen=True)
class ProgramRecord:
    address: str
    deployed_at: str
    deployer: str
    estimated_tvl: int
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"address": self.address}
        if self.name is not None:
            out["name"] = self.name
        out["deployedAt"] = self.deployed_at
        out["deployer"] = self.deployer
        out["estimatedTVL"] = self.estimated_tvl
        return out


@dataclass(frozen=True)
class TradeRecord:
    signature: str
    amount: int
    timestamp: int
    type: str = TRADE_TYPE_SWAP

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "type": self.type,
        }


@dataclass(frozen=True)
class TradingVolume:
    total_volume: int
    trade_count: int
    amounts: list[int]
    """Top amounts, descending; fixed-size numeric proof input."""
    period: int
    wallet: str
    trades: list[TradeRecord] | None = None
    """Top trades for display; None for mock data."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "totalVolume": self.total_volume,
            "tradeCount": self.trade_count,
            "amounts": list(self.amounts),
            "period": self.period,
            "wallet": self.wallet,
        }
        if self.trades is not None:
            out["trades"] = [t.to_dict() for t in self.trades]
        return out


@dataclass(frozen=True)
class ActivityResponse(Generic[T]):
    """Structured result; callers never receive raw exceptions."""

    success: bool
    data: T | None = None
    error: str | None = None
    partial: bool = False
    invalid_input: bool = False
    """True when the request was rejected by validation; not serialized."""

    @classmethod
    def failure(cls, error: str) -> "ActivityResponse[T]":
        return cls(success=False, error=error)

    @classmethod
    def rejected(cls, error: str) -> "ActivityResponse[T]":
        return cls(success=False, error=error, invalid_input=True)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            if isinstance(self.data, list):
                out["data"] = [item.to_dict() for item in self.data]
            else:
                out["data"] = self.data.to_dict()
        if self.error is not None:
            out["error"] = self.error
        if self.partial:
            out["partial"] = True
        return out
