"""
Scan one wallet's activity and print the result as JSON.

Usage:
  python -m vouch_activity.tools.scan_wallet_activity --wallet <address> [--days 30]
      [--programs | --volume] [--circuit-inputs]

Without --programs/--volume both are fetched. --circuit-inputs adds the
fixed-size amount arrays used as proof-circuit inputs.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from vouch_activity.analytics.activity_service import ActivityService
from vouch_activity.analytics.circuit_inputs import dev_reputation_amounts, whale_trading_amounts
from vouch_activity.config.env import load_vouch_env
from vouch_activity.config.settings import get_settings
from vouch_activity.vouch_logging import configure_logging, get_logger, short_wallet

logger = get_logger(__name__)


def _parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Fetch deployed programs and trading volume for a Solana wallet")
    ap.add_argument("--wallet", required=True, help="Wallet address (base58)")
    ap.add_argument("--days", type=int, default=30, help="Trading-volume window in days (1-365, default: 30)")
    which = ap.add_mutually_exclusive_group()
    which.add_argument("--programs", action="store_true", help="Only fetch deployed programs")
    which.add_argument("--volume", action="store_true", help="Only fetch trading volume")
    ap.add_argument("--circuit-inputs", action="store_true", help="Include padded circuit input arrays")
    return ap


async def scan(
    service: ActivityService,
    wallet: str,
    days: int,
    *,
    programs: bool = True,
    volume: bool = True,
    circuit_inputs: bool = False,
) -> dict[str, Any]:
    out: dict[str, Any] = {"wallet": wallet}
    if programs:
        result = await service.get_deployed_programs(wallet)
        out["programs"] = result.to_dict()
        if circuit_inputs and result.success:
            count, amounts = dev_reputation_amounts(result.data or [])
            out["devReputationInputs"] = {"program_count": str(count), "tvl_amounts": amounts}
    if volume:
        result = await service.get_trading_volume(wallet, days)
        out["tradingVolume"] = result.to_dict()
        if circuit_inputs and result.success and result.data is not None:
            count, amounts = whale_trading_amounts(result.data)
            out["whaleTradingInputs"] = {"trade_count": str(count), "trade_amounts": amounts}
    return out


async def _run(args: argparse.Namespace) -> dict[str, Any]:
    async with ActivityService.from_settings(get_settings()) as service:
        return await scan(
            service,
            args.wallet.strip(),
            args.days,
            programs=not args.volume,
            volume=not args.programs,
            circuit_inputs=args.circuit_inputs,
        )


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    load_vouch_env()
    configure_logging()
    logger.info("scan_wallet_activity_start", wallet=short_wallet(args.wallet), days=args.days)
    out = asyncio.run(_run(args))
    print(json.dumps(out, indent=2))
    failed = [k for k in ("programs", "tradingVolume") if k in out and not out[k]["success"]]
    if failed:
        logger.warning("scan_wallet_activity_failed", sections=failed)
        return 1
    logger.info("scan_wallet_activity_done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
