"""
Program TVL estimation from on-chain holdings.

Value = sum of priced fungible holdings (DAS getAssetsByOwner) plus native
balance at the current SOL price. getBalance is used when the DAS response
carries no native balance. Failures degrade to 0 for that program only.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from vouch_activity.core.exceptions import EnrichmentFailure
from vouch_activity.core.retry import DEFAULT_BASE_DELAY_SEC, DEFAULT_MAX_ATTEMPTS, with_retry
from vouch_activity.helius.client import HeliusClient
from vouch_activity.helius.models import LAMPORTS_PER_SOL
from vouch_activity.vouch_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY_SEC
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep


async def _holdings_value(
    client: HeliusClient,
    address: str,
    native_price: float,
    retry: RetryPolicy,
) -> float:
    holdings = await with_retry(
        lambda: client.get_assets_by_owner(address),
        max_attempts=retry.max_attempts,
        base_delay=retry.base_delay,
        sleep=retry.sleep,
        op_name="get_assets_by_owner",
    )
    lamports = holdings.native_lamports
    if lamports is None:
        lamports = await with_retry(
            lambda: client.get_native_balance(address),
            max_attempts=retry.max_attempts,
            base_delay=retry.base_delay,
            sleep=retry.sleep,
            op_name="get_balance",
        )
    value = holdings.total_token_value + lamports / LAMPORTS_PER_SOL * native_price
    if value < 0:
        raise EnrichmentFailure(f"negative holdings value for {address}: {value}")
    return value


async def estimate_program_tvl(
    client: HeliusClient,
    address: str,
    native_price: float,
    retry: RetryPolicy | None = None,
) -> int:
    """Estimated TVL in USD (rounded); 0 when the lookup fails."""
    try:
        value = await _holdings_value(client, address, native_price, retry or RetryPolicy())
    except Exception as e:
        logger.warning("enrichment_failed", program=address, error=str(e), error_type=e.__class__.__name__)
        return 0
    return int(round(value))
