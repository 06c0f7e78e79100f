"""
Event classifier: deployments and trades from decoded Helius transactions.

Both functions match on ParsedTransaction.kind (assigned by the decoder) and
return None for anything outside their variant. Pure; no I/O.
"""

from __future__ import annotations

from vouch_activity.analytics.models import ProgramDeploymentCandidate, TradeRecord
from vouch_activity.helius.models import LAMPORTS_PER_SOL, ParsedTransaction, TokenAmount, TransactionKind
from vouch_activity.helius.parser import LOADER_PROGRAM_IDS

DUST_THRESHOLD_SOL = 0.01

# USD stablecoins valued 1:1; mint -> decimals
STABLECOIN_DECIMALS: dict[str, int] = {
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": 6,  # USDC
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": 6,  # USDT
    "2b1kV6DkPAnxd5ixfnxCpjxmKwqjjaYmCZfHsFu24GXo": 6,  # PYUSD
}


def program_display_name(address: str) -> str:
    return f"Program {address[:4]}...{address[-4:]}"


def _deployment_from_balances(tx: ParsedTransaction, deployer: str) -> str | None:
    for change in tx.account_data:
        if change.account == deployer or change.account in LOADER_PROGRAM_IDS:
            continue
        if change.native_balance_change > 0:
            return change.account
    return None


def _deployment_from_loader(tx: ParsedTransaction, deployer: str) -> str | None:
    for ix in tx.instructions:
        if ix.program_id not in LOADER_PROGRAM_IDS:
            continue
        for account in ix.accounts:
            if account != deployer and account not in LOADER_PROGRAM_IDS:
                return account
        return None
    return None


def detect_program_deployment(tx: ParsedTransaction, deployer: str) -> ProgramDeploymentCandidate | None:
    """
    Return the program a deployment transaction created, or None.

    DEPLOYMENT: first balance-delta account that is neither the deployer nor
    a loader and whose native balance increased (the funded program account).
    LOADER_INVOCATION: first loader instruction; its first account that is
    neither the deployer nor a loader.
    """
    if tx.kind is TransactionKind.DEPLOYMENT:
        address = _deployment_from_balances(tx, deployer)
    elif tx.kind is TransactionKind.LOADER_INVOCATION:
        address = _deployment_from_loader(tx, deployer)
    else:
        return None
    if not address:
        return None
    return ProgramDeploymentCandidate(
        address=address,
        name=program_display_name(address),
        timestamp=tx.timestamp,
    )


def _stablecoin_value(tokens: tuple[TokenAmount, ...]) -> float | None:
    for token in tokens:
        decimals = STABLECOIN_DECIMALS.get(token.mint)
        if decimals is not None:
            return token.raw_amount / (10 ** decimals)
    return None


def _swap_value_usd(tx: ParsedTransaction, native_price: float) -> float | None:
    swap = tx.swap
    if swap is not None:
        if swap.native_input:
            return swap.native_input / LAMPORTS_PER_SOL * native_price
        if swap.native_output:
            return swap.native_output / LAMPORTS_PER_SOL * native_price
        value = _stablecoin_value(swap.token_inputs)
        if value is not None:
            return value
        value = _stablecoin_value(swap.token_outputs)
        if value is not None:
            return value
    if tx.native_transfers:
        largest = max(t.amount for t in tx.native_transfers)
        return largest / LAMPORTS_PER_SOL * native_price
    return None


def extract_trade(
    tx: ParsedTransaction,
    native_price: float,
    dust_threshold: float = DUST_THRESHOLD_SOL,
    fallback_timestamp: int = 0,
) -> TradeRecord | None:
    """
    USD value of a swap, or None.

    Precedence: native input, native output, first stablecoin input, first
    stablecoin output, largest native transfer. Values below
    dust_threshold SOL at native_price are dropped. fallback_timestamp is
    used when the transaction carries no timestamp of its own.
    """
    if tx.kind is not TransactionKind.SWAP:
        return None
    value = _swap_value_usd(tx, native_price)
    if value is None or value < 0:
        return None
    if value < dust_threshold * native_price:
        return None
    return TradeRecord(
        signature=tx.signature,
        amount=int(round(value)),
        timestamp=tx.timestamp if tx.timestamp is not None else fallback_timestamp,
    )
