"""
Helius enhanced-transaction decoder: raw JSON to ParsedTransaction.

Runs once at the client boundary. Purely structural apart from assigning the
TransactionKind; deployment and trade heuristics live in
vouch_activity.analytics.classifier. Handles missing keys and string-encoded
numbers; a record without a signature is rejected.
"""

from __future__ import annotations

from typing import Any, Iterable

from vouch_activity.helius.models import (
    AccountBalanceChange,
    Instruction,
    NativeTransfer,
    ParsedTransaction,
    SwapEvent,
    TokenAmount,
    TransactionKind,
)
from vouch_activity.vouch_logging import get_logger

logger = get_logger(__name__)

# BPF loaders: deploys and upgrades go through one of these
LOADER_PROGRAM_IDS = frozenset({
    "BPFLoaderUpgradeab1e11111111111111111111111",
    "BPFLoader2111111111111111111111111111111111",
    "BPFLoader1111111111111111111111111111111111",
    "LoaderV411111111111111111111111111111111111",
})

# Helius type tags for program deploy/upgrade
DEPLOY_TYPES = frozenset({
    "UPGRADE_PROGRAM_INSTRUCTION",
    "FINALIZE_PROGRAM_INSTRUCTION",
    "DEPLOY_PROGRAM",
})

SWAP_TYPE = "SWAP"

# Swap venues (Helius `source`)
SWAP_SOURCES = frozenset({
    "JUPITER",
    "RAYDIUM",
    "ORCA",
    "WHIRLPOOL",
    "METEORA",
    "PHOENIX",
    "LIFINITY",
    "OPENBOOK",
    "PUMP_FUN",
    "PUMP_AMM",
})


def _int_or_none(val: Any) -> int | None:
    if val is None or val == "":
        return None
    if isinstance(val, bool) or not isinstance(val, (int, float, str)):
        return None
    try:
        return int(val)
    except (ValueError, OverflowError):
        try:
            return int(float(val))
        except (ValueError, OverflowError):
            return None


def _str(val: Any) -> str:
    return str(val).strip() if val is not None else ""


def _items(raw: Any) -> list[Any]:
    """raw when it is a JSON array, else empty."""
    return raw if isinstance(raw, list) else []


def _account_data(raw: Any) -> tuple[AccountBalanceChange, ...]:
    out: list[AccountBalanceChange] = []
    for item in _items(raw):
        if not isinstance(item, dict):
            continue
        account = _str(item.get("account"))
        if not account:
            continue
        change = _int_or_none(item.get("nativeBalanceChange")) or 0
        out.append(AccountBalanceChange(account=account, native_balance_change=change))
    return tuple(out)


def _instructions(raw: Any) -> tuple[Instruction, ...]:
    out: list[Instruction] = []
    for ix in _items(raw):
        if not isinstance(ix, dict):
            continue
        pid = _str(ix.get("programId") or ix.get("program_id"))
        if not pid:
            continue
        out.append(Instruction(program_id=pid, accounts=_accounts(ix.get("accounts"))))
        # inner instructions follow their parent so loader CPIs are still visible
        for inner in _items(ix.get("innerInstructions")):
            if not isinstance(inner, dict):
                continue
            inner_pid = _str(inner.get("programId") or inner.get("program_id"))
            if not inner_pid:
                continue
            out.append(Instruction(program_id=inner_pid, accounts=_accounts(inner.get("accounts"))))
    return tuple(out)


def _accounts(raw: Any) -> tuple[str, ...]:
    return tuple(s for s in (_str(a) for a in _items(raw)) if s)


def _native_transfers(raw: Any) -> tuple[NativeTransfer, ...]:
    out: list[NativeTransfer] = []
    for t in _items(raw):
        if not isinstance(t, dict):
            continue
        amount = _int_or_none(t.get("amount"))
        if amount is None:
            continue
        out.append(
            NativeTransfer(
                from_account=_str(t.get("fromUserAccount")),
                to_account=_str(t.get("toUserAccount")),
                amount=amount,
            )
        )
    return tuple(out)


def _token_amounts(raw: Any) -> tuple[TokenAmount, ...]:
    out: list[TokenAmount] = []
    for t in _items(raw):
        if not isinstance(t, dict):
            continue
        mint = _str(t.get("mint"))
        raw_amount = t.get("rawTokenAmount") or {}
        if not mint or not isinstance(raw_amount, dict):
            continue
        amount = _int_or_none(raw_amount.get("tokenAmount"))
        decimals = _int_or_none(raw_amount.get("decimals"))
        if amount is None or decimals is None:
            continue
        out.append(TokenAmount(mint=mint, raw_amount=amount, decimals=decimals))
    return tuple(out)


def _native_amount(raw: Any) -> int | None:
    if not isinstance(raw, dict):
        return None
    return _int_or_none(raw.get("amount"))


def _swap_event(events: Any) -> SwapEvent | None:
    if not isinstance(events, dict):
        return None
    swap = events.get("swap")
    if not isinstance(swap, dict):
        return None
    return SwapEvent(
        native_input=_native_amount(swap.get("nativeInput")),
        native_output=_native_amount(swap.get("nativeOutput")),
        token_inputs=_token_amounts(swap.get("tokenInputs")),
        token_outputs=_token_amounts(swap.get("tokenOutputs")),
    )


def classify_kind(
    tx_type: str,
    source: str,
    instructions: Iterable[Instruction],
) -> TransactionKind:
    """Assign the TransactionKind. Deploy tag wins over loader scan, which wins over swap."""
    if tx_type in DEPLOY_TYPES:
        return TransactionKind.DEPLOYMENT
    if any(ix.program_id in LOADER_PROGRAM_IDS for ix in instructions):
        return TransactionKind.LOADER_INVOCATION
    if tx_type == SWAP_TYPE or source in SWAP_SOURCES:
        return TransactionKind.SWAP
    return TransactionKind.UNCLASSIFIED


def decode_transaction(raw: dict[str, Any]) -> ParsedTransaction:
    """
    Decode one enhanced transaction. Raises ValueError when the record has
    no signature or is not an object.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"transaction record must be an object, got {type(raw).__name__}")
    signature = _str(raw.get("signature"))
    if not signature:
        raise ValueError("transaction record missing signature")

    tx_type = _str(raw.get("type")).upper()
    source = _str(raw.get("source")).upper()
    instructions = _instructions(raw.get("instructions"))

    return ParsedTransaction(
        signature=signature,
        kind=classify_kind(tx_type, source, instructions),
        type=tx_type,
        source=source,
        timestamp=_int_or_none(raw.get("timestamp")),
        fee_payer=_str(raw.get("feePayer")) or None,
        account_data=_account_data(raw.get("accountData")),
        instructions=instructions,
        native_transfers=_native_transfers(raw.get("nativeTransfers")),
        swap=_swap_event(raw.get("events")),
    )


def decode_transactions(raws: Iterable[Any]) -> list[ParsedTransaction]:
    """Decode a batch; malformed records are skipped and logged."""
    out: list[ParsedTransaction] = []
    skipped = 0
    for raw in raws:
        try:
            out.append(decode_transaction(raw))
        except (TypeError, ValueError, OverflowError) as e:
            skipped += 1
            logger.debug("helius_decode_skipped", error=str(e))
    if skipped:
        logger.warning("helius_decode_partial", decoded=len(out), skipped=skipped)
    return out
