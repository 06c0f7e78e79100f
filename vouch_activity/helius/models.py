"""
Data models for Helius responses.

Responsibilities:
- SignatureInfo for getSignaturesForAddress items.
- ParsedTransaction for Helius enhanced transactions, decoded once at the
  parser boundary with a TransactionKind so classification matches on the
  kind instead of probing optional fields.
- AssetHoldings for getAssetsByOwner (DAS) valuation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

LAMPORTS_PER_SOL = 1_000_000_000


@dataclass(frozen=True)
class SignatureInfo:
    """
    Normalized transaction signature info from getSignaturesForAddress.

    Mirrors Solana RPC response fields.
    """

    signature: str
    slot: int
    err: Any  # None if success; dict/object from RPC if failed
    block_time: int | None  # Unix timestamp; None if not available
    memo: str | None = None
    confirmation_status: str | None = None  # processed | confirmed | finalized

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureInfo":
        """
        Build from a single getSignaturesForAddress result item.

        Raises ValueError when the signature is missing or a numeric field
        cannot be read as an integer.
        """
        signature = item.get("signature")
        if not isinstance(signature, str) or not signature:
            raise ValueError("signature item missing signature")
        block_time = item.get("blockTime")
        memo = item.get("memo")
        status = item.get("confirmationStatus")
        return cls(
            signature=signature,
            slot=_as_int(item.get("slot") or 0, "slot"),
            err=item.get("err"),
            block_time=_as_int(block_time, "blockTime") if block_time is not None else None,
            memo=memo if isinstance(memo, str) else None,
            confirmation_status=status if isinstance(status, str) else None,
        )


def _as_int(val: Any, name: str) -> int:
    if isinstance(val, bool) or not isinstance(val, (int, float, str)):
        raise ValueError(f"{name} is not a number: {val!r}")
    try:
        return int(val)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"{name} is not an integer: {val!r}") from e


class TransactionKind(str, Enum):
    """Shape of a parsed transaction, assigned by the decoder."""

    DEPLOYMENT = "deployment"
    """Type tag names a program deploy/upgrade."""
    LOADER_INVOCATION = "loader_invocation"
    """No deploy tag, but an instruction targets a BPF loader."""
    SWAP = "swap"
    """Type tag SWAP or a source on the swap-venue allow-list."""
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class AccountBalanceChange:
    account: str
    native_balance_change: int
    """Lamports; positive when the account gained SOL."""


@dataclass(frozen=True)
class Instruction:
    program_id: str
    accounts: tuple[str, ...] = ()


@dataclass(frozen=True)
class NativeTransfer:
    from_account: str
    to_account: str
    amount: int
    """Lamports."""


@dataclass(frozen=True)
class TokenAmount:
    mint: str
    raw_amount: int
    decimals: int

    @property
    def ui_amount(self) -> float:
        return self.raw_amount / (10 ** self.decimals)


@dataclass(frozen=True)
class SwapEvent:
    """Structured swap payload (events.swap in the enhanced API)."""

    native_input: int | None = None
    native_output: int | None = None
    token_inputs: tuple[TokenAmount, ...] = ()
    token_outputs: tuple[TokenAmount, ...] = ()


@dataclass(frozen=True)
class ParsedTransaction:
    """
    A Helius enhanced transaction after decoding.

    Read-only once produced by the parser; all optional collections default
    to empty tuples so classifiers can iterate without None checks.
    """

    signature: str
    kind: TransactionKind
    type: str
    source: str
    timestamp: int | None
    fee_payer: str | None = None
    account_data: tuple[AccountBalanceChange, ...] = ()
    instructions: tuple[Instruction, ...] = ()
    native_transfers: tuple[NativeTransfer, ...] = ()
    swap: SwapEvent | None = None


@dataclass(frozen=True)
class AssetHoldings:
    """Priced holdings of an owner from getAssetsByOwner."""

    owner: str
    total_token_value: float = 0.0
    """Sum of price_info.total_price over priced fungible assets (fiat)."""
    native_lamports: int | None = None
    """Native balance when the DAS response included it."""
    priced_assets: int = 0
