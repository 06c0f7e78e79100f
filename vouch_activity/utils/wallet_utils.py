"""Wallet address validation."""

from __future__ import annotations

import re
from dataclasses import dataclass

import base58
from solders.pubkey import Pubkey

from vouch_activity.core.exceptions import InvalidAddress

BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
PUBKEY_BYTES = 32


@dataclass(frozen=True)
class WalletAddress:
    """A base58 Solana public key that passed validation."""

    value: str

    def __str__(self) -> str:
        return self.value


def validate_wallet_address(raw: str) -> WalletAddress:
    """
    Validate a wallet string before any cache lookup or network call.

    Checks alphabet and length (32-44 base58 chars), then that it decodes to
    exactly 32 bytes. Raises InvalidAddress otherwise.
    """
    wallet = (raw or "").strip() if isinstance(raw, str) else ""
    if not wallet:
        raise InvalidAddress("Invalid Solana wallet address: empty")
    if not BASE58_RE.match(wallet):
        raise InvalidAddress("Invalid Solana wallet address: expected 32-44 base58 characters")
    try:
        decoded = base58.b58decode(wallet)
    except ValueError as e:
        raise InvalidAddress(f"Invalid Solana wallet address: {e}") from e
    if len(decoded) != PUBKEY_BYTES:
        raise InvalidAddress(
            f"Invalid Solana wallet address: decodes to {len(decoded)} bytes, expected {PUBKEY_BYTES}"
        )
    return WalletAddress(str(Pubkey.from_bytes(decoded)))


def is_valid_wallet(w: str) -> bool:
    """Return True if w is a valid Solana wallet (Pubkey) address."""
    try:
        validate_wallet_address(w)
        return True
    except InvalidAddress:
        return False
