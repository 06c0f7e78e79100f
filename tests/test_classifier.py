"""
Tests for deployment detection and trade extraction (analytics.classifier).

Transactions are built directly as ParsedTransaction with the kind the
decoder would assign.
"""

from __future__ import annotations

from vouch_activity.analytics.classifier import (
    STABLECOIN_DECIMALS,
    detect_program_deployment,
    extract_trade,
    program_display_name,
)
from vouch_activity.helius.models import (
    AccountBalanceChange,
    Instruction,
    NativeTransfer,
    ParsedTransaction,
    SwapEvent,
    TokenAmount,
    TransactionKind,
)

DEPLOYER = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
PROGRAM = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
BUFFER = "Buf1111111111111111111111111111111111111111"
UPGRADEABLE_LOADER = "BPFLoaderUpgradeab1e11111111111111111111111"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
SOL = 1_000_000_000


def _tx(kind: TransactionKind, **kwargs) -> ParsedTransaction:
    base = {"signature": "sig", "type": "", "source": "", "timestamp": 1_700_000_000}
    base.update(kwargs)
    return ParsedTransaction(kind=kind, **base)


def _swap(**kwargs) -> SwapEvent:
    return SwapEvent(**kwargs)


# -----------------------------------------------------------------------------
# Deployments
# -----------------------------------------------------------------------------

def test_deployment_picks_funded_non_deployer_account():
    tx = _tx(
        TransactionKind.DEPLOYMENT,
        account_data=(
            AccountBalanceChange(DEPLOYER, -2 * SOL),
            AccountBalanceChange(UPGRADEABLE_LOADER, 5),
            AccountBalanceChange(BUFFER, -1),
            AccountBalanceChange(PROGRAM, 2 * SOL),
        ),
    )
    found = detect_program_deployment(tx, DEPLOYER)
    assert found is not None
    assert found.address == PROGRAM
    assert found.name == program_display_name(PROGRAM)
    assert found.timestamp == 1_700_000_000


def test_deployment_without_funded_account_is_none():
    tx = _tx(TransactionKind.DEPLOYMENT, account_data=(AccountBalanceChange(DEPLOYER, 5 * SOL),))
    assert detect_program_deployment(tx, DEPLOYER) is None


def test_loader_invocation_uses_first_non_deployer_loader_account():
    tx = _tx(
        TransactionKind.LOADER_INVOCATION,
        instructions=(
            Instruction("11111111111111111111111111111111", (PROGRAM,)),
            Instruction(UPGRADEABLE_LOADER, (DEPLOYER, UPGRADEABLE_LOADER, PROGRAM, BUFFER)),
        ),
    )
    found = detect_program_deployment(tx, DEPLOYER)
    assert found is not None
    assert found.address == PROGRAM


def test_loader_invocation_with_only_deployer_accounts_is_none():
    tx = _tx(TransactionKind.LOADER_INVOCATION, instructions=(Instruction(UPGRADEABLE_LOADER, (DEPLOYER,)),))
    assert detect_program_deployment(tx, DEPLOYER) is None


def test_swaps_and_unclassified_are_not_deployments():
    funded = (AccountBalanceChange(PROGRAM, SOL),)
    assert detect_program_deployment(_tx(TransactionKind.SWAP, account_data=funded), DEPLOYER) is None
    assert detect_program_deployment(_tx(TransactionKind.UNCLASSIFIED, account_data=funded), DEPLOYER) is None


def test_program_display_name():
    assert program_display_name(PROGRAM) == "Program 7F1W...J5nZ"


# -----------------------------------------------------------------------------
# Trades
# -----------------------------------------------------------------------------

def test_native_input_has_precedence():
    tx = _tx(
        TransactionKind.SWAP,
        swap=_swap(
            native_input=2 * SOL,
            native_output=5 * SOL,
            token_outputs=(TokenAmount(USDC, 999_000_000, 6),),
        ),
    )
    trade = extract_trade(tx, native_price=150.0)
    assert trade is not None
    assert trade.amount == 300
    assert trade.type == "swap"
    assert trade.signature == "sig"
    assert trade.timestamp == 1_700_000_000


def test_native_output_when_no_input():
    tx = _tx(TransactionKind.SWAP, swap=_swap(native_output=SOL // 2))
    assert extract_trade(tx, native_price=100.0).amount == 50


def test_first_stablecoin_input_then_output():
    tx_in = _tx(
        TransactionKind.SWAP,
        swap=_swap(
            token_inputs=(TokenAmount(BONK, 10**12, 5), TokenAmount(USDT, 1_234_600_000, 6)),
            token_outputs=(TokenAmount(USDC, 5_000_000_000, 6),),
        ),
    )
    assert extract_trade(tx_in, native_price=100.0).amount == 1235

    tx_out = _tx(TransactionKind.SWAP, swap=_swap(token_outputs=(TokenAmount(USDC, 42_400_000, 6),)))
    assert extract_trade(tx_out, native_price=100.0).amount == 42


def test_stablecoin_uses_table_decimals():
    assert STABLECOIN_DECIMALS[USDC] == 6
    # reported decimals are ignored in favour of the table
    tx = _tx(TransactionKind.SWAP, swap=_swap(token_inputs=(TokenAmount(USDC, 10_000_000, 9),)))
    assert extract_trade(tx, native_price=100.0).amount == 10


def test_largest_native_transfer_is_last_resort():
    tx = _tx(
        TransactionKind.SWAP,
        native_transfers=(
            NativeTransfer(DEPLOYER, PROGRAM, SOL // 10),
            NativeTransfer(DEPLOYER, PROGRAM, 3 * SOL),
            NativeTransfer(PROGRAM, DEPLOYER, SOL),
        ),
    )
    assert extract_trade(tx, native_price=20.0).amount == 60


def test_swap_with_non_stable_tokens_only_falls_back_to_transfers():
    tx = _tx(
        TransactionKind.SWAP,
        swap=_swap(token_inputs=(TokenAmount(BONK, 10**12, 5),)),
        native_transfers=(NativeTransfer(DEPLOYER, PROGRAM, SOL),),
    )
    assert extract_trade(tx, native_price=100.0).amount == 100


def test_swap_without_any_value_is_none():
    assert extract_trade(_tx(TransactionKind.SWAP), native_price=100.0) is None


def test_dust_is_dropped():
    # 0.005 SOL < 0.01 SOL threshold
    dust = _tx(TransactionKind.SWAP, swap=_swap(native_input=5_000_000))
    assert extract_trade(dust, native_price=100.0) is None
    # $0.50 of USDC is below 0.01 SOL at $100
    small_stable = _tx(TransactionKind.SWAP, swap=_swap(token_inputs=(TokenAmount(USDC, 500_000, 6),)))
    assert extract_trade(small_stable, native_price=100.0) is None
    # exactly at the threshold is kept
    edge = _tx(TransactionKind.SWAP, swap=_swap(native_input=10_000_000))
    assert extract_trade(edge, native_price=100.0).amount == 1


def test_custom_dust_threshold():
    tx = _tx(TransactionKind.SWAP, swap=_swap(native_input=SOL))
    assert extract_trade(tx, native_price=100.0, dust_threshold=2.0) is None
    assert extract_trade(tx, native_price=100.0, dust_threshold=0.5).amount == 100


def test_non_swap_kinds_are_ignored():
    swap = _swap(native_input=10 * SOL)
    for kind in (TransactionKind.DEPLOYMENT, TransactionKind.LOADER_INVOCATION, TransactionKind.UNCLASSIFIED):
        assert extract_trade(_tx(kind, swap=swap), native_price=100.0) is None


def test_amount_is_rounded():
    tx = _tx(TransactionKind.SWAP, swap=_swap(native_input=1_234_567_890))
    assert extract_trade(tx, native_price=100.0).amount == 123


def test_missing_timestamp_uses_fallback():
    tx = _tx(TransactionKind.SWAP, timestamp=None, swap=_swap(native_input=SOL))
    assert extract_trade(tx, native_price=100.0, fallback_timestamp=1_699_999_000).timestamp == 1_699_999_000
    stamped = _tx(TransactionKind.SWAP, swap=_swap(native_input=SOL))
    assert extract_trade(stamped, 100.0, fallback_timestamp=5).timestamp == 1_700_000_000
