"""
Tests for the async Helius client (helius.client) against httpx.MockTransport.
"""

from __future__ import annotations

import json

import httpx
import pytest

from vouch_activity.core.exceptions import UpstreamRejected, UpstreamTransient
from vouch_activity.helius.client import PARSE_BATCH_SIZE, HeliusClient
from vouch_activity.helius.models import TransactionKind

RPC_URL = "https://rpc.test/?api-key=test-key"
API_BASE = "https://api.test"
WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def _client(handler) -> HeliusClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HeliusClient(RPC_URL, API_BASE, "test-key", http_client=http)


def _rpc_result(request: httpx.Request, result) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _sig_items(start: int, count: int, block_time: int = 1_700_000_000) -> list[dict]:
    return [
        {"signature": f"sig{n}", "slot": n, "err": None, "blockTime": block_time - n}
        for n in range(start, start + count)
    ]


@pytest.mark.asyncio
async def test_list_signatures_paginates_with_before():
    params_seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["method"] == "getSignaturesForAddress"
        wallet, opts = body["params"]
        assert wallet == WALLET
        params_seen.append(opts)
        if "before" not in opts:
            return _rpc_result(request, _sig_items(0, opts["limit"]))
        assert opts["before"] == "sig999"
        return _rpc_result(request, _sig_items(1000, opts["limit"]))

    async with _client(handler) as client:
        sigs = await client.list_signatures(WALLET, 1500)

    assert len(sigs) == 1500
    assert sigs[0].signature == "sig0"
    assert sigs[-1].signature == "sig1499"
    assert [p["limit"] for p in params_seen] == [1000, 500]


@pytest.mark.asyncio
async def test_list_signatures_stops_at_end_of_history():
    def handler(request: httpx.Request) -> httpx.Response:
        return _rpc_result(request, _sig_items(0, 3))

    async with _client(handler) as client:
        sigs = await client.list_signatures(WALLET, 500)
    assert [s.signature for s in sigs] == ["sig0", "sig1", "sig2"]


@pytest.mark.asyncio
async def test_list_signatures_cutoff_drops_old_and_unknown_times():
    pages = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        pages["n"] += 1
        items = [
            {"signature": "new", "slot": 3, "err": None, "blockTime": 2000},
            {"signature": "unknown", "slot": 2, "err": None, "blockTime": None},
            {"signature": "old", "slot": 1, "err": None, "blockTime": 500},
        ]
        return _rpc_result(request, items)

    async with _client(handler) as client:
        sigs = await client.list_signatures(WALLET, 3, cutoff_ts=1000)
    assert [s.signature for s in sigs] == ["new"]
    assert pages["n"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 503])
async def test_transient_http_status(status):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="busy")

    async with _client(handler) as client:
        with pytest.raises(UpstreamTransient) as exc_info:
            await client.list_signatures(WALLET, 10)
    assert exc_info.value.status_code == status
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 404])
async def test_rejected_http_status(status):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="nope")

    async with _client(handler) as client:
        with pytest.raises(UpstreamRejected):
            await client.get_native_balance(WALLET)


@pytest.mark.asyncio
async def test_timeout_is_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with _client(handler) as client:
        with pytest.raises(UpstreamTransient, match="timeout"):
            await client.list_signatures(WALLET, 10)


@pytest.mark.asyncio
async def test_rpc_error_codes():
    codes = iter([-32005, -32602])

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        code = next(codes)
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": code, "message": "err"}}
        )

    async with _client(handler) as client:
        with pytest.raises(UpstreamTransient):
            await client.get_native_balance(WALLET)
        with pytest.raises(UpstreamRejected):
            await client.get_native_balance(WALLET)


@pytest.mark.asyncio
async def test_invalid_json_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    async with _client(handler) as client:
        with pytest.raises(UpstreamRejected, match="invalid JSON"):
            await client.get_native_balance(WALLET)


@pytest.mark.asyncio
async def test_parse_transactions_posts_batch_and_decodes():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=[
                {"signature": "s1", "type": "SWAP", "source": "JUPITER", "timestamp": 1_700_000_000},
                {"type": "TRANSFER"},  # no signature: skipped
            ],
        )

    async with _client(handler) as client:
        txs = await client.parse_transactions(["s1", "s2"])

    assert seen["url"] == f"{API_BASE}/v0/transactions?api-key=test-key"
    assert seen["body"] == {"transactions": ["s1", "s2"]}
    assert len(txs) == 1
    assert txs[0].kind is TransactionKind.SWAP


@pytest.mark.asyncio
async def test_parse_transactions_batch_limit():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _client(handler) as client:
        assert await client.parse_transactions([]) == []
        with pytest.raises(ValueError):
            await client.parse_transactions([f"s{i}" for i in range(PARSE_BATCH_SIZE + 1)])


@pytest.mark.asyncio
async def test_get_assets_by_owner_sums_priced_holdings():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["method"] == "getAssetsByOwner"
        assert body["params"]["displayOptions"]["showNativeBalance"] is True
        return _rpc_result(
            request,
            {
                "items": [
                    {"id": "a", "token_info": {"price_info": {"total_price": 1200.5}}},
                    {"id": "b", "token_info": {"price_info": {"total_price": "299.5"}}},
                    {"id": "c", "token_info": {"balance": 5}},
                    {"id": "nft"},
                ],
                "nativeBalance": {"lamports": 2_000_000_000},
            },
        )

    async with _client(handler) as client:
        holdings = await client.get_assets_by_owner(WALLET)

    assert holdings.total_token_value == pytest.approx(1500.0)
    assert holdings.priced_assets == 2
    assert holdings.native_lamports == 2_000_000_000


@pytest.mark.asyncio
async def test_get_native_balance():
    def handler(request: httpx.Request) -> httpx.Response:
        return _rpc_result(request, {"context": {"slot": 1}, "value": 5_000_000})

    async with _client(handler) as client:
        assert await client.get_native_balance(WALLET) == 5_000_000


def test_empty_rpc_url_rejected():
    with pytest.raises(ValueError):
        HeliusClient("  ", API_BASE, "k")


@pytest.mark.asyncio
async def test_list_signatures_skips_malformed_items():
    def handler(request: httpx.Request) -> httpx.Response:
        items = [
            {"signature": "bad_slot", "slot": "abc", "err": None, "blockTime": 2000},
            {"signature": "bad_time", "slot": 2, "err": None, "blockTime": {"t": 1}},
            {"slot": 3, "err": None, "blockTime": 2000},
            {"signature": "good", "slot": 4, "err": None, "blockTime": 2000},
        ]
        return _rpc_result(request, items)

    async with _client(handler) as client:
        sigs = await client.list_signatures(WALLET, 10)

    assert [s.signature for s in sigs] == ["good"]
    assert sigs[0].slot == 4


@pytest.mark.asyncio
async def test_get_assets_by_owner_ignores_malformed_items():
    def handler(request: httpx.Request) -> httpx.Response:
        return _rpc_result(
            request,
            {
                "items": [
                    {"id": "a", "token_info": "junk"},
                    {"id": "b", "token_info": {"price_info": [1]}},
                    {"id": "c", "token_info": {"price_info": {"total_price": "nan"}}},
                    {"id": "d", "token_info": {"price_info": {"total_price": 10}}},
                ],
            },
        )

    async with _client(handler) as client:
        holdings = await client.get_assets_by_owner(WALLET)

    assert holdings.total_token_value == 10.0
    assert holdings.priced_assets == 1
    assert holdings.native_lamports is None


@pytest.mark.asyncio
async def test_get_assets_by_owner_bad_native_balance_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return _rpc_result(request, {"items": 5, "nativeBalance": {"lamports": "lots"}})

    async with _client(handler) as client:
        with pytest.raises(UpstreamRejected):
            await client.get_assets_by_owner(WALLET)
