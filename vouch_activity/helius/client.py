"""
Async Helius client: signatures, enhanced transaction parsing, holdings.

Endpoints:
- RPC getSignaturesForAddress (paginated with `before`, <= 1000 per page)
- POST /v0/transactions (enhanced parse, <= 100 signatures per call)
- RPC getAssetsByOwner (DAS; fungible + native balance with prices)
- RPC getBalance

Every failure is raised as UpstreamTransient (timeouts, network errors, 429,
5xx, JSON-RPC server errors) or UpstreamRejected (other 4xx, JSON-RPC client
errors, malformed payloads). Retrying is the caller's job (core.retry).
"""

from __future__ import annotations

import itertools
import math
from typing import Any, Sequence

import httpx

from vouch_activity.config.env import mask_api_key
from vouch_activity.core.exceptions import UpstreamRejected, UpstreamTransient
from vouch_activity.helius.models import AssetHoldings, ParsedTransaction, SignatureInfo
from vouch_activity.helius.parser import decode_transactions
from vouch_activity.vouch_logging import get_logger, short_wallet

logger = get_logger(__name__)

SIGNATURES_PAGE_LIMIT = 1000
PARSE_BATCH_SIZE = 100
ASSETS_PAGE_LIMIT = 1000
DEFAULT_TIMEOUT_SEC = 30.0

# JSON-RPC codes that indicate an overloaded or lagging node
_TRANSIENT_RPC_CODES = frozenset({-32005, -32429, 429})
_RPC_SERVER_ERROR_RANGE = range(-32099, -31999)


def _transient_rpc_code(code: Any) -> bool:
    try:
        c = int(code)
    except (TypeError, ValueError):
        return False
    return c in _TRANSIENT_RPC_CODES or c in _RPC_SERVER_ERROR_RANGE


class HeliusClient:
    """
    Thin async wrapper over Helius RPC and the enhanced transactions API.

    Owns an httpx.AsyncClient unless one is passed in (tests inject a client
    built on httpx.MockTransport). Use as an async context manager or call
    aclose() when done.
    """

    def __init__(
        self,
        rpc_url: str,
        api_base: str,
        api_key: str | None,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url
        self._api_base = api_base.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout_sec
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_sec)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "HeliusClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        safe_url = mask_api_key(url)
        try:
            r = await self._http.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamTransient(f"Helius timeout: {safe_url}") from e
        except httpx.TransportError as e:
            raise UpstreamTransient(f"Helius network error: {e.__class__.__name__}") from e

        status = r.status_code
        if status == 429 or status >= 500:
            raise UpstreamTransient(f"Helius HTTP {status}", status_code=status)
        if status >= 400:
            raise UpstreamRejected(f"Helius HTTP {status}", status_code=status)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamRejected(f"Helius returned invalid JSON (HTTP {status})", status_code=status) from e

    async def _rpc(self, method: str, params: Any) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        data = await self._request("POST", self._rpc_url, json=body)
        if not isinstance(data, dict):
            raise UpstreamRejected(f"{method}: unexpected RPC payload")
        err = data.get("error")
        if err:
            code = err.get("code") if isinstance(err, dict) else None
            message = err.get("message") if isinstance(err, dict) else str(err)
            if _transient_rpc_code(code):
                raise UpstreamTransient(f"{method}: RPC error {code}: {message}")
            raise UpstreamRejected(f"{method}: RPC error {code}: {message}")
        return data.get("result")

    # -------------------------------------------------------------------------
    # Signatures
    # -------------------------------------------------------------------------

    async def list_signatures(
        self,
        wallet: str,
        limit: int,
        cutoff_ts: int | None = None,
    ) -> list[SignatureInfo]:
        """
        Return up to limit signatures for wallet, newest first.

        With cutoff_ts, only signatures with a known block time >= cutoff_ts
        are kept; unknown block times are dropped. Paging stops once a page
        reaches signatures older than the cutoff.
        """
        if limit < 1:
            return []
        out: list[SignatureInfo] = []
        before: str | None = None
        while len(out) < limit:
            page_limit = min(SIGNATURES_PAGE_LIMIT, limit - len(out))
            opts: dict[str, Any] = {"limit": page_limit}
            if before is not None:
                opts["before"] = before
            result = await self._rpc("getSignaturesForAddress", [wallet, opts])
            if not isinstance(result, list):
                raise UpstreamRejected("getSignaturesForAddress: result is not a list")
            if not result:
                break

            reached_cutoff = False
            for item in result:
                if not isinstance(item, dict):
                    continue
                try:
                    info = SignatureInfo.from_rpc_item(item)
                except ValueError as e:
                    logger.warning("helius_signature_skipped", error=str(e))
                    continue
                if cutoff_ts is not None:
                    if info.block_time is None:
                        continue
                    if info.block_time < cutoff_ts:
                        reached_cutoff = True
                        continue
                out.append(info)

            last = result[-1]
            before = last.get("signature") if isinstance(last, dict) else None
            if reached_cutoff or len(result) < page_limit or not before:
                break

        logger.debug("helius_signatures_listed", wallet=short_wallet(wallet), count=len(out), cutoff=cutoff_ts)
        return out[:limit]

    # -------------------------------------------------------------------------
    # Enhanced transactions
    # -------------------------------------------------------------------------

    async def parse_transactions(self, signatures: Sequence[str]) -> list[ParsedTransaction]:
        """Parse one batch (<= PARSE_BATCH_SIZE) of signatures via /v0/transactions."""
        if len(signatures) > PARSE_BATCH_SIZE:
            raise ValueError(f"at most {PARSE_BATCH_SIZE} signatures per parse call, got {len(signatures)}")
        if not signatures:
            return []
        url = f"{self._api_base}/v0/transactions?api-key={self._api_key or ''}"
        data = await self._request("POST", url, json={"transactions": list(signatures)})
        if not isinstance(data, list):
            raise UpstreamRejected("/v0/transactions: response is not a list")
        return decode_transactions(data)

    # -------------------------------------------------------------------------
    # Holdings
    # -------------------------------------------------------------------------

    async def get_assets_by_owner(self, owner: str) -> AssetHoldings:
        """Priced fungible holdings and native balance for owner (first page)."""
        result = await self._rpc(
            "getAssetsByOwner",
            {
                "ownerAddress": owner,
                "page": 1,
                "limit": ASSETS_PAGE_LIMIT,
                "displayOptions": {"showFungible": True, "showNativeBalance": True},
            },
        )
        if not isinstance(result, dict):
            raise UpstreamRejected("getAssetsByOwner: result is not an object")

        items = result.get("items")
        if not isinstance(items, list):
            items = []
        total = 0.0
        priced = 0
        for asset in items:
            if not isinstance(asset, dict):
                continue
            token_info = asset.get("token_info")
            price_info = token_info.get("price_info") if isinstance(token_info, dict) else None
            if not isinstance(price_info, dict) or price_info.get("total_price") is None:
                continue
            try:
                value = float(price_info["total_price"])
            except (TypeError, ValueError):
                continue
            if not math.isfinite(value):
                continue
            total += value
            priced += 1

        native = result.get("nativeBalance")
        native_lamports = None
        if isinstance(native, dict) and native.get("lamports") is not None:
            try:
                native_lamports = int(native["lamports"])
            except (TypeError, ValueError, OverflowError) as e:
                raise UpstreamRejected(f"getAssetsByOwner: bad nativeBalance {native['lamports']!r}") from e

        return AssetHoldings(
            owner=owner,
            total_token_value=total,
            native_lamports=native_lamports,
            priced_assets=priced,
        )

    async def get_native_balance(self, address: str) -> int:
        """Lamport balance via getBalance."""
        result = await self._rpc("getBalance", [address])
        value = result.get("value") if isinstance(result, dict) else result
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise UpstreamRejected(f"getBalance: unexpected value {value!r}") from e
