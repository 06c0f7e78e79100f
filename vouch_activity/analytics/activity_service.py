"""
Activity service: deployed programs and trading volume for a wallet.

Pipeline (both operations):
    validate -> mock-data check -> cache -> signatures -> parse batches
    -> classify -> (enrich | aggregate) -> cache -> ActivityResponse

One ActivityService is built per process (from_settings) and owns the Helius
client, the price oracle and the response cache. Parse batches run one after
another; program enrichment runs in bounded groups. A failed signature listing
or parse batch is logged and surfaces as partial=True; callers never see raw
exceptions.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from typing import Any, Awaitable, Callable, Sequence

from vouch_activity.analytics.classifier import DUST_THRESHOLD_SOL, detect_program_deployment, extract_trade
from vouch_activity.analytics.mock_data import mock_programs, mock_trading_volume
from vouch_activity.analytics.models import (
    ActivityResponse,
    ProgramDeploymentCandidate,
    ProgramRecord,
    TradeRecord,
    TradingVolume,
    iso_from_unix,
)
from vouch_activity.analytics.valuation import RetryPolicy, estimate_program_tvl
from vouch_activity.config.settings import ActivitySettings, get_settings
from vouch_activity.core.cache import ResponseCache, make_cache_key
from vouch_activity.core.concurrency import chunked, map_bounded
from vouch_activity.core.exceptions import ActivityError, InvalidParameter, ValidationError
from vouch_activity.core.retry import with_retry
from vouch_activity.helius.client import PARSE_BATCH_SIZE, HeliusClient
from vouch_activity.helius.models import ParsedTransaction, SignatureInfo
from vouch_activity.pricing.price_oracle import PriceOracle
from vouch_activity.utils.wallet_utils import validate_wallet_address
from vouch_activity.vouch_logging import bind_wallet, get_logger, short_wallet

logger = get_logger(__name__)

PROGRAM_SIGNATURE_LIMIT = 500
TRADE_SIGNATURE_LIMIT = 1000
MAX_TRADE_AMOUNTS = 20
MAX_DISPLAY_TRADES = 10
MIN_DAYS_BACK = 1
MAX_DAYS_BACK = 365
SECONDS_PER_DAY = 86_400

OP_PROGRAMS = "programs"
OP_TRADING_VOLUME = "trading_volume"


def validate_days_back(days_back: Any) -> int:
    if isinstance(days_back, bool) or not isinstance(days_back, int):
        raise InvalidParameter(f"days_back must be an integer, got {days_back!r}")
    if not MIN_DAYS_BACK <= days_back <= MAX_DAYS_BACK:
        raise InvalidParameter(f"days_back must be between {MIN_DAYS_BACK} and {MAX_DAYS_BACK}, got {days_back}")
    return days_back


def _earlier(a: ProgramDeploymentCandidate, b: ProgramDeploymentCandidate) -> ProgramDeploymentCandidate:
    """Candidate with the earlier known timestamp; a wins ties and unknowns."""
    if b.timestamp is None:
        return a
    if a.timestamp is None or b.timestamp < a.timestamp:
        return b
    return a


class ActivityService:
    """
    Wallet activity ingestion over Helius.

    helius may be None only when settings select mock data. sleep and now are
    injectable for tests.
    """

    def __init__(
        self,
        settings: ActivitySettings,
        helius: HeliusClient | None,
        price_oracle: PriceOracle,
        cache: ResponseCache[ActivityResponse[Any]] | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        now: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._helius = helius
        self._price = price_oracle
        self._cache = cache if cache is not None else ResponseCache(settings.activity_cache_ttl_sec)
        self._now = now
        self._retry = RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_sec,
            sleep=sleep,
        )

    @classmethod
    def from_settings(cls, settings: ActivitySettings | None = None) -> "ActivityService":
        settings = settings or get_settings()
        helius = None
        if not settings.use_mock_data and settings.helius_rpc_url:
            helius = HeliusClient(
                settings.helius_rpc_url,
                settings.helius_api_base,
                settings.helius_api_key,
                timeout_sec=settings.request_timeout_sec,
            )
        oracle = PriceOracle(
            url=settings.coingecko_url,
            api_key=settings.coingecko_api_key,
            fallback_usd=settings.sol_usd_fallback,
            ttl_sec=settings.price_cache_ttl_sec,
            timeout_sec=settings.request_timeout_sec,
        )
        logger.info(
            "activity_service_created",
            network=settings.solana_network,
            mock_data=helius is None,
        )
        return cls(settings, helius, oracle)

    @property
    def settings(self) -> ActivitySettings:
        return self._settings

    @property
    def uses_mock_data(self) -> bool:
        return self._settings.use_mock_data or self._helius is None

    @property
    def cache(self) -> ResponseCache[ActivityResponse[Any]]:
        return self._cache

    async def __aenter__(self) -> "ActivityService":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._helius is not None:
            await self._helius.aclose()
        await self._price.aclose()

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def get_deployed_programs(self, wallet: str) -> ActivityResponse[list[ProgramRecord]]:
        """Programs deployed by wallet, valued and sorted by TVL (highest first)."""
        try:
            address = str(validate_wallet_address(wallet))
        except ValidationError as e:
            logger.info("activity_validation_failed", op=OP_PROGRAMS, error=e.message)
            return ActivityResponse.rejected(e.message)
        try:
            return await self._deployed_programs(address)
        except Exception as e:
            logger.error("deployed_programs_failed", wallet_id=short_wallet(address), error=str(e), exc_info=True)
            return ActivityResponse.failure(str(e) or e.__class__.__name__)

    async def get_trading_volume(self, wallet: str, days_back: int = 30) -> ActivityResponse[TradingVolume]:
        """Swap volume (USD) for wallet over the last days_back days."""
        try:
            address = str(validate_wallet_address(wallet))
            days = validate_days_back(days_back)
        except ValidationError as e:
            logger.info("activity_validation_failed", op=OP_TRADING_VOLUME, error=e.message)
            return ActivityResponse.rejected(e.message)
        try:
            return await self._trading_volume(address, days)
        except Exception as e:
            logger.error("trading_volume_failed", wallet_id=short_wallet(address), error=str(e), exc_info=True)
            return ActivityResponse.failure(str(e) or e.__class__.__name__)

    # -------------------------------------------------------------------------
    # Shared steps
    # -------------------------------------------------------------------------

    async def _retried(self, operation: Callable[[], Awaitable[Any]], op_name: str) -> Any:
        return await with_retry(
            operation,
            max_attempts=self._retry.max_attempts,
            base_delay=self._retry.base_delay,
            sleep=self._retry.sleep,
            op_name=op_name,
        )

    async def _list_signatures(
        self,
        wallet: str,
        limit: int,
        cutoff_ts: int | None = None,
    ) -> tuple[list[SignatureInfo], bool]:
        """(successful signatures, ok). A final failure yields ([], False)."""
        helius = self._client()
        log = bind_wallet(wallet)
        try:
            sigs = await self._retried(
                lambda: helius.list_signatures(wallet, limit, cutoff_ts),
                "list_signatures",
            )
        except ActivityError as e:
            log.warning("signatures_fetch_failed", error=e.message, retryable=e.retryable)
            return [], False
        # failed transactions never deploy a program or settle a trade
        return [s for s in sigs if s.err is None], True

    async def _parse_batches(
        self,
        wallet: str,
        signatures: Sequence[SignatureInfo],
    ) -> tuple[list[list[ParsedTransaction]], bool]:
        """Parse signatures batch by batch; a failed batch is skipped and reported."""
        helius = self._client()
        log = bind_wallet(wallet)
        batches = chunked([s.signature for s in signatures], PARSE_BATCH_SIZE)
        parsed: list[list[ParsedTransaction]] = []
        ok = True
        for index, batch in enumerate(batches):
            try:
                txs = await self._retried(
                    lambda batch=batch: helius.parse_transactions(batch),
                    "parse_transactions",
                )
            except ActivityError as e:
                ok = False
                log.warning(
                    "parse_batch_failed",
                    batch=index,
                    batch_count=len(batches),
                    size=len(batch),
                    error=e.message,
                )
                continue
            parsed.append(txs)
        return parsed, ok

    def _client(self) -> HeliusClient:
        if self._helius is None:
            raise RuntimeError("Helius client is not configured; live lookups need HELIUS_API_KEY on mainnet")
        return self._helius

    def _store(self, key: str, response: ActivityResponse[Any]) -> None:
        # only complete results are reused; degraded ones are retried next call
        if not response.partial:
            self._cache.set(key, response)

    def _cached(self, key: str, wallet: str) -> ActivityResponse[Any] | None:
        hit = self._cache.get(key)
        if hit is not None:
            bind_wallet(wallet).debug("activity_cache_hit", key=key.split(":", 1)[0])
        return hit

    # -------------------------------------------------------------------------
    # Deployed programs
    # -------------------------------------------------------------------------

    async def _deployed_programs(self, wallet: str) -> ActivityResponse[list[ProgramRecord]]:
        log = bind_wallet(wallet)
        if self.uses_mock_data:
            log.info("activity_mock_data", op=OP_PROGRAMS)
            return ActivityResponse(success=True, data=mock_programs(wallet, self._now()))

        key = make_cache_key(OP_PROGRAMS, wallet)
        cached = self._cached(key, wallet)
        if cached is not None:
            return cached

        signatures, sig_ok = await self._list_signatures(wallet, PROGRAM_SIGNATURE_LIMIT)
        block_times = {s.signature: s.block_time for s in signatures}
        batches, parse_ok = await self._parse_batches(wallet, signatures)

        candidates: dict[str, ProgramDeploymentCandidate] = {}
        for txs in batches:
            for tx in txs:
                found = detect_program_deployment(tx, wallet)
                if found is None:
                    continue
                if found.timestamp is None:
                    found = dataclasses.replace(found, timestamp=block_times.get(tx.signature))
                current = candidates.get(found.address)
                candidates[found.address] = found if current is None else _earlier(current, found)

        records: list[ProgramRecord] = []
        if candidates:
            native_price = await self._price.get_price()
            records = await map_bounded(
                list(candidates.values()),
                lambda c: self._enrich(c, wallet, native_price),
                self._settings.enrichment_concurrency,
            )
            records.sort(key=lambda r: r.estimated_tvl, reverse=True)

        partial = not (sig_ok and parse_ok)
        response = ActivityResponse(success=True, data=records, partial=partial)
        self._store(key, response)
        log.info("deployed_programs_done", programs=len(records), signatures=len(signatures), partial=partial)
        return response

    async def _enrich(
        self,
        candidate: ProgramDeploymentCandidate,
        deployer: str,
        native_price: float,
    ) -> ProgramRecord:
        helius = self._client()
        tvl = await estimate_program_tvl(helius, candidate.address, native_price, self._retry)
        ts = candidate.timestamp if candidate.timestamp is not None else self._now()
        return ProgramRecord(
            address=candidate.address,
            name=candidate.name,
            deployed_at=iso_from_unix(ts),
            deployer=deployer,
            estimated_tvl=tvl,
        )

    # -------------------------------------------------------------------------
    # Trading volume
    # -------------------------------------------------------------------------

    async def _trading_volume(self, wallet: str, days_back: int) -> ActivityResponse[TradingVolume]:
        log = bind_wallet(wallet)
        if self.uses_mock_data:
            log.info("activity_mock_data", op=OP_TRADING_VOLUME, days_back=days_back)
            return ActivityResponse(success=True, data=mock_trading_volume(wallet, days_back))

        key = make_cache_key(OP_TRADING_VOLUME, wallet, days_back)
        cached = self._cached(key, wallet)
        if cached is not None:
            return cached

        cutoff = int(self._now()) - days_back * SECONDS_PER_DAY
        # one price snapshot values every trade and sets the dust threshold
        native_price, (signatures, sig_ok) = await asyncio.gather(
            self._price.get_price(),
            self._list_signatures(wallet, TRADE_SIGNATURE_LIMIT, cutoff),
        )
        block_times = {s.signature: s.block_time for s in signatures}
        batches, parse_ok = await self._parse_batches(wallet, signatures)

        now_ts = int(self._now())
        trades: list[TradeRecord] = []
        for txs in batches:
            for tx in txs:
                block_time = block_times.get(tx.signature)
                trade = extract_trade(
                    tx,
                    native_price,
                    DUST_THRESHOLD_SOL,
                    fallback_timestamp=block_time if block_time is not None else now_ts,
                )
                if trade is not None:
                    trades.append(trade)
        trades.sort(key=lambda t: t.amount, reverse=True)

        volume = TradingVolume(
            total_volume=sum(t.amount for t in trades),
            trade_count=len(trades),
            amounts=[t.amount for t in trades[:MAX_TRADE_AMOUNTS]],
            period=days_back,
            wallet=wallet,
            trades=trades[:MAX_DISPLAY_TRADES],
        )
        partial = not (sig_ok and parse_ok)
        response = ActivityResponse(success=True, data=volume, partial=partial)
        self._store(key, response)
        log.info(
            "trading_volume_done",
            trades=volume.trade_count,
            total_volume=volume.total_volume,
            days_back=days_back,
            native_price=native_price,
            partial=partial,
        )
        return response
