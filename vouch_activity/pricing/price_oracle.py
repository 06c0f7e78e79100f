"""
SOL/USD price oracle with a one-minute quote cache and a static fallback.

One upstream attempt per refresh (no retry): a timely fallback beats waiting.
On failure the previous quote is reused; with no quote at all the configured
conservative default is returned. get_price() never raises.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import httpx

from vouch_activity.config.settings import COINGECKO_SIMPLE_PRICE_URL, DEFAULT_SOL_USD_FALLBACK
from vouch_activity.core.cache import PRICE_CACHE_TTL_SEC
from vouch_activity.core.exceptions import PriceUnavailable
from vouch_activity.vouch_logging import get_logger

logger = get_logger(__name__)

COINGECKO_SOL_ID = "solana"


@dataclass(frozen=True)
class PriceQuote:
    usd: float
    fetched_at: float


class PriceOracle:
    def __init__(
        self,
        *,
        url: str = COINGECKO_SIMPLE_PRICE_URL,
        api_key: str | None = None,
        fallback_usd: float = DEFAULT_SOL_USD_FALLBACK,
        ttl_sec: float = PRICE_CACHE_TTL_SEC,
        timeout_sec: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._fallback = fallback_usd
        self._ttl = ttl_sec
        self._timeout = timeout_sec
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_sec)
        self._clock = clock
        self._quote: PriceQuote | None = None

    @property
    def quote(self) -> PriceQuote | None:
        return self._quote

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"x-cg-demo-api-key": self._api_key}
        return {}

    async def _fetch(self) -> float:
        try:
            r = await self._http.get(
                self._url,
                params={"ids": COINGECKO_SOL_ID, "vs_currencies": "usd"},
                headers=self._headers(),
                timeout=self._timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PriceUnavailable(f"price request failed: {e.__class__.__name__}: {e}") from e
        try:
            price = float(data[COINGECKO_SOL_ID]["usd"])
        except (KeyError, TypeError, ValueError) as e:
            raise PriceUnavailable(f"unexpected price payload: {data!r}") from e
        if price <= 0:
            raise PriceUnavailable(f"non-positive price: {price}")
        return price

    async def get_price(self) -> float:
        """Return SOL/USD: fresh cache, else one fetch, else last quote, else default."""
        quote = self._quote
        now = self._clock()
        if quote is not None and now - quote.fetched_at < self._ttl:
            return quote.usd

        try:
            price = await self._fetch()
        except PriceUnavailable as e:
            if quote is not None:
                logger.warning("price_fetch_failed_using_stale", error=str(e), stale_usd=quote.usd)
                return quote.usd
            logger.warning("price_fetch_failed_using_default", error=str(e), default_usd=self._fallback)
            return self._fallback

        self._quote = PriceQuote(usd=price, fetched_at=self._clock())
        logger.debug("price_refreshed", usd=price)
        return price
