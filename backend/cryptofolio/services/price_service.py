"""
Price service for the Bitazza Level1 summary feed.

Current prices are resolved through a fallback chain:

1. In-process cache (fresh snapshot)
2. In-process cache (stale snapshot, after repeated feed failures)
3. Minimum spacing between feed calls
4. Cryptocurrency store
5. External price feed
6. Seeded store defaults or static mock prices

The cache and failure counter live in a single process-wide ``PriceCache``
shared by the request-scoped ``PriceService`` instances. Every mutation is a
plain attribute assignment, so no locking is needed on the event loop.
"""
import asyncio
import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional

import aiohttp
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.config import Settings, settings as app_settings
from cryptofolio.database import get_db
from cryptofolio.services.crypto_catalog import KNOWN_SYMBOLS, mock_prices
from cryptofolio.services.cryptocurrency_service import CryptocurrencyService

logger = logging.getLogger(__name__)

PriceMap = Dict[str, Dict[str, float]]

FEED_HEADERS = {
    "User-Agent": "Portfolio-API/1.0",
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}


class PriceServiceError(HTTPException):
    """Price lookup failure that could not be absorbed by any fallback."""
    pass


class PriceRateLimitExceeded(PriceServiceError):
    """Raised when prices are requested faster than the feed may be called."""

    def __init__(self, detail: str, retry_after: Optional[int] = None):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail, headers=headers)
        self.retry_after = retry_after


class PriceFeedTimeout(PriceServiceError):
    """Raised when the price feed does not answer within the deadline."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            detail="Request timeout - Bitazza API is not responding"
        )


class PriceFeedUnavailable(PriceServiceError):
    """Raised when the price feed answers with a server error."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Bitazza API server error"
        )


class InvalidFeedResponse(ValueError):
    """The price feed answered with a payload that carries no usable prices."""
    pass


class PriceCache:
    """Last served price snapshot plus feed failure bookkeeping."""

    def __init__(self):
        self.prices: Optional[PriceMap] = None
        self.expires_at: float = 0.0
        self.consecutive_failures: int = 0
        self.last_call_time: float = 0.0

    def is_fresh(self, now: float) -> bool:
        return self.prices is not None and now < self.expires_at

    def store(self, prices: PriceMap, expires_at: float) -> None:
        self.prices = prices
        self.expires_at = expires_at

    def clear(self) -> None:
        """Forget the snapshot and all failure/rate-limit state."""
        self.prices = None
        self.expires_at = 0.0
        self.consecutive_failures = 0
        self.last_call_time = 0.0


# Shared by every request handler in this process
price_cache = PriceCache()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_or_zero(value: Any) -> float:
    return float(value) if _is_number(value) else 0.0


def parse_array_response(data: List[Any]) -> PriceMap:
    """
    Normalize the tuple-array feed shape.

    Each item is ``[instrument_id, symbol, price, change, change_percent, volume]``.
    The shape carries no daily range, so high and low both equal the price.
    """
    prices: PriceMap = {}
    for item in data:
        if not isinstance(item, (list, tuple)) or len(item) < 3:
            continue
        symbol, current_price = item[1], item[2]
        if not symbol or not _is_number(current_price):
            continue
        fields = list(item) + [None] * (6 - len(item))
        prices[symbol] = {
            "price": float(current_price),
            "change": _number_or_zero(fields[3]),
            "changePercent": _number_or_zero(fields[4]),
            "high": float(current_price),
            "low": float(current_price),
            "volume": _number_or_zero(fields[5]),
        }
    return prices


def parse_object_response(data: Dict[str, Any]) -> PriceMap:
    """Normalize the ``{"d": [{"s", "c", "pc", "pcp", "h", "l", "v"}]}`` feed shape."""
    prices: PriceMap = {}
    for item in data.get("d") or []:
        if not isinstance(item, dict):
            continue
        symbol, current_price = item.get("s"), item.get("c")
        if not symbol or not _is_number(current_price):
            continue
        prices[symbol] = {
            "price": float(current_price),
            "change": _number_or_zero(item.get("pc")),
            "changePercent": _number_or_zero(item.get("pcp")),
            "high": _number_or_zero(item.get("h")),
            "low": _number_or_zero(item.get("l")),
            "volume": _number_or_zero(item.get("v")),
        }
    return prices


def normalize_feed_response(payload: Any) -> PriceMap:
    """
    Convert either accepted feed payload into a price mapping.

    Raises:
        InvalidFeedResponse: If the payload has neither shape or yields no prices
    """
    if isinstance(payload, list):
        logger.info(f"Processing array format response with {len(payload)} items...")
        prices = parse_array_response(payload)
    elif isinstance(payload, dict) and isinstance(payload.get("d"), list):
        logger.info(f"Processing object format response with {len(payload['d'])} items...")
        prices = parse_object_response(payload)
    else:
        logger.warning(f"Unexpected API response structure: {str(payload)[:200]}")
        raise InvalidFeedResponse("Invalid API response structure")

    if not prices:
        raise InvalidFeedResponse("No valid price data received from API")
    return prices


class PriceService:
    """Resolve current prices through cache, store, feed and static fallbacks."""

    def __init__(
        self,
        cryptocurrency_service: CryptocurrencyService,
        cache: Optional[PriceCache] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cryptocurrency_service = cryptocurrency_service
        self.cache = cache if cache is not None else price_cache
        self.config = config or app_settings
        self._clock = clock
        self.api_url = self.config.bitazza_api_url
        self.max_failures = self.config.price_max_consecutive_failures

    async def get_current_prices(self) -> PriceMap:
        """
        Return the mapping ``symbol -> {price, change, changePercent, high, low, volume}``.

        Raises:
            PriceRateLimitExceeded: Feed called again too soon with nothing cached,
                or the feed itself rate limited us
            PriceFeedTimeout: Feed did not answer in time and nothing is cached
            PriceFeedUnavailable: Feed returned a server error and nothing is cached
        """
        now = self._clock()
        cache = self.cache

        if cache.is_fresh(now):
            logger.info(f"Returning cached prices for {len(cache.prices)} symbols")
            return cache.prices

        if cache.prices is not None and cache.consecutive_failures >= self.max_failures:
            logger.warning("Returning expired cached data due to consecutive failures")
            return cache.prices

        min_interval = self.config.price_min_call_interval_seconds
        elapsed = now - cache.last_call_time
        if elapsed < min_interval:
            if cache.prices is not None:
                logger.warning("Rate limit hit, returning cached data")
                return cache.prices
            wait_seconds = max(1, math.ceil(min_interval - elapsed))
            raise PriceRateLimitExceeded(
                detail=f"Rate limit exceeded. Please wait {wait_seconds} seconds.",
                retry_after=wait_seconds
            )

        try:
            db_prices = await self.cryptocurrency_service.get_prices()
            if db_prices:
                logger.info(f"Returning {len(db_prices)} prices from database")
                return db_prices
        except Exception as e:
            logger.warning(f"Failed to get prices from database, trying API: {e}")

        if self._should_use_mock_data():
            return self.get_mock_prices()

        try:
            cache.last_call_time = now
            logger.info("Fetching prices from Bitazza API...")
            payload = await self._request_feed()
            prices = normalize_feed_response(payload)

            await self.cryptocurrency_service.update_from_api_data(prices)

            cache.store(prices, now + self.config.price_cache_ttl_seconds)
            cache.consecutive_failures = 0
            logger.info(f"Successfully fetched and updated prices for {len(prices)} symbols")
            return prices

        except Exception as e:
            logger.error(f"Failed to fetch price data: {e!r}")
            cache.consecutive_failures += 1

            if cache.prices is not None:
                logger.warning("Returning cached data due to API error")
                return cache.prices

            if cache.consecutive_failures >= self.max_failures:
                logger.warning("Too many consecutive failures, using mock data")
                return self.get_mock_prices()

            if isinstance(e, asyncio.TimeoutError):
                raise PriceFeedTimeout() from e
            if isinstance(e, aiohttp.ClientResponseError):
                if e.status == status.HTTP_429_TOO_MANY_REQUESTS:
                    raise PriceRateLimitExceeded(detail="API rate limit exceeded") from e
                if e.status >= 500:
                    raise PriceFeedUnavailable() from e

            return await self._fallback_to_seeded_data(now)

    async def _request_feed(self) -> Any:
        """Call the price feed once and return the decoded JSON payload."""
        timeout = aiohttp.ClientTimeout(total=self.config.price_request_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout, headers=FEED_HEADERS) as session:
            async with session.get(self.api_url) as response:
                response.raise_for_status()
                return await response.json(content_type=None)

    async def _fallback_to_seeded_data(self, now: float) -> PriceMap:
        """Seed an empty store with defaults and serve them; mock prices otherwise."""
        try:
            db_prices = await self.cryptocurrency_service.get_prices()
            if not db_prices:
                logger.info("Database is empty, seeding initial data...")
                await self.cryptocurrency_service.seed_initial_data()
                seeded_prices = await self.cryptocurrency_service.get_prices()
                if seeded_prices:
                    self.cache.store(seeded_prices, now + self.config.price_seed_cache_ttl_seconds)
                    return seeded_prices
        except Exception as e:
            logger.error(f"Failed to seed initial data: {e}")

        logger.warning("Using mock data as final fallback")
        return self.get_mock_prices()

    def _should_use_mock_data(self) -> bool:
        return (
            self.config.price_use_mock_data
            or self.cache.consecutive_failures >= self.max_failures
        )

    def get_mock_prices(self) -> PriceMap:
        """Serve the static price set, caching it and clearing the failure count."""
        prices = mock_prices()
        self.cache.store(prices, self._clock() + self.config.price_mock_cache_ttl_seconds)
        self.cache.consecutive_failures = 0
        logger.info("Using mock price data")
        return prices

    async def get_specific_price(self, symbol: str) -> float:
        """Current price for one symbol, or 0 when it is unknown or unavailable."""
        try:
            prices = await self.get_current_prices()
        except Exception as e:
            logger.error(f"Failed to get price for {symbol}: {e}")
            return 0.0

        price = prices.get(symbol, {}).get("price")
        if not _is_number(price):
            logger.warning(f"Price not found for symbol: {symbol}")
            return 0.0
        return float(price)

    async def get_available_symbols(self) -> List[str]:
        """Stored symbols, else the symbols of the current prices, else the static list."""
        try:
            db_symbols = await self.cryptocurrency_service.get_symbols()
            if db_symbols:
                return db_symbols
            prices = await self.get_current_prices()
            return list(prices.keys())
        except Exception as e:
            logger.error(f"Failed to get available symbols: {e}")
            return list(KNOWN_SYMBOLS)


def get_cryptocurrency_service(db: AsyncSession = Depends(get_db)) -> CryptocurrencyService:
    return CryptocurrencyService(db)


def get_price_service(
    cryptocurrency_service: CryptocurrencyService = Depends(get_cryptocurrency_service),
) -> PriceService:
    """Dependency providing a request-scoped PriceService over the shared cache."""
    return PriceService(cryptocurrency_service)
