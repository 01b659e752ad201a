"""
Tests for the price service fallback chain.

The feed, the store and the clock are all replaced, so nothing here touches
the network or a database.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from cryptofolio.config import settings
from cryptofolio.services.crypto_catalog import KNOWN_SYMBOLS
from cryptofolio.services.cryptocurrency_service import CryptocurrencyService
from cryptofolio.services.price_service import (
    InvalidFeedResponse,
    PriceCache,
    PriceFeedTimeout,
    PriceFeedUnavailable,
    PriceRateLimitExceeded,
    PriceService,
    normalize_feed_response,
    parse_array_response,
)

pytestmark = pytest.mark.unit

ARRAY_PAYLOAD = [
    [1, "BTC_THB", 2500000, 50000, 2.04, 125.5],
    [2, "ETH_THB", 85000, -500, -0.58, 900],
]

OBJECT_PAYLOAD = {
    "d": [
        {"s": "BTC_THB", "c": 2500000, "pc": 50000, "pcp": 2.04,
         "h": 2500000, "l": 2500000, "v": 125.5},
        {"s": "ETH_THB", "c": 85000, "pc": -500, "pcp": -0.58,
         "h": 85000, "l": 85000, "v": 900},
    ]
}


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 10_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def response_error(status_code: int) -> aiohttp.ClientResponseError:
    return aiohttp.ClientResponseError(
        request_info=MagicMock(),
        history=(),
        status=status_code,
        message="upstream error",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache():
    return PriceCache()


@pytest.fixture
def crypto_service():
    service = AsyncMock(spec=CryptocurrencyService)
    service.get_prices.return_value = {}
    service.get_symbols.return_value = []
    return service


@pytest.fixture
def price_service(crypto_service, cache, clock):
    return PriceService(crypto_service, cache=cache, config=settings, clock=clock)


class TestFeedNormalization:
    """Both accepted feed shapes map to the same price mapping."""

    def test_array_and_object_shapes_agree(self):
        assert normalize_feed_response(ARRAY_PAYLOAD) == normalize_feed_response(OBJECT_PAYLOAD)

    def test_array_shape_uses_price_for_high_and_low(self):
        prices = parse_array_response(ARRAY_PAYLOAD)
        assert prices["BTC_THB"] == {
            "price": 2500000.0,
            "change": 50000.0,
            "changePercent": 2.04,
            "high": 2500000.0,
            "low": 2500000.0,
            "volume": 125.5,
        }

    def test_entries_without_symbol_or_numeric_price_are_skipped(self):
        payload = [
            [1, "", 100, 0, 0, 0],
            [2, "ADA_THB", "n/a", 0, 0, 0],
            [3, "SOL_THB", 4500],
        ]
        prices = normalize_feed_response(payload)
        assert list(prices) == ["SOL_THB"]
        assert prices["SOL_THB"]["change"] == 0.0
        assert prices["SOL_THB"]["volume"] == 0.0

    def test_object_shape_missing_fields_default_to_zero(self):
        prices = normalize_feed_response({"d": [{"s": "XRP_THB", "c": 18.5}]})
        assert prices["XRP_THB"]["high"] == 0.0
        assert prices["XRP_THB"]["changePercent"] == 0.0

    @pytest.mark.parametrize("payload", [{}, {"d": "nope"}, "text", None, [], {"d": []}])
    def test_unusable_payloads_are_rejected(self, payload):
        with pytest.raises(InvalidFeedResponse):
            normalize_feed_response(payload)


class TestCurrentPricesCache:
    """Cache behavior of get_current_prices."""

    @pytest.mark.asyncio
    async def test_second_call_within_ttl_returns_cached_value(self, price_service, clock):
        with patch.object(price_service, "_request_feed", AsyncMock(return_value=ARRAY_PAYLOAD)) as feed:
            first = await price_service.get_current_prices()
            clock.advance(10)
            second = await price_service.get_current_prices()

        assert second is first
        assert feed.await_count == 1

    @pytest.mark.asyncio
    async def test_expired_cache_triggers_new_fetch(self, price_service, clock):
        with patch.object(price_service, "_request_feed", AsyncMock(return_value=ARRAY_PAYLOAD)) as feed:
            await price_service.get_current_prices()
            clock.advance(16)
            await price_service.get_current_prices()

        assert feed.await_count == 2

    @pytest.mark.asyncio
    async def test_successful_fetch_persists_and_resets_failures(
        self, price_service, crypto_service, cache, clock
    ):
        cache.consecutive_failures = 3
        with patch.object(price_service, "_request_feed", AsyncMock(return_value=OBJECT_PAYLOAD)):
            prices = await price_service.get_current_prices()

        crypto_service.update_from_api_data.assert_awaited_once_with(prices)
        assert cache.consecutive_failures == 0
        assert cache.expires_at == clock.now + 15

    @pytest.mark.asyncio
    async def test_stale_cache_served_after_repeated_failures(self, price_service, crypto_service, cache):
        stale = {"BTC_THB": {"price": 1.0}}
        cache.store(stale, expires_at=0)
        cache.consecutive_failures = 5

        with patch.object(price_service, "_request_feed", AsyncMock()) as feed:
            prices = await price_service.get_current_prices()

        assert prices is stale
        feed.assert_not_awaited()
        crypto_service.get_prices.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_prices_are_served_before_the_feed(self, price_service, crypto_service):
        stored = {"BTC_THB": {"price": 2400000.0, "change": 0.0, "changePercent": 0.0,
                              "high": 0.0, "low": 0.0, "volume": 0.0}}
        crypto_service.get_prices.return_value = stored

        with patch.object(price_service, "_request_feed", AsyncMock()) as feed:
            prices = await price_service.get_current_prices()

        assert prices == stored
        feed.assert_not_awaited()


class TestRateLimit:
    """Minimum spacing between feed calls."""

    @pytest.mark.asyncio
    async def test_call_too_soon_without_cache_raises_429(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(side_effect=response_error(500))):
            with pytest.raises(PriceFeedUnavailable):
                await price_service.get_current_prices()

            with pytest.raises(PriceRateLimitExceeded) as exc_info:
                await price_service.get_current_prices()

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "Rate limit exceeded. Please wait 1 seconds."

    @pytest.mark.asyncio
    async def test_call_too_soon_with_cache_returns_cache(self, price_service, cache, clock):
        cached = {"ETH_THB": {"price": 85000.0}}
        cache.store(cached, expires_at=clock.now - 1)
        cache.last_call_time = clock.now - 0.5

        with patch.object(price_service, "_request_feed", AsyncMock()) as feed:
            prices = await price_service.get_current_prices()

        assert prices is cached
        feed.assert_not_awaited()


class TestFeedFailures:
    """Classification of feed errors when nothing is cached."""

    @pytest.mark.asyncio
    async def test_timeout_raises_408(self, price_service, cache):
        with patch.object(price_service, "_request_feed", AsyncMock(side_effect=asyncio.TimeoutError())):
            with pytest.raises(PriceFeedTimeout) as exc_info:
                await price_service.get_current_prices()

        assert exc_info.value.status_code == 408
        assert cache.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_upstream_429_raises_rate_limit(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(side_effect=response_error(429))):
            with pytest.raises(PriceRateLimitExceeded) as exc_info:
                await price_service.get_current_prices()

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "API rate limit exceeded"

    @pytest.mark.asyncio
    async def test_upstream_server_error_raises_503(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(side_effect=response_error(502))):
            with pytest.raises(PriceFeedUnavailable) as exc_info:
                await price_service.get_current_prices()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_failure_with_expired_cache_returns_cache(self, price_service, cache, clock):
        cached = {"BTC_THB": {"price": 1.0}}
        cache.store(cached, expires_at=clock.now - 1)

        with patch.object(price_service, "_request_feed", AsyncMock(side_effect=response_error(500))):
            prices = await price_service.get_current_prices()

        assert prices is cached
        assert cache.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_five_consecutive_failures_fall_back_to_mock_data(self, price_service, cache, clock):
        feed = AsyncMock(side_effect=response_error(503))
        with patch.object(price_service, "_request_feed", feed):
            for _ in range(4):
                with pytest.raises(PriceFeedUnavailable):
                    await price_service.get_current_prices()
                clock.advance(2)

            prices = await price_service.get_current_prices()

        assert feed.await_count == 5
        assert "BTC_THB" in prices
        assert "ETH_THB" in prices
        assert set(prices) == set(KNOWN_SYMBOLS)
        assert cache.consecutive_failures == 0
        assert cache.expires_at == clock.now + 60

    @pytest.mark.asyncio
    async def test_failure_counter_at_limit_skips_feed(self, price_service, cache):
        cache.consecutive_failures = 5

        with patch.object(price_service, "_request_feed", AsyncMock()) as feed:
            prices = await price_service.get_current_prices()

        feed.assert_not_awaited()
        assert "BTC_THB" in prices

    @pytest.mark.asyncio
    async def test_invalid_payload_seeds_empty_store(self, price_service, crypto_service, cache, clock):
        seeded = {"BTC_THB": {"price": 2500000.0}}
        crypto_service.get_prices.side_effect = [{}, {}, seeded]

        with patch.object(price_service, "_request_feed", AsyncMock(return_value={"unexpected": True})):
            prices = await price_service.get_current_prices()

        assert prices == seeded
        crypto_service.seed_initial_data.assert_awaited_once()
        assert cache.expires_at == clock.now + 30

    @pytest.mark.asyncio
    async def test_seeding_failure_falls_back_to_mock(self, price_service, crypto_service):
        crypto_service.seed_initial_data.side_effect = RuntimeError("database is locked")

        with patch.object(price_service, "_request_feed", AsyncMock(return_value=[])):
            prices = await price_service.get_current_prices()

        assert set(prices) == set(KNOWN_SYMBOLS)


class TestMockMode:

    @pytest.mark.asyncio
    async def test_mock_flag_never_calls_feed(self, crypto_service, cache, clock):
        config = settings.model_copy(update={"price_use_mock_data": True})
        service = PriceService(crypto_service, cache=cache, config=config, clock=clock)

        with patch.object(service, "_request_feed", AsyncMock()) as feed:
            prices = await service.get_current_prices()

        feed.assert_not_awaited()
        assert prices["BTC_THB"]["price"] == 2500000


class TestSpecificPriceAndSymbols:

    @pytest.mark.asyncio
    async def test_known_symbol_returns_price(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(return_value=ARRAY_PAYLOAD)):
            assert await price_service.get_specific_price("ETH_THB") == 85000.0

    @pytest.mark.asyncio
    async def test_unknown_symbol_returns_zero(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(return_value=ARRAY_PAYLOAD)):
            assert await price_service.get_specific_price("NOPE_THB") == 0.0

    @pytest.mark.asyncio
    async def test_chain_error_returns_zero(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(side_effect=asyncio.TimeoutError())):
            assert await price_service.get_specific_price("BTC_THB") == 0.0

    @pytest.mark.asyncio
    async def test_symbols_come_from_store_first(self, price_service, crypto_service):
        crypto_service.get_symbols.return_value = ["BTC_THB", "ETH_THB"]
        assert await price_service.get_available_symbols() == ["BTC_THB", "ETH_THB"]

    @pytest.mark.asyncio
    async def test_symbols_fall_back_to_current_prices(self, price_service):
        with patch.object(price_service, "_request_feed", AsyncMock(return_value=OBJECT_PAYLOAD)):
            assert await price_service.get_available_symbols() == ["BTC_THB", "ETH_THB"]

    @pytest.mark.asyncio
    async def test_symbols_fall_back_to_static_list_on_error(self, price_service, crypto_service):
        crypto_service.get_symbols.side_effect = RuntimeError("connection refused")
        assert await price_service.get_available_symbols() == list(KNOWN_SYMBOLS)
