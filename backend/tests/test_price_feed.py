"""
Tests for the live feed call against a local aiohttp server.

These exercise the real HTTP request (timeout, headers, status handling and
lenient JSON decoding) rather than a patched ``_request_feed``.
"""
import asyncio
import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils
from unittest.mock import AsyncMock

from cryptofolio.config import settings
from cryptofolio.services.cryptocurrency_service import CryptocurrencyService
from cryptofolio.services.price_service import (
    PriceCache,
    PriceFeedTimeout,
    PriceFeedUnavailable,
    PriceRateLimitExceeded,
    PriceService,
)

pytestmark = pytest.mark.integration

TUPLE_PAYLOAD = [
    [1, "BTC_THB", 2500000, 50000, 2.04, 125.5],
    [2, "ETH_THB", 85000, -500, -0.58, 900],
]


@pytest_asyncio.fixture
async def feed_server():
    """Local feed with one route per upstream behavior; records request headers."""
    received = []

    async def ok_plain_text(request):
        received.append(dict(request.headers))
        return web.Response(text=json.dumps(TUPLE_PAYLOAD), content_type="text/plain")

    async def unavailable(request):
        return web.Response(status=503, text="maintenance")

    async def too_many_requests(request):
        return web.Response(status=429, text="slow down")

    async def slow(request):
        await asyncio.sleep(1.0)
        return web.json_response(TUPLE_PAYLOAD)

    app = web.Application()
    app.router.add_get("/ok", ok_plain_text)
    app.router.add_get("/unavailable", unavailable)
    app.router.add_get("/too-many", too_many_requests)
    app.router.add_get("/slow", slow)

    server = test_utils.TestServer(app)
    await server.start_server()
    server.received_headers = received
    yield server
    await server.close()


def make_service(server, path, **overrides):
    config = settings.model_copy(update={
        "bitazza_api_url": str(server.make_url(path)),
        "price_use_mock_data": False,
        **overrides,
    })
    crypto_service = AsyncMock(spec=CryptocurrencyService)
    crypto_service.get_prices.return_value = {}
    return PriceService(crypto_service, cache=PriceCache(), config=config), crypto_service


class TestLiveFeed:

    @pytest.mark.asyncio
    async def test_plain_text_json_is_decoded_and_headers_sent(self, feed_server):
        service, crypto_service = make_service(feed_server, "/ok")

        prices = await service.get_current_prices()

        assert prices["BTC_THB"]["price"] == 2500000.0
        assert prices["ETH_THB"]["high"] == 85000.0
        crypto_service.update_from_api_data.assert_awaited_once_with(prices)

        headers = feed_server.received_headers[0]
        assert headers["User-Agent"] == "Portfolio-API/1.0"
        assert headers["Accept"] == "application/json"
        assert headers["Cache-Control"] == "no-cache"

    @pytest.mark.asyncio
    async def test_server_error_raises_unavailable(self, feed_server):
        service, _ = make_service(feed_server, "/unavailable")

        with pytest.raises(PriceFeedUnavailable) as exc_info:
            await service.get_current_prices()

        assert exc_info.value.status_code == 503
        assert service.cache.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_upstream_rate_limit_raises_429(self, feed_server):
        service, _ = make_service(feed_server, "/too-many")

        with pytest.raises(PriceRateLimitExceeded) as exc_info:
            await service.get_current_prices()

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "API rate limit exceeded"

    @pytest.mark.asyncio
    async def test_slow_feed_times_out(self, feed_server):
        service, _ = make_service(feed_server, "/slow", price_request_timeout_seconds=0.2)

        with pytest.raises(PriceFeedTimeout) as exc_info:
            await service.get_current_prices()

        assert exc_info.value.status_code == 408
