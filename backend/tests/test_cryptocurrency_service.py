"""
Tests for the cryptocurrency store against an in-memory database.
"""
import pytest

from cryptofolio.models.cryptocurrency import Cryptocurrency
from cryptofolio.services.crypto_catalog import KNOWN_SYMBOLS, POPULAR_SYMBOLS
from cryptofolio.services.cryptocurrency_service import CryptocurrencyService


@pytest.fixture
def service(db_session):
    return CryptocurrencyService(db_session)


class TestSeeding:

    @pytest.mark.asyncio
    async def test_seed_empty_store_inserts_catalog(self, service):
        await service.seed_initial_data()

        assert await service.count() == len(KNOWN_SYMBOLS)
        btc = await service.get_by_symbol("BTC_THB")
        assert btc.name == "Bitcoin"
        assert btc.is_popular is True

    @pytest.mark.asyncio
    async def test_add_missing_only_inserts_absent_symbols(self, service, db_session):
        db_session.add(Cryptocurrency(symbol="BTC_THB", name="Bitcoin"))
        await db_session.commit()

        added = await service.add_missing_cryptocurrencies()

        assert "BTC_THB" not in added
        assert len(added) == len(KNOWN_SYMBOLS) - 1
        assert await service.count() == len(KNOWN_SYMBOLS)

    @pytest.mark.asyncio
    async def test_add_missing_on_full_store_is_noop(self, service):
        await service.seed_initial_data()
        assert await service.add_missing_cryptocurrencies() == []

    @pytest.mark.asyncio
    async def test_seed_on_partial_store_tops_up(self, service, db_session):
        db_session.add(Cryptocurrency(symbol="ETH_THB", name="Ethereum"))
        await db_session.commit()

        await service.seed_initial_data()

        assert await service.count() == len(KNOWN_SYMBOLS)


class TestUpdateFromApiData:

    @pytest.mark.asyncio
    async def test_upsert_creates_then_overwrites(self, service):
        await service.update_from_api_data({
            "BTC_THB": {"price": 2400000, "change": 1000, "changePercent": 0.5,
                        "high": 2410000, "low": 2390000, "volume": 10},
        })
        await service.update_from_api_data({
            "BTC_THB": {"price": 2450000, "change": 50000, "changePercent": 2.0,
                        "high": 2460000, "low": 2400000, "volume": 12},
        })

        assert await service.count() == 1
        prices = await service.get_prices()
        assert prices["BTC_THB"]["price"] == 2450000.0
        assert prices["BTC_THB"]["changePercent"] == 2.0

    @pytest.mark.asyncio
    async def test_bad_symbol_does_not_drop_the_rest(self, service):
        good = {"price": 100, "change": 1, "changePercent": 1.0,
                "high": 101, "low": 99, "volume": 5}

        await service.update_from_api_data({
            "BTC_THB": good,
            "ETH_THB": {"price": "not-a-number"},
            "ADA_THB": good,
        })

        prices = await service.get_prices()
        assert set(prices) == {"BTC_THB", "ADA_THB"}
        assert prices["ADA_THB"]["price"] == 100.0

    @pytest.mark.asyncio
    async def test_unknown_symbol_gets_derived_name(self, service):
        await service.update_from_api_data({"PEPE_THB": {"price": 0.0004}})

        pepe = await service.get_by_symbol("PEPE_THB")
        assert pepe.name == "PEPE"
        assert pepe.is_popular is False
        assert float(pepe.volume_24h) == 0.0


class TestQueries:

    @pytest.mark.asyncio
    async def test_popular_rows_are_listed_first(self, service):
        await service.seed_initial_data()

        symbols = await service.get_symbols()

        assert symbols[:len(POPULAR_SYMBOLS)] == sorted(POPULAR_SYMBOLS)
        assert symbols[len(POPULAR_SYMBOLS):] == ["MATIC_THB", "UNI_THB"]

    @pytest.mark.asyncio
    async def test_inactive_rows_are_hidden(self, service, db_session):
        db_session.add(Cryptocurrency(symbol="LUNA_THB", name="Terra", is_active=False))
        await db_session.commit()

        assert await service.get_by_symbol("LUNA_THB") is None
        assert await service.get_prices() == {}

    @pytest.mark.asyncio
    async def test_get_popular(self, service):
        await service.seed_initial_data()

        popular = await service.get_popular()

        assert {crypto.symbol for crypto in popular} == set(POPULAR_SYMBOLS)
