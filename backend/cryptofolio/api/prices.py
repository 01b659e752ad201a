"""Price API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Path, status
from typing import Dict, List
import logging

from cryptofolio.schemas.price import (
    PriceData,
    SpecificPriceResponse,
    CryptocurrencyResponse,
    SeedResponse,
    AddMissingResponse,
)
from cryptofolio.services.cryptocurrency_service import CryptocurrencyService
from cryptofolio.services.price_service import (
    PriceService,
    get_cryptocurrency_service,
    get_price_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/price", tags=["prices"])

SYMBOL_PATTERN = r"^[A-Z0-9]+_[A-Z0-9]+$"


@router.get("/current", response_model=Dict[str, PriceData])
async def get_current_prices(price_service: PriceService = Depends(get_price_service)):
    """
    Current market data for every known trading pair.

    Served from cache, store, the Bitazza feed, or static fallbacks, whichever
    answers first. Returns 408/429/503 when the feed fails with nothing cached.
    """
    try:
        return await price_service.get_current_prices()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting current prices: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get current prices: {str(e)}"
        )


@router.get("/symbols", response_model=List[str])
async def get_available_symbols(price_service: PriceService = Depends(get_price_service)):
    return await price_service.get_available_symbols()


@router.get("/cryptocurrencies", response_model=List[CryptocurrencyResponse])
async def get_cryptocurrencies(
    cryptocurrency_service: CryptocurrencyService = Depends(get_cryptocurrency_service)
):
    """Active stored cryptocurrencies, popular ones first."""
    return await cryptocurrency_service.get_all_active()


@router.get("/popular", response_model=List[CryptocurrencyResponse])
async def get_popular_cryptocurrencies(
    cryptocurrency_service: CryptocurrencyService = Depends(get_cryptocurrency_service)
):
    return await cryptocurrency_service.get_popular()


@router.post("/seed", response_model=SeedResponse, status_code=status.HTTP_201_CREATED)
async def seed_cryptocurrencies(
    cryptocurrency_service: CryptocurrencyService = Depends(get_cryptocurrency_service)
):
    """Seed the store with the default catalog (or fill in missing symbols)."""
    try:
        await cryptocurrency_service.seed_initial_data()
        count = len(await cryptocurrency_service.get_all_active())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error seeding cryptocurrencies: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to seed cryptocurrencies: {str(e)}"
        )

    return {
        "message": "Initial cryptocurrency data seeded successfully",
        "count": count,
    }


@router.post("/add-missing", response_model=AddMissingResponse, status_code=status.HTTP_201_CREATED)
async def add_missing_cryptocurrencies(
    cryptocurrency_service: CryptocurrencyService = Depends(get_cryptocurrency_service)
):
    """Insert catalog symbols that are not in the store yet."""
    try:
        added = await cryptocurrency_service.add_missing_cryptocurrencies()
        total = await cryptocurrency_service.count()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error adding missing cryptocurrencies: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to add missing cryptocurrencies: {str(e)}"
        )

    return {
        "message": "Missing cryptocurrencies added successfully",
        "added": added,
        "total": total,
    }


@router.get("/{symbol}", response_model=SpecificPriceResponse)
async def get_specific_price(
    symbol: str = Path(..., pattern=SYMBOL_PATTERN, description="Trading pair, e.g. BTC_THB"),
    price_service: PriceService = Depends(get_price_service)
):
    """Current price of one pair; 0 when the pair is unknown or prices are unavailable."""
    price = await price_service.get_specific_price(symbol)
    return {"symbol": symbol, "price": price}
