"""Price schemas."""
from datetime import datetime
from typing import List

from pydantic import Field

from cryptofolio.schemas.base import CamelModel


class PriceData(CamelModel):
    """Market data for one trading pair."""
    price: float = Field(..., description="Current price")
    change: float = Field(..., description="Price change from previous period")
    change_percent: float = Field(..., description="Price change percentage from previous period")
    high: float = Field(..., description="Highest price in the period")
    low: float = Field(..., description="Lowest price in the period")
    volume: float = Field(..., description="Trading volume")


class SpecificPriceResponse(CamelModel):
    symbol: str
    price: float


class CryptocurrencyResponse(CamelModel):
    """Stored snapshot for one symbol."""
    id: int
    symbol: str
    name: str
    current_price: float
    price_change: float
    price_change_percent: float
    # to_camel would give high24H
    high_24h: float = Field(..., alias="high24h")
    low_24h: float = Field(..., alias="low24h")
    volume_24h: float = Field(..., alias="volume24h")
    is_active: bool
    is_popular: bool
    created_at: datetime
    updated_at: datetime


class SeedResponse(CamelModel):
    message: str
    count: int


class AddMissingResponse(CamelModel):
    message: str
    added: List[str]
    total: int
