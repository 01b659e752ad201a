"""Portfolio schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AfterValidator, ConfigDict, Field, field_validator

from cryptofolio.schemas.base import CamelModel
from cryptofolio.services.crypto_catalog import PORTFOLIO_SYMBOLS

MIN_AMOUNT = Decimal("0.00000001")
MIN_PURCHASE_PRICE = Decimal("0.01")
MAX_VALUE = Decimal("999999999")

INVALID_SYMBOL_MESSAGE = (
    "Invalid cryptocurrency symbol. Please choose from the supported cryptocurrencies."
)


def validate_portfolio_symbol(symbol: str) -> str:
    """
    Check a symbol against the portfolio allow-list.

    Raises:
        ValueError: If the symbol is not supported
    """
    if symbol not in PORTFOLIO_SYMBOLS:
        raise ValueError(INVALID_SYMBOL_MESSAGE)
    return symbol


PortfolioSymbol = Annotated[str, AfterValidator(validate_portfolio_symbol)]


class PortfolioCreate(CamelModel):
    """Schema for recording a purchase."""
    model_config = ConfigDict(extra="forbid")

    cryptocurrency_type: PortfolioSymbol = Field(..., description="Trading pair symbol, e.g. BTC_THB")
    amount: Decimal = Field(..., ge=MIN_AMOUNT, le=MAX_VALUE, description="Units purchased")
    purchase_date: datetime = Field(..., description="Purchase time in ISO 8601")
    purchase_price: Decimal = Field(
        ..., ge=MIN_PURCHASE_PRICE, le=MAX_VALUE, description="Price per unit in THB"
    )


class PortfolioUpdate(CamelModel):
    """Schema for a partial update; only provided fields are changed."""
    model_config = ConfigDict(extra="forbid")

    cryptocurrency_type: Optional[PortfolioSymbol] = None
    amount: Optional[Decimal] = Field(None, ge=MIN_AMOUNT, le=MAX_VALUE)
    purchase_date: Optional[datetime] = None
    purchase_price: Optional[Decimal] = Field(None, ge=MIN_PURCHASE_PRICE, le=MAX_VALUE)

    @field_validator("cryptocurrency_type", "amount", "purchase_date", "purchase_price")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class PortfolioResponse(CamelModel):
    """Schema for a stored portfolio entry."""
    id: int
    cryptocurrency_type: str
    amount: float
    purchase_price: float
    purchase_date: datetime
    user_id: int
    created_at: datetime
    updated_at: datetime


class PortfolioListResponse(CamelModel):
    """One page of a user's entries."""
    portfolios: List[PortfolioResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class PortfolioPerformance(CamelModel):
    """Entries in a date range with their summed cost."""
    portfolios: List[PortfolioResponse]
    total_investment: float
    count: int


class SeedSampleResponse(CamelModel):
    message: str
    count: int
