"""
Pydantic schemas for API request/response validation.
"""
from cryptofolio.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    UserResponse,
    TokenPayload,
)
from cryptofolio.schemas.portfolio import (
    PortfolioCreate,
    PortfolioUpdate,
    PortfolioResponse,
    PortfolioListResponse,
    PortfolioPerformance,
    SeedSampleResponse,
)
from cryptofolio.schemas.price import (
    PriceData,
    SpecificPriceResponse,
    CryptocurrencyResponse,
    SeedResponse,
    AddMissingResponse,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "LoginResponse",
    "UserResponse",
    "TokenPayload",
    "PortfolioCreate",
    "PortfolioUpdate",
    "PortfolioResponse",
    "PortfolioListResponse",
    "PortfolioPerformance",
    "SeedSampleResponse",
    "PriceData",
    "SpecificPriceResponse",
    "CryptocurrencyResponse",
    "SeedResponse",
    "AddMissingResponse",
]
