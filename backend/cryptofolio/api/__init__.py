"""API router package."""
from cryptofolio.api.auth import router as auth_router
from cryptofolio.api.portfolio import router as portfolio_router
from cryptofolio.api.prices import router as prices_router

__all__ = [
    "auth_router",
    "portfolio_router",
    "prices_router",
]
