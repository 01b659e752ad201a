"""
Models package - Import all database models for easy access.
"""
from cryptofolio.models.user import User
from cryptofolio.models.portfolio import Portfolio
from cryptofolio.models.cryptocurrency import Cryptocurrency

__all__ = [
    "User",
    "Portfolio",
    "Cryptocurrency",
]
