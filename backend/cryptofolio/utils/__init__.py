"""Utilities module for the Cryptofolio backend.

This package contains shared utility functions used across the application.
"""

from .time_utils import (
    utcnow,
    to_utc_naive,
    is_in_future,
)

__all__ = [
    "utcnow",
    "to_utc_naive",
    "is_in_future",
]
