"""
Static cryptocurrency catalog.

Names, popularity flags and default market data for the THB trading pairs the
application knows about. The defaults double as the seed rows for an empty
store and as the mock prices served when the price feed is unreachable.
"""
from decimal import Decimal
from typing import Dict, List

# WARNING: These are static fallback values used when the price feed is unavailable.
DEFAULT_CRYPTOCURRENCIES: List[Dict] = [
    {
        "symbol": "BTC_THB", "name": "Bitcoin", "is_popular": True,
        "price": 2500000, "change": 15000, "changePercent": 0.6,
        "high": 2520000, "low": 2480000, "volume": 1500,
    },
    {
        "symbol": "ETH_THB", "name": "Ethereum", "is_popular": True,
        "price": 85000, "change": -500, "changePercent": -0.6,
        "high": 86000, "low": 84000, "volume": 5000,
    },
    {
        "symbol": "ADA_THB", "name": "Cardano", "is_popular": True,
        "price": 15.5, "change": 0.2, "changePercent": 1.3,
        "high": 15.8, "low": 15.2, "volume": 100000,
    },
    {
        "symbol": "DOGE_THB", "name": "Dogecoin", "is_popular": True,
        "price": 3.2, "change": 0.1, "changePercent": 3.2,
        "high": 3.3, "low": 3.1, "volume": 500000,
    },
    {
        "symbol": "XRP_THB", "name": "Ripple", "is_popular": True,
        "price": 18.5, "change": -0.3, "changePercent": -1.6,
        "high": 18.8, "low": 18.2, "volume": 250000,
    },
    {
        "symbol": "SOL_THB", "name": "Solana", "is_popular": True,
        "price": 4500, "change": 120, "changePercent": 2.7,
        "high": 4550, "low": 4400, "volume": 800,
    },
    {
        "symbol": "BNB_THB", "name": "Binance Coin", "is_popular": True,
        "price": 18000, "change": 200, "changePercent": 1.1,
        "high": 18100, "low": 17800, "volume": 300,
    },
    {
        "symbol": "DOT_THB", "name": "Polkadot", "is_popular": True,
        "price": 280, "change": -5, "changePercent": -1.8,
        "high": 285, "low": 275, "volume": 2000,
    },
    {
        "symbol": "LINK_THB", "name": "Chainlink", "is_popular": True,
        "price": 1200, "change": 25, "changePercent": 2.1,
        "high": 1210, "low": 1180, "volume": 1500,
    },
    {
        "symbol": "LTC_THB", "name": "Litecoin", "is_popular": True,
        "price": 8500, "change": -100, "changePercent": -1.2,
        "high": 8600, "low": 8400, "volume": 400,
    },
    {
        "symbol": "MATIC_THB", "name": "Polygon", "is_popular": False,
        "price": 45, "change": 1.5, "changePercent": 3.4,
        "high": 46, "low": 44, "volume": 50000,
    },
    {
        "symbol": "UNI_THB", "name": "Uniswap", "is_popular": False,
        "price": 320, "change": 8, "changePercent": 2.6,
        "high": 325, "low": 315, "volume": 3000,
    },
]

KNOWN_SYMBOLS: List[str] = [entry["symbol"] for entry in DEFAULT_CRYPTOCURRENCIES]

POPULAR_SYMBOLS: List[str] = [
    entry["symbol"] for entry in DEFAULT_CRYPTOCURRENCIES if entry["is_popular"]
]

# Symbols accepted for portfolio entries
PORTFOLIO_SYMBOLS: List[str] = POPULAR_SYMBOLS

CRYPTO_NAMES: Dict[str, str] = {
    entry["symbol"]: entry["name"] for entry in DEFAULT_CRYPTOCURRENCIES
}

PRICE_FIELDS = ("price", "change", "changePercent", "high", "low", "volume")


def get_cryptocurrency_name(symbol: str) -> str:
    """Display name for a symbol, falling back to the base asset code."""
    return CRYPTO_NAMES.get(symbol, symbol.replace("_THB", ""))


def is_popular(symbol: str) -> bool:
    """Whether the symbol is flagged popular."""
    return symbol in POPULAR_SYMBOLS


def mock_prices() -> Dict[str, Dict[str, float]]:
    """Fresh copy of the static price mapping for every known symbol."""
    return {
        entry["symbol"]: {field: float(entry[field]) for field in PRICE_FIELDS}
        for entry in DEFAULT_CRYPTOCURRENCIES
    }


def seed_rows() -> List[Dict]:
    """Column values for the default cryptocurrency rows."""
    return [
        {
            "symbol": entry["symbol"],
            "name": entry["name"],
            "current_price": Decimal(str(entry["price"])),
            "price_change": Decimal(str(entry["change"])),
            "price_change_percent": Decimal(str(entry["changePercent"])),
            "high_24h": Decimal(str(entry["high"])),
            "low_24h": Decimal(str(entry["low"])),
            "volume_24h": Decimal(str(entry["volume"])),
            "is_active": True,
            "is_popular": entry["is_popular"],
        }
        for entry in DEFAULT_CRYPTOCURRENCIES
    ]
