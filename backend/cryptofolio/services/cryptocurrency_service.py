"""
Cryptocurrency store.

Persists the last known price snapshot per symbol and serves it back in the
price mapping shape used by the price endpoints.
"""
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.models.cryptocurrency import Cryptocurrency
from cryptofolio.services.crypto_catalog import (
    get_cryptocurrency_name,
    is_popular,
    seed_rows,
)

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Decimal:
    """Convert a feed value to Decimal, treating missing values as zero."""
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


class CryptocurrencyService:
    """Read and write cryptocurrency snapshots for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_from_api_data(self, api_data: Dict[str, Dict]) -> None:
        """
        Upsert one row per symbol from a normalized price mapping.

        Each symbol is written in its own savepoint, so a bad row is skipped
        without dropping the rest of the snapshot. Errors are logged and
        rolled back, never raised.
        """
        try:
            logger.info("Updating cryptocurrencies from API data...")
            updated = 0
            for symbol, data in api_data.items():
                try:
                    async with self.db.begin_nested():
                        await self._update_or_create(symbol, data)
                    updated += 1
                except Exception as e:
                    logger.error(f"Failed to update cryptocurrency {symbol}: {e}")
            await self.db.commit()
            logger.info(f"Updated {updated} of {len(api_data)} cryptocurrencies")
        except Exception as e:
            logger.error(f"Failed to update cryptocurrencies from API data: {e}")
            await self.db.rollback()

    async def _update_or_create(self, symbol: str, data: Dict) -> None:
        values = {
            "current_price": _to_decimal(data.get("price")),
            "price_change": _to_decimal(data.get("change")),
            "price_change_percent": _to_decimal(data.get("changePercent")),
            "high_24h": _to_decimal(data.get("high")),
            "low_24h": _to_decimal(data.get("low")),
            "volume_24h": _to_decimal(data.get("volume")),
        }

        result = await self.db.execute(
            select(Cryptocurrency).where(Cryptocurrency.symbol == symbol)
        )
        crypto = result.scalar_one_or_none()

        if crypto is None:
            crypto = Cryptocurrency(symbol=symbol)
            self.db.add(crypto)

        crypto.name = get_cryptocurrency_name(symbol)
        for field, value in values.items():
            setattr(crypto, field, value)
        crypto.is_active = True
        crypto.is_popular = is_popular(symbol)

    async def get_all_active(self) -> List[Cryptocurrency]:
        """Active rows, popular first, then alphabetical."""
        result = await self.db.execute(
            select(Cryptocurrency)
            .where(Cryptocurrency.is_active.is_(True))
            .order_by(Cryptocurrency.is_popular.desc(), Cryptocurrency.symbol.asc())
        )
        return list(result.scalars().all())

    async def get_popular(self) -> List[Cryptocurrency]:
        result = await self.db.execute(
            select(Cryptocurrency)
            .where(
                Cryptocurrency.is_active.is_(True),
                Cryptocurrency.is_popular.is_(True),
            )
            .order_by(Cryptocurrency.symbol.asc())
        )
        return list(result.scalars().all())

    async def get_by_symbol(self, symbol: str) -> Optional[Cryptocurrency]:
        result = await self.db.execute(
            select(Cryptocurrency).where(
                Cryptocurrency.symbol == symbol,
                Cryptocurrency.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_symbols(self) -> List[str]:
        result = await self.db.execute(
            select(Cryptocurrency.symbol)
            .where(Cryptocurrency.is_active.is_(True))
            .order_by(Cryptocurrency.is_popular.desc(), Cryptocurrency.symbol.asc())
        )
        return list(result.scalars().all())

    async def get_prices(self) -> Dict[str, Dict[str, float]]:
        """Price mapping for every active symbol."""
        cryptocurrencies = await self.get_all_active()
        return {crypto.symbol: crypto.to_price_data() for crypto in cryptocurrencies}

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Cryptocurrency.id)))
        return result.scalar() or 0

    async def seed_initial_data(self) -> None:
        """Insert the default rows into an empty table, or top up a partial one."""
        try:
            if await self.count() == 0:
                logger.info("Seeding initial cryptocurrency data...")
                self.db.add_all(Cryptocurrency(**row) for row in seed_rows())
                await self.db.commit()
                logger.info("Initial cryptocurrency data seeded successfully")
            else:
                await self.add_missing_cryptocurrencies()
        except Exception as e:
            logger.error(f"Failed to seed initial cryptocurrency data: {e}")
            await self.db.rollback()

    async def add_missing_cryptocurrencies(self) -> List[str]:
        """
        Insert default rows for known symbols that are not stored yet.

        Returns:
            Symbols that were added (empty when nothing was missing or the
            insert failed)
        """
        try:
            logger.info("Adding missing cryptocurrencies...")
            result = await self.db.execute(select(Cryptocurrency.symbol))
            existing = set(result.scalars().all())
            missing_rows = [row for row in seed_rows() if row["symbol"] not in existing]

            if not missing_rows:
                logger.info("No missing cryptocurrencies to add")
                return []

            self.db.add_all(Cryptocurrency(**row) for row in missing_rows)
            await self.db.commit()
            added = [row["symbol"] for row in missing_rows]
            logger.info(f"Added {len(added)} missing cryptocurrencies: {', '.join(added)}")
            return added
        except Exception as e:
            logger.error(f"Failed to add missing cryptocurrencies: {e}")
            await self.db.rollback()
            return []
