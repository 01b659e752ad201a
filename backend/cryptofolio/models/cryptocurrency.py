"""
Cryptocurrency model - Latest known market snapshot per trading pair.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Numeric, DateTime, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from cryptofolio.database import Base
from cryptofolio.utils.time_utils import utcnow


class Cryptocurrency(Base):
    """
    Price snapshot for one symbol.

    Overwritten in place on every successful fetch from the price feed;
    no history is kept.
    """
    __tablename__ = "cryptocurrencies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    symbol: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Market data
    current_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False, default=Decimal("0")
    )
    price_change: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False, default=Decimal("0")
    )
    price_change_percent: Mapped[Decimal] = mapped_column(
        Numeric(precision=8, scale=4), nullable=False, default=Decimal("0")
    )
    high_24h: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False, default=Decimal("0")
    )
    low_24h: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False, default=Decimal("0")
    )
    volume_24h: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False, default=Decimal("0")
    )

    # Flags
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )

    def to_price_data(self) -> dict:
        """Price mapping entry in the shape served by the price endpoints."""
        return {
            "price": float(self.current_price or 0),
            "change": float(self.price_change or 0),
            "changePercent": float(self.price_change_percent or 0),
            "high": float(self.high_24h or 0),
            "low": float(self.low_24h or 0),
            "volume": float(self.volume_24h or 0),
        }

    def __repr__(self) -> str:
        return f"Cryptocurrency(symbol={self.symbol!r}, current_price={self.current_price!r})"
