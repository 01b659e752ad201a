"""
Portfolio model - One cryptocurrency purchase recorded by a user.
"""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import String, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptofolio.database import Base
from cryptofolio.utils.time_utils import utcnow

if TYPE_CHECKING:
    from cryptofolio.models.user import User


class Portfolio(Base):
    """
    Portfolio entry representing a single purchase.

    Entries always belong to exactly one user and are only ever read or
    modified scoped to that owner.
    """
    __tablename__ = "portfolios"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Purchase details
    cryptocurrency_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="Trading pair symbol, e.g. BTC_THB"
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8),
        nullable=False,
        comment="Units of cryptocurrency purchased"
    )
    purchase_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        nullable=False,
        comment="Price per unit in THB"
    )
    purchase_date: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True
    )

    # Owner
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

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

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="portfolios")

    __table_args__ = (
        Index("ix_portfolios_user_created", "user_id", "created_at"),
        Index("ix_portfolios_user_purchase_date", "user_id", "purchase_date"),
    )

    def __repr__(self) -> str:
        return (
            f"Portfolio(id={self.id!r}, "
            f"cryptocurrency_type={self.cryptocurrency_type!r}, "
            f"amount={self.amount!r}, "
            f"user_id={self.user_id!r})"
        )
