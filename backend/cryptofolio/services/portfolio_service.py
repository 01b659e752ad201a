"""
Portfolio service - CRUD over a user's purchase records and their performance.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
import logging
import math

from fastapi import Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.database import get_db
from cryptofolio.models.portfolio import Portfolio
from cryptofolio.schemas.portfolio import PortfolioCreate, PortfolioUpdate
from cryptofolio.utils.time_utils import is_in_future, to_utc_naive

logger = logging.getLogger(__name__)

FUTURE_DATE_MESSAGE = "Purchase date cannot be in the future"

SAMPLE_PORTFOLIO: List[Dict] = [
    {"cryptocurrency_type": "BTC_THB", "amount": Decimal("0.5"),
     "purchase_price": Decimal("2400000"), "purchase_date": datetime(2024, 1, 15)},
    {"cryptocurrency_type": "ETH_THB", "amount": Decimal("2.0"),
     "purchase_price": Decimal("82000"), "purchase_date": datetime(2024, 2, 20)},
    {"cryptocurrency_type": "ADA_THB", "amount": Decimal("1000"),
     "purchase_price": Decimal("14.5"), "purchase_date": datetime(2024, 3, 10)},
    {"cryptocurrency_type": "SOL_THB", "amount": Decimal("5.0"),
     "purchase_price": Decimal("4200"), "purchase_date": datetime(2024, 4, 5)},
    {"cryptocurrency_type": "XRP_THB", "amount": Decimal("500"),
     "purchase_price": Decimal("17.8"), "purchase_date": datetime(2024, 5, 12)},
]


def _reject_future_date(purchase_date: datetime) -> None:
    if is_in_future(purchase_date):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=FUTURE_DATE_MESSAGE)


class PortfolioService:
    """Owner-scoped access to portfolio entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user_id: int, data: PortfolioCreate) -> Portfolio:
        """
        Record a purchase for a user.

        Raises:
            HTTPException: 400 if the purchase date is in the future
        """
        _reject_future_date(data.purchase_date)

        portfolio = Portfolio(
            cryptocurrency_type=data.cryptocurrency_type,
            amount=data.amount,
            purchase_price=data.purchase_price,
            purchase_date=to_utc_naive(data.purchase_date),
            user_id=user_id,
        )
        self.db.add(portfolio)
        await self.db.commit()
        await self.db.refresh(portfolio)

        logger.info(f"Created portfolio entry {portfolio.id} for user {user_id}")
        return portfolio

    async def find_all_by_user(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict:
        """
        Page through a user's entries, newest first.

        The date filter is applied only when both bounds are given.
        """
        conditions = [Portfolio.user_id == user_id]
        if start_date is not None and end_date is not None:
            conditions.append(
                Portfolio.purchase_date.between(to_utc_naive(start_date), to_utc_naive(end_date))
            )

        count_result = await self.db.execute(
            select(func.count(Portfolio.id)).where(*conditions)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Portfolio)
            .where(*conditions)
            .order_by(Portfolio.created_at.desc(), Portfolio.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return {
            "portfolios": list(result.scalars().all()),
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    async def find_one(self, portfolio_id: int, user_id: int) -> Portfolio:
        """
        Fetch one entry owned by the user.

        Raises:
            HTTPException: 404 if it does not exist or belongs to someone else
        """
        result = await self.db.execute(
            select(Portfolio).where(
                Portfolio.id == portfolio_id,
                Portfolio.user_id == user_id,
            )
        )
        portfolio = result.scalar_one_or_none()
        if portfolio is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Portfolio entry not found")
        return portfolio

    async def update(self, portfolio_id: int, user_id: int, data: PortfolioUpdate) -> Portfolio:
        """Merge the provided fields into an existing entry."""
        portfolio = await self.find_one(portfolio_id, user_id)

        changes = data.model_dump(exclude_unset=True)
        if "purchase_date" in changes:
            _reject_future_date(changes["purchase_date"])
            changes["purchase_date"] = to_utc_naive(changes["purchase_date"])

        for field, value in changes.items():
            setattr(portfolio, field, value)

        await self.db.commit()
        await self.db.refresh(portfolio)
        return portfolio

    async def remove(self, portfolio_id: int, user_id: int) -> None:
        portfolio = await self.find_one(portfolio_id, user_id)
        await self.db.delete(portfolio)
        await self.db.commit()
        logger.info(f"Deleted portfolio entry {portfolio_id} for user {user_id}")

    async def get_performance(
        self,
        user_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict:
        """
        Sum amount x purchase price over a user's entries.

        Raises:
            HTTPException: 400 if start_date is after end_date
        """
        conditions = [Portfolio.user_id == user_id]
        if start_date is not None and end_date is not None:
            start, end = to_utc_naive(start_date), to_utc_naive(end_date)
            if start > end:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Start date cannot be after end date"
                )
            conditions.append(Portfolio.purchase_date.between(start, end))

        result = await self.db.execute(
            select(Portfolio)
            .where(*conditions)
            .order_by(Portfolio.purchase_date.asc())
        )
        portfolios = list(result.scalars().all())
        total_investment, count = summarize_investment(portfolios)

        return {
            "portfolios": portfolios,
            "total_investment": total_investment,
            "count": count,
        }

    async def seed_sample_data(self, user_id: int) -> None:
        """
        Give a user with no entries a handful of sample purchases.

        Raises:
            HTTPException: 400 if the sample rows could not be written
        """
        try:
            result = await self.db.execute(
                select(func.count(Portfolio.id)).where(Portfolio.user_id == user_id)
            )
            if (result.scalar() or 0) == 0:
                self.db.add_all(
                    Portfolio(user_id=user_id, **sample) for sample in SAMPLE_PORTFOLIO
                )
                await self.db.commit()
                logger.info(f"Seeded sample portfolio for user {user_id}")
        except Exception as e:
            logger.error(f"Failed to seed sample portfolio for user {user_id}: {e}")
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to seed sample portfolio data"
            )


def summarize_investment(portfolios: List[Portfolio]) -> Tuple[Decimal, int]:
    """Total cost (amount x purchase price) and number of entries."""
    total = sum(
        (Decimal(str(p.amount)) * Decimal(str(p.purchase_price)) for p in portfolios),
        Decimal("0"),
    )
    return total, len(portfolios)


def get_portfolio_service(db: AsyncSession = Depends(get_db)) -> PortfolioService:
    return PortfolioService(db)
