"""Portfolio API endpoints."""
from fastapi import APIRouter, Depends, Query, Response, status
from datetime import datetime
from typing import Optional
import logging

from cryptofolio.api.dependencies import get_current_user
from cryptofolio.models.user import User
from cryptofolio.schemas.portfolio import (
    PortfolioCreate,
    PortfolioUpdate,
    PortfolioResponse,
    PortfolioListResponse,
    PortfolioPerformance,
    SeedSampleResponse,
)
from cryptofolio.services.portfolio_service import PortfolioService, get_portfolio_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


@router.post("", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
async def create_portfolio_entry(
    data: PortfolioCreate,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Record a purchase for the authenticated user."""
    return await service.create(current_user.id, data)


@router.get("", response_model=PortfolioListResponse)
async def list_portfolio_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """
    List the authenticated user's entries, newest first.

    Args:
        page: 1-based page number
        limit: Page size
        start_date: Lower purchase-date bound (only used together with end_date)
        end_date: Upper purchase-date bound (only used together with start_date)
    """
    return await service.find_all_by_user(
        current_user.id,
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/performance", response_model=PortfolioPerformance)
async def get_portfolio_performance(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Total amount invested (sum of amount x purchase price) in a date range."""
    return await service.get_performance(current_user.id, start_date, end_date)


@router.post("/seed-sample", response_model=SeedSampleResponse, status_code=status.HTTP_201_CREATED)
async def seed_sample_portfolio(
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Insert sample purchases for a user who has none yet."""
    await service.seed_sample_data(current_user.id)
    page = await service.find_all_by_user(current_user.id, page=1, limit=1)
    return {
        "message": "Sample portfolio data seeded successfully",
        "count": page["total"],
    }


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
async def get_portfolio_entry(
    portfolio_id: int,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    return await service.find_one(portfolio_id, current_user.id)


@router.patch("/{portfolio_id}", response_model=PortfolioResponse)
async def update_portfolio_entry(
    portfolio_id: int,
    data: PortfolioUpdate,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Change any subset of an entry's fields."""
    return await service.update(portfolio_id, current_user.id, data)


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio_entry(
    portfolio_id: int,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service)
):
    await service.remove(portfolio_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
