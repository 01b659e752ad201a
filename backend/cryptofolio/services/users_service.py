"""
Users store.
"""
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.database import get_db
from cryptofolio.models.user import User

logger = logging.getLogger(__name__)


class UsersService:
    """Create and look up user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """
        Persist a new user.

        Args:
            email: Login email
            password: Already-hashed password
            first_name: Given name
            last_name: Family name

        Raises:
            HTTPException: 409 if the email is already registered
        """
        if await self.find_by_email(email) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists"
            )

        user = User(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Created user {user.id}")
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()


def get_users_service(db: AsyncSession = Depends(get_db)) -> UsersService:
    return UsersService(db)
