"""Authentication API endpoints."""
from fastapi import APIRouter, Depends, status
import logging

from cryptofolio.api.dependencies import get_current_user
from cryptofolio.models.user import User
from cryptofolio.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from cryptofolio.services.auth_service import AuthService, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Create a new account.

    Returns the public view of the user. A duplicate email yields 409.
    """
    user = await auth_service.register(data)
    logger.info(f"Registered user {user.id}")
    return user


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange email and password for a bearer token."""
    return await auth_service.login(credentials.email, credentials.password)


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user
