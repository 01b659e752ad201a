"""
Authentication service.

Validates credentials against bcrypt hashes and issues signed bearer tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import logging

from fastapi import Depends, HTTPException, status
from jose import jwt, JWTError
from passlib.context import CryptContext

from cryptofolio.config import Settings, settings as app_settings
from cryptofolio.models.user import User
from cryptofolio.schemas.auth import LoginResponse, RegisterRequest, TokenPayload, UserResponse
from cryptofolio.services.users_service import UsersService, get_users_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Register, log in and verify access tokens."""

    def __init__(self, users_service: UsersService, config: Optional[Settings] = None):
        self.users_service = users_service
        self.config = config or app_settings
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.config.bcrypt_rounds,
        )

    def get_password_hash(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Sign a token carrying the user id (``sub``) and email."""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.config.jwt_expires_in_minutes)
        )
        claims: Dict = {"sub": str(user.id), "email": user.email, "exp": expire}
        return jwt.encode(claims, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)

    def decode_access_token(self, token: str) -> TokenPayload:
        """
        Verify a bearer token and extract its claims.

        Raises:
            HTTPException: 401 if the token is malformed, expired or badly signed
        """
        try:
            claims = jwt.decode(
                token, self.config.jwt_secret, algorithms=[self.config.jwt_algorithm]
            )
            return TokenPayload(user_id=int(claims["sub"]), email=claims["email"])
        except (JWTError, KeyError, TypeError, ValueError):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

    async def validate_user(self, email: str, password: str) -> Optional[User]:
        """Return the matching user, or None when the email or password is wrong."""
        user = await self.users_service.find_by_email(email)
        if user is None:
            return None
        if not self.verify_password(password, user.password):
            return None
        return user

    async def login(self, email: str, password: str) -> LoginResponse:
        """
        Exchange credentials for an access token.

        Raises:
            HTTPException: 401 with a uniform message for any credential mismatch
        """
        user = await self.validate_user(email, password)
        if user is None:
            logger.info("Rejected login attempt")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS
            )

        return LoginResponse(
            access_token=self.create_access_token(user),
            user=UserResponse.model_validate(user),
        )

    async def register(self, data: RegisterRequest) -> User:
        """Hash the password and create the user (409 on a duplicate email)."""
        return await self.users_service.create(
            email=data.email,
            password=self.get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
        )


def get_auth_service(users_service: UsersService = Depends(get_users_service)) -> AuthService:
    """Dependency providing an AuthService bound to the request's session."""
    return AuthService(users_service)
