"""Authentication schemas."""
from datetime import datetime
import re

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from cryptofolio.schemas.base import CamelModel

PASSWORD_MIN_LENGTH = 8


class RegisterRequest(CamelModel):
    """Schema for registering a new account."""
    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., description="Login email, must be unique")
    password: str = Field(..., max_length=128, description="Plain-text password")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        """Require a minimum length plus mixed case and a digit or symbol."""
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters long")
        if not re.search(r"[a-z]", v) or not re.search(r"[A-Z]", v):
            raise ValueError("password must contain both upper and lower case letters")
        if not re.search(r"[\d\W_]", v):
            raise ValueError("password must contain a number or special character")
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class LoginRequest(BaseModel):
    """Schema for email/password login."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(CamelModel):
    """Public view of a user; never carries the password hash."""
    id: int
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    """Issued bearer token plus the authenticated user."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class TokenPayload(BaseModel):
    """Claims extracted from a verified access token."""
    user_id: int
    email: str
