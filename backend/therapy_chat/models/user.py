"""
Account Model - Defines the account data structure and token payloads.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AccountBase(BaseModel):
    """Fields shared by every account representation."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)


class AccountCreate(AccountBase):
    """Registration payload."""
    password: str = Field(..., min_length=6)


class Account(AccountBase):
    """Public account, as resolved from a bearer token."""
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountInDB(Account):
    """Account as stored, with the password hash."""
    hashed_password: str


class LoginRequest(BaseModel):
    """Login payload."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """JWT token response model."""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Verified token payload."""
    user_id: str
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
