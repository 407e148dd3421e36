"""
Authentication utilities - JWT token handling, password hashing, and the
bearer-token dependency that resolves the calling account.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from ..config import settings
from ..core.errors import Unauthenticated
from ..models import Account, TokenData
from ..storage import AccountStorage, StorageError, get_account_storage

logger = logging.getLogger(__name__)

# Missing or non-bearer headers reach get_current_account as None
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for an account.

    Args:
        user_id: Account id, stored as the ``sub`` claim (and ``userId``)
        expires_delta: Optional lifetime; defaults to access_token_expire_minutes

    Returns:
        str: Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {"sub": user_id, "userId": user_id, "iat": now, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData:
    """
    Verify signature and expiry of a JWT and extract its subject.

    Raises:
        Unauthenticated: If the token is invalid; ``detail`` says which check failed
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError as e:
        raise Unauthenticated("token expired", message="Invalid authentication token") from e
    except JWTClaimsError as e:
        raise Unauthenticated(f"token claims rejected: {e}", message="Invalid authentication token") from e
    except JWTError as e:
        raise Unauthenticated(f"token signature invalid: {e}", message="Invalid authentication token") from e

    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise Unauthenticated("token has no subject", message="Invalid authentication token")

    return TokenData(
        user_id=str(user_id),
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc) if "iat" in payload else None,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc) if "exp" in payload else None,
    )


async def resolve_account(token: Optional[str], accounts: AccountStorage) -> Account:
    """
    Turn a bearer token into the account it was issued for.

    Raises:
        Unauthenticated: Token missing or invalid, or its account no longer exists
    """
    if not token:
        raise Unauthenticated("no token provided")

    token_data = decode_access_token(token)

    try:
        account = await accounts.get_account(token_data.user_id)
    except StorageError as e:
        raise Unauthenticated(f"account lookup failed: {e}", message="Authentication failed") from e

    if account is None:
        # Deleting an account does not revoke its tokens
        raise Unauthenticated(f"account {token_data.user_id} no longer exists", message="User not found")

    return Account(id=account.id, email=account.email, name=account.name, created_at=account.created_at)


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    accounts: AccountStorage = Depends(get_account_storage),
) -> Account:
    """
    FastAPI dependency resolving the caller from the Authorization header.

    Raises:
        Unauthenticated: See resolve_account
    """
    token = credentials.credentials if credentials else None
    try:
        account = await resolve_account(token, accounts)
    except Unauthenticated as e:
        logger.warning(f"Authentication rejected: {e.detail}")
        raise

    logger.debug(f"User authenticated: {account.id}")
    return account
