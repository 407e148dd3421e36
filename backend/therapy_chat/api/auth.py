"""
Authentication API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, status

from ..core.errors import EmailAlreadyRegistered, InvalidCredentials, PersistenceFailed
from ..models import Account, AccountCreate, LoginRequest, Token
from ..storage import AccountExistsError, AccountStorage, StorageError, get_account_storage
from ..utils.auth import (
    create_access_token,
    get_current_account,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=Account, status_code=status.HTTP_201_CREATED)
async def register(
    payload: AccountCreate,
    accounts: AccountStorage = Depends(get_account_storage),
):
    """
    Register a new account.

    Raises:
        EmailAlreadyRegistered: 400 if the email is already registered
        PersistenceFailed: 500 if the account could not be stored
    """
    try:
        account = await accounts.create_account(
            email=str(payload.email),
            name=payload.name,
            hashed_password=get_password_hash(payload.password),
        )
    except AccountExistsError as e:
        raise EmailAlreadyRegistered(f"duplicate registration for {e}") from e
    except StorageError as e:
        raise PersistenceFailed(f"storing account: {e}", message="Error saving account") from e

    return Account(id=account.id, email=account.email, name=account.name, created_at=account.created_at)


@router.post("/login", response_model=Token)
async def login(
    payload: LoginRequest,
    accounts: AccountStorage = Depends(get_account_storage),
):
    """
    Exchange email and password for an access token.

    Raises:
        InvalidCredentials: 401 on unknown email or wrong password
        PersistenceFailed: 500 if the account lookup failed
    """
    try:
        account = await accounts.get_account_by_email(str(payload.email))
    except StorageError as e:
        raise PersistenceFailed(f"loading account: {e}", message="Error loading account") from e

    if account is None or not verify_password(payload.password, account.hashed_password):
        raise InvalidCredentials("unknown email or wrong password")

    return Token(access_token=create_access_token(account.id))


@router.get("/me", response_model=Account)
async def me(account: Account = Depends(get_current_account)):
    """The account the bearer token resolves to."""
    return account
