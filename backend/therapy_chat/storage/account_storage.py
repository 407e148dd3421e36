"""
Account Storage - Persistent account documents on top of StorageInterface.
One JSON document per account in accounts/, plus an email -> id index.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Dict

from ..models import AccountInDB
from ..utils.identifiers import canonical_id, is_uuid, new_id
from .interface import StorageError, StorageInterface

logger = logging.getLogger(__name__)


class AccountExistsError(Exception):
    """Raised when registering an email that already has an account."""


class AccountStorage:
    """Reads and writes account documents."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.accounts_dir = "accounts"
        self._email_index_path = f"{self.accounts_dir}/email_index.json"
        # Serialises every read-modify-write of the email index
        self._index_lock = asyncio.Lock()

    def _account_path(self, account_id: str) -> str:
        return f"{self.accounts_dir}/{account_id}.json"

    async def _load_email_index(self) -> Dict[str, str]:
        content = await self.storage.load(self._email_index_path)
        if content is None:
            return {}
        return json.loads(content.decode('utf-8'))

    async def _save_email_index(self, index: Dict[str, str]) -> None:
        await self.storage.save(self._email_index_path, json.dumps(index, indent=2))

    async def get_account(self, account_id: str) -> Optional[AccountInDB]:
        """
        Get account by id.

        Returns:
            Optional[AccountInDB]: Account or None if not found
        """
        if not is_uuid(account_id):
            return None

        content = await self.storage.load(self._account_path(canonical_id(account_id)))
        if content is None:
            return None
        return AccountInDB.model_validate_json(content)

    async def get_account_by_email(self, email: str) -> Optional[AccountInDB]:
        index = await self._load_email_index()
        account_id = index.get(email.lower())
        if account_id is None:
            return None
        return await self.get_account(account_id)

    async def create_account(self, email: str, name: str, hashed_password: str) -> AccountInDB:
        """
        Create a new account.

        The email check, the account document and the index entry are written
        under one lock. If the index write fails the document is removed again,
        so no account exists that login cannot find.

        Raises:
            AccountExistsError: If the email is already registered
            StorageError: If the backend fails
        """
        async with self._index_lock:
            index = await self._load_email_index()
            if email.lower() in index:
                raise AccountExistsError(email)

            account = AccountInDB(
                id=new_id(),
                email=email,
                name=name,
                hashed_password=hashed_password,
                created_at=datetime.now(timezone.utc),
            )
            account_path = self._account_path(account.id)
            await self.storage.save(account_path, account.model_dump_json(indent=2))

            index[email.lower()] = account.id
            try:
                await self._save_email_index(index)
            except StorageError:
                await self.storage.delete(account_path)
                raise

        logger.info("Account created", extra={"extra_fields": {"user_id": account.id}})
        return account

    async def delete_account(self, account_id: str) -> bool:
        """
        Delete an account. Sessions it owns are left in place.

        Returns:
            bool: True if deleted
        """
        async with self._index_lock:
            account = await self.get_account(account_id)
            if account is None:
                return False

            index = await self._load_email_index()
            index.pop(account.email.lower(), None)
            await self._save_email_index(index)

            return await self.storage.delete(self._account_path(account.id))
