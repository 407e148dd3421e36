"""Storage module - storage backends and the account/session document stores."""

from typing import Optional

from .interface import StorageInterface, StorageError
from .local_storage import LocalStorage
from .account_storage import AccountStorage, AccountExistsError
from .session_storage import SessionStorage, SessionConflictError

__all__ = [
    'StorageInterface', 'StorageError', 'LocalStorage',
    'AccountStorage', 'AccountExistsError', 'SessionStorage', 'SessionConflictError',
    'create_storage', 'init_stores', 'get_account_storage', 'get_session_storage',
]

# Global store instances, set up once at startup
_account_storage: Optional[AccountStorage] = None
_session_storage: Optional[SessionStorage] = None


def create_storage(storage_type: str, local_storage_path: str) -> StorageInterface:
    """Build the configured storage backend."""
    if storage_type == "local":
        return LocalStorage(local_storage_path)
    raise ValueError(f"Unsupported storage type: {storage_type}")


def init_stores(storage: StorageInterface) -> None:
    """
    Initialize the global account and session stores.

    Args:
        storage: Backend shared by both stores
    """
    global _account_storage, _session_storage
    _account_storage = AccountStorage(storage)
    _session_storage = SessionStorage(storage)


def get_account_storage() -> AccountStorage:
    """
    Raises:
        RuntimeError: If init_stores() has not been called
    """
    if _account_storage is None:
        raise RuntimeError("Stores not initialized. Call init_stores() first.")
    return _account_storage


def get_session_storage() -> SessionStorage:
    """
    Raises:
        RuntimeError: If init_stores() has not been called
    """
    if _session_storage is None:
        raise RuntimeError("Stores not initialized. Call init_stores() first.")
    return _session_storage
