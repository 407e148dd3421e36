"""
Storage Interface - Abstract base class for document storage backends.
Stores read and write whole documents addressed by a relative path.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageError(Exception):
    """Raised when the backend fails to read or write a document."""


class StorageInterface(ABC):
    """
    Contract every storage backend implements.
    Missing documents are reported as ``None``/``False``; I/O failures raise
    StorageError.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> None:
        """
        Write content to the specified path, replacing any previous content.

        Args:
            path: Relative path (e.g., "sessions/<id>.json")
            content: bytes or str

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Read content from the specified path.

        Returns:
            Optional[bytes]: File content, or None if the document doesn't exist

        Raises:
            StorageError: If the read fails
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a document exists at the path."""

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete the document at the path.

        Returns:
            bool: True if a document was deleted, False if none existed
        """

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List documents directly under a directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern (e.g., "*.json")

        Returns:
            List[str]: Sorted relative paths
        """
