"""
Local Filesystem Storage Implementation.
Documents are files below a base directory on the server.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional, List

import aiofiles

from .interface import StorageInterface, StorageError

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    Local filesystem storage implementation.
    Writes go to a uniquely named temporary sibling file first and are
    renamed into place, so concurrent writers of one path end last-write-wins.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Args:
            base_dir: Base directory for all stored documents
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, path: str) -> Path:
        """Resolve a relative path inside the base directory."""
        full_path = (self.base_dir / path).resolve()

        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise StorageError(f"Invalid path: {path} - path traversal detected")

        return full_path

    async def save(self, path: str, content: bytes | str) -> None:
        full_path = self._get_full_path(path)
        tmp_path = full_path.with_name(f"{full_path.name}.{uuid.uuid4().hex}.tmp")
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                    await f.write(content)
            else:
                async with aiofiles.open(tmp_path, 'wb') as f:
                    await f.write(content)
            os.replace(tmp_path, full_path)
        except OSError as e:
            logger.error(f"Error saving file {path}: {e}")
            raise StorageError(f"Failed to save {path}") from e

    async def load(self, path: str) -> Optional[bytes]:
        full_path = self._get_full_path(path)
        if not full_path.exists():
            return None
        try:
            async with aiofiles.open(full_path, 'rb') as f:
                return await f.read()
        except OSError as e:
            logger.error(f"Error loading file {path}: {e}")
            raise StorageError(f"Failed to load {path}") from e

    async def exists(self, path: str) -> bool:
        return self._get_full_path(path).exists()

    async def delete(self, path: str) -> bool:
        full_path = self._get_full_path(path)
        if not full_path.exists():
            return False
        try:
            full_path.unlink()
        except OSError as e:
            logger.error(f"Error deleting file {path}: {e}")
            raise StorageError(f"Failed to delete {path}") from e
        return True

    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        full_path = self._get_full_path(path)
        if not full_path.exists():
            return []

        files = [p for p in full_path.glob(pattern or "*") if p.is_file() and p.suffix != ".tmp"]
        return sorted(str(p.relative_to(self.base_dir)) for p in files)
