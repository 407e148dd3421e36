"""
Session Storage - Conversation session documents on top of StorageInterface.

Each session is a JSON document in sessions/<session_id>.json. An owner index
in owners/<user_id>.json lists the session ids of each account.

Writes use an optimistic version check: ``save`` only succeeds when the stored
version still equals the version the caller loaded. Two requests that append
to the same session concurrently cannot silently overwrite each other; the
later one gets SessionConflictError.
"""

import asyncio
import json
import logging
import weakref
from typing import List, Optional

from pydantic import ValidationError

from ..models import ChatSession
from ..utils.identifiers import canonical_id, is_uuid, new_id
from .interface import StorageError, StorageInterface

logger = logging.getLogger(__name__)


class SessionConflictError(Exception):
    """Raised when a session changed between load and save."""


class SessionStorage:
    """Reads and writes session documents."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.sessions_dir = "sessions"
        self.owners_dir = "owners"
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _session_path(self, session_id: str) -> str:
        return f"{self.sessions_dir}/{session_id}.json"

    def _owner_path(self, user_id: str) -> str:
        return f"{self.owners_dir}/{user_id}.json"

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _write(self, session: ChatSession) -> None:
        content = session.model_dump_json(by_alias=True, indent=2)
        await self.storage.save(self._session_path(session.session_id), content)

    async def _load_owner_index(self, user_id: str) -> List[str]:
        content = await self.storage.load(self._owner_path(user_id))
        if content is None:
            return []
        return json.loads(content.decode('utf-8'))

    async def create(self, user_id: str) -> ChatSession:
        """
        Create an empty active session owned by ``user_id``.

        Returns:
            ChatSession: The stored session (version 1)
        """
        owner = canonical_id(user_id)
        session = ChatSession(session_id=new_id(), user_id=owner, version=1)
        await self._write(session)

        async with self._lock_for(f"owner:{owner}"):
            index = await self._load_owner_index(owner)
            index.append(session.session_id)
            await self.storage.save(self._owner_path(owner), json.dumps(index, indent=2))

        return session

    async def load(self, session_id: str) -> Optional[ChatSession]:
        """
        Load a session by its public id.

        Returns:
            Optional[ChatSession]: Session, or None if no such session exists

        Raises:
            StorageError: If the backend fails or the stored document is invalid
        """
        if not is_uuid(session_id):
            return None

        content = await self.storage.load(self._session_path(canonical_id(session_id)))
        if content is None:
            return None
        try:
            return ChatSession.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Invalid session document {session_id}: {e.error_count()} errors")
            raise StorageError(f"session {session_id} is not a valid document") from e

    async def save(self, session: ChatSession) -> ChatSession:
        """
        Persist a session that was previously loaded.

        Returns:
            ChatSession: The stored copy, with its version incremented

        Raises:
            SessionConflictError: If another write happened since ``session`` was loaded
            StorageError: If the backend fails
        """
        async with self._lock_for(f"session:{session.session_id}"):
            current = await self.load(session.session_id)
            if current is not None and current.version != session.version:
                raise SessionConflictError(
                    f"session {session.session_id} is at version {current.version}, "
                    f"write was based on version {session.version}"
                )

            stored = session.model_copy(update={"version": session.version + 1})
            await self._write(stored)

        return stored

    async def list_by_owner(self, user_id: str) -> List[ChatSession]:
        """
        All sessions owned by ``user_id``, most recently started first.
        """
        sessions = []
        for session_id in await self._load_owner_index(canonical_id(user_id)):
            session = await self.load(session_id)
            if session is None:
                logger.warning(f"Owner index references missing session {session_id}")
                continue
            sessions.append(session)

        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions
