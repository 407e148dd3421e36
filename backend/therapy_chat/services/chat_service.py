"""
Chat service - session creation, messaging, and history reads.

Every operation takes the caller's resolved Account and checks that it owns
the session before touching it. Each failure ends the operation with one of
the errors in core.errors; nothing is retried.
"""

import logging
from typing import List, Optional

from ..core.errors import (
    AccountNotFound, Forbidden, MalformedRequest, PersistenceFailed,
    SessionNotFound, Unauthenticated,
)
from ..core.logging_config import LoggerAdapter
from ..models import (
    Account, ChatSession, MessageMetadata, ProgressSummary, SendMessageResponse,
    SessionSummary, Turn, TurnMetadata,
)
from ..storage import AccountStorage, SessionConflictError, SessionStorage, StorageError
from ..utils.identifiers import same_id
from .event_relay import EventRelay
from .generation import GenerationGateway
from .prompts import MESSAGE_EVENT_NAME, SYSTEM_PROMPT, default_memory

logger = logging.getLogger(__name__)


class ChatService:
    """Orchestrates the session store, the LLM gateway and the event relay."""

    def __init__(
        self,
        sessions: SessionStorage,
        accounts: AccountStorage,
        gateway: GenerationGateway,
        relay: EventRelay,
    ):
        self.sessions = sessions
        self.accounts = accounts
        self.gateway = gateway
        self.relay = relay

    @staticmethod
    def _require_caller(account: Optional[Account]) -> Account:
        if account is None or not account.id:
            raise Unauthenticated("no caller account on request")
        return account

    async def _load_owned(self, session_id: str, account: Optional[Account]) -> ChatSession:
        """Load a session and check that ``account`` owns it."""
        caller = self._require_caller(account)

        try:
            session = await self.sessions.load(session_id)
        except StorageError as e:
            raise PersistenceFailed(f"loading session {session_id}: {e}") from e

        if session is None:
            logger.warning(f"Session not found: {session_id}")
            raise SessionNotFound(f"no session {session_id}")

        if not same_id(session.user_id, caller.id):
            logger.warning(
                "Unauthorized access attempt",
                extra={"extra_fields": {"session_id": session_id, "user_id": caller.id}}
            )
            raise Forbidden(f"user {caller.id} does not own session {session_id}")

        return session

    async def create_session(self, account: Optional[Account]) -> ChatSession:
        """
        Create an empty active session for the caller.

        Raises:
            Unauthenticated, AccountNotFound, PersistenceFailed
        """
        caller = self._require_caller(account)

        try:
            if await self.accounts.get_account(caller.id) is None:
                raise AccountNotFound(f"no account {caller.id}")
            session = await self.sessions.create(caller.id)
        except StorageError as e:
            raise PersistenceFailed(f"creating session: {e}") from e

        logger.info(
            "Chat session created",
            extra={"extra_fields": {"session_id": session.session_id, "user_id": caller.id}}
        )
        return session

    async def post_message(
        self,
        session_id: str,
        message: str,
        account: Optional[Account],
    ) -> SendMessageResponse:
        """
        Process one user message and return the assistant's reply.

        Steps: load and ownership check, publish the message event, analyse
        the message, generate the reply, append the user and assistant
        turns, persist. The session is only written at the end, so any
        earlier failure leaves it unchanged.

        Raises:
            Unauthenticated, MalformedRequest, SessionNotFound, Forbidden,
            RelayUnavailable, GenerationMalformed, GenerationUnavailable,
            PersistenceFailed
        """
        caller = self._require_caller(account)
        if not message or not message.strip():
            raise MalformedRequest("empty message", message="Message must not be empty")

        session = await self._load_owned(session_id, caller)
        log = LoggerAdapter(logger, {"session_id": session.session_id, "user_id": caller.id})
        log.info("Processing message")

        memory = default_memory()
        goals: List[str] = []

        await self.relay.publish(MESSAGE_EVENT_NAME, {
            "message": message,
            "history": [turn.model_dump(mode="json", by_alias=True) for turn in session.messages],
            "memory": memory,
            "goals": goals,
            "systemPrompt": SYSTEM_PROMPT,
        })

        analysis = await self.gateway.analyze(message, memory, goals)
        log.info(f"Message analysed: emotionalState={analysis.emotional_state}, riskLevel={analysis.risk_level}")

        reply = await self.gateway.reply(message, analysis, memory, goals)
        progress = ProgressSummary.from_analysis(analysis)

        session.messages.append(Turn(role="user", content=message))
        session.messages.append(Turn(
            role="assistant",
            content=reply,
            metadata=TurnMetadata(analysis=analysis, progress=progress),
        ))

        try:
            await self.sessions.save(session)
        except SessionConflictError as e:
            # The generated reply is not kept anywhere; the client has to resend.
            raise PersistenceFailed(f"concurrent update: {e}") from e
        except StorageError as e:
            raise PersistenceFailed(f"saving session: {e}") from e

        log.info("Session updated successfully")
        return SendMessageResponse(
            response=reply,
            message=reply,
            analysis=analysis,
            metadata=MessageMetadata(progress=progress),
        )

    async def get_session(self, session_id: str, account: Optional[Account]) -> ChatSession:
        """Fetch one owned session."""
        return await self._load_owned(session_id, account)

    async def get_history(self, session_id: str, account: Optional[Account]) -> List[Turn]:
        """Fetch the turn list of one owned session."""
        session = await self._load_owned(session_id, account)
        return session.messages

    async def list_sessions(self, account: Optional[Account]) -> List[SessionSummary]:
        """All of the caller's sessions, most recently started first."""
        caller = self._require_caller(account)

        try:
            sessions = await self.sessions.list_by_owner(caller.id)
        except StorageError as e:
            raise PersistenceFailed(f"listing sessions: {e}") from e

        logger.info(f"Found {len(sessions)} sessions for user {caller.id}")
        return [SessionSummary.from_session(s) for s in sessions]
