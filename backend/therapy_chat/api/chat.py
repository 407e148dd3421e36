"""
Chat API endpoints - sessions and messages.
All routes require a bearer token; ownership is checked in ChatService.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from ..models import (
    Account, CreateSessionResponse, SendMessageRequest, SendMessageResponse,
    SessionDetail, SessionSummary, Turn,
)
from ..services import ChatService, get_chat_service
from ..utils.auth import get_current_account

router = APIRouter(
    prefix="/chat",
    tags=["chat"],
    dependencies=[Depends(get_current_account)],
)


@router.get("/sessions", response_model=List[SessionSummary])
async def list_sessions(
    account: Account = Depends(get_current_account),
    service: ChatService = Depends(get_chat_service),
):
    """All of the caller's sessions, newest first."""
    return await service.list_sessions(account)


@router.post("/sessions", response_model=CreateSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    account: Account = Depends(get_current_account),
    service: ChatService = Depends(get_chat_service),
):
    """Start a new, empty chat session."""
    session = await service.create_session(account)
    return CreateSessionResponse(session_id=session.session_id)


@router.get("/sessions/{session_id}", response_model=SessionDetail)
async def get_session(
    session_id: str,
    account: Account = Depends(get_current_account),
    service: ChatService = Depends(get_chat_service),
):
    """One session with its turns, status and start time."""
    session = await service.get_session(session_id, account)
    return SessionDetail(
        session_id=session.session_id,
        messages=session.messages,
        start_time=session.start_time,
        status=session.status,
    )


@router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(
    session_id: str,
    payload: SendMessageRequest,
    account: Account = Depends(get_current_account),
    service: ChatService = Depends(get_chat_service),
):
    """
    Send a message and get the assistant's reply with its analysis.
    """
    return await service.post_message(session_id, payload.message, account)


@router.get("/sessions/{session_id}/history", response_model=List[Turn])
async def get_history(
    session_id: str,
    account: Account = Depends(get_current_account),
    service: ChatService = Depends(get_chat_service),
):
    """Raw turn list of one session."""
    return await service.get_history(session_id, account)
