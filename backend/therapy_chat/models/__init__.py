"""Models module."""

from .user import Account, AccountCreate, AccountInDB, LoginRequest, Token, TokenData
from .session import (
    AnalysisResult, ProgressSummary, TurnMetadata, Turn, ChatSession,
    SendMessageRequest, SendMessageResponse, MessageMetadata,
    CreateSessionResponse, SessionDetail, SessionSummary,
)

__all__ = [
    'Account', 'AccountCreate', 'AccountInDB', 'LoginRequest', 'Token', 'TokenData',
    'AnalysisResult', 'ProgressSummary', 'TurnMetadata', 'Turn', 'ChatSession',
    'SendMessageRequest', 'SendMessageResponse', 'MessageMetadata',
    'CreateSessionResponse', 'SessionDetail', 'SessionSummary',
]
