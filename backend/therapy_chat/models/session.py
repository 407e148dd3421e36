"""
Session Models - Conversation sessions, turns and the per-message analysis.

Field names are snake_case in Python and camelCase on the wire and on disk.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AnalysisResult(CamelModel):
    """Structured reading of a user message produced by the LLM."""
    emotional_state: str
    themes: List[str] = Field(default_factory=list)
    risk_level: Union[int, float]
    recommended_approach: str = ""
    progress_indicators: List[str] = Field(default_factory=list)


class ProgressSummary(CamelModel):
    """Condensed view of an analysis."""
    emotional_state: str
    risk_level: Union[int, float]

    @classmethod
    def from_analysis(cls, analysis: AnalysisResult) -> "ProgressSummary":
        return cls(emotional_state=analysis.emotional_state, risk_level=analysis.risk_level)


class TurnMetadata(CamelModel):
    """Metadata attached to assistant turns."""
    analysis: AnalysisResult
    progress: ProgressSummary


class Turn(CamelModel):
    """One message in a session."""
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: Optional[TurnMetadata] = None


class ChatSession(CamelModel):
    """Stored conversation session."""
    session_id: str
    user_id: str
    start_time: datetime = Field(default_factory=utcnow)
    status: str = "active"
    messages: List[Turn] = Field(default_factory=list)
    version: int = 0

    @property
    def last_activity(self) -> datetime:
        """Timestamp of the last turn, or the start time of an empty session."""
        if self.messages:
            return self.messages[-1].timestamp
        return self.start_time


# ---------- request / response bodies ----------

class SendMessageRequest(CamelModel):
    """Body of POST /chat/sessions/{session_id}/messages."""
    message: str = Field(..., min_length=1, max_length=10000)


class MessageMetadata(CamelModel):
    progress: ProgressSummary


class SendMessageResponse(CamelModel):
    """Reply to a posted message."""
    response: str
    message: str
    analysis: AnalysisResult
    metadata: MessageMetadata


class CreateSessionResponse(CamelModel):
    message: str = "Chat session created successfully"
    session_id: str


class SessionDetail(CamelModel):
    """A single session with its turns."""
    session_id: str
    messages: List[Turn]
    start_time: datetime
    status: str


class SessionSummary(CamelModel):
    """Entry of the caller's session list."""
    session_id: str
    created_at: datetime
    updated_at: datetime
    messages: List[Turn]
    status: str

    @classmethod
    def from_session(cls, session: ChatSession) -> "SessionSummary":
        return cls(
            session_id=session.session_id,
            created_at=session.start_time,
            updated_at=session.last_activity,
            messages=session.messages,
            status=session.status,
        )
