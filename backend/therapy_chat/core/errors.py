"""
Error taxonomy for the chat API.

Every failure a request can end with is a ChatError subclass. Each class
carries the HTTP status it maps to and a stable public message. The
``detail`` attribute holds diagnostic text for operators and is only ever
logged, never returned to the caller.
"""

from typing import Any, Dict, Optional

from fastapi import status


class ChatError(Exception):
    """Base exception for request-terminating failures."""

    kind: str = "InternalError"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None, message: Optional[str] = None):
        self.detail = detail
        if message is not None:
            self.public_message = message
        super().__init__(detail or self.public_message)

    def to_response(self) -> Dict[str, Any]:
        """Caller-visible error body."""
        return {"error": self.kind, "message": self.public_message}


class Unauthenticated(ChatError):
    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Authentication required"


class Forbidden(ChatError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    public_message = "Unauthorized"


class SessionNotFound(ChatError):
    kind = "SessionNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Session not found"


class AccountNotFound(ChatError):
    kind = "AccountNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "User not found"


class MalformedRequest(ChatError):
    kind = "MalformedRequest"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    public_message = "Malformed request"


class GenerationMalformed(ChatError):
    kind = "GenerationMalformed"
    public_message = "Error processing message"


class GenerationUnavailable(ChatError):
    kind = "GenerationUnavailable"
    public_message = "Error processing message"


class RelayUnavailable(ChatError):
    kind = "RelayUnavailable"
    public_message = "Error processing message"


class PersistenceFailed(ChatError):
    kind = "PersistenceFailed"
    public_message = "Error saving chat session"


class EmailAlreadyRegistered(ChatError):
    kind = "EmailAlreadyRegistered"
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Email already registered"


class InvalidCredentials(ChatError):
    kind = "InvalidCredentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Incorrect email or password"
