"""Services module."""

from ..config import settings
from ..llm.factory import create_llm_provider
from ..storage import get_account_storage, get_session_storage
from .chat_service import ChatService
from .event_relay import EventRelay
from .generation import GenerationGateway

__all__ = ['ChatService', 'EventRelay', 'GenerationGateway', 'get_chat_service']


def get_chat_service() -> ChatService:
    """Build a ChatService from settings and the global stores."""
    provider = create_llm_provider(
        provider=settings.llm_provider,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout_seconds,
    )
    return ChatService(
        sessions=get_session_storage(),
        accounts=get_account_storage(),
        gateway=GenerationGateway(provider),
        relay=EventRelay(
            settings.event_relay_url,
            settings.event_relay_key,
            timeout=settings.event_relay_timeout_seconds,
        ),
    )
