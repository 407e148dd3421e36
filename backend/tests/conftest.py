"""
Shared test fixtures and configuration.
"""

import os

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_API_REQUESTS", "false")
os.environ.setdefault("LLM_API_KEY", "")

import pytest
from unittest.mock import AsyncMock

from therapy_chat.models import AnalysisResult
from therapy_chat.services import ChatService, EventRelay, GenerationGateway
from therapy_chat.storage import AccountStorage, LocalStorage, SessionStorage
from therapy_chat.utils.auth import get_password_hash

ANXIOUS_ANALYSIS = {
    "emotionalState": "anxious",
    "themes": ["anxiety"],
    "riskLevel": 2,
    "recommendedApproach": "grounding",
    "progressIndicators": [],
}
ANXIOUS_REPLY = "I hear that you're feeling anxious..."


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def accounts(storage):
    return AccountStorage(storage)


@pytest.fixture
def sessions(storage):
    return SessionStorage(storage)


@pytest.fixture
def gateway():
    """Gateway whose analyze/reply return the anxious scenario by default."""
    gw = GenerationGateway(provider=None)
    gw.analyze = AsyncMock(return_value=AnalysisResult.model_validate(ANXIOUS_ANALYSIS))
    gw.reply = AsyncMock(return_value=ANXIOUS_REPLY)
    return gw


@pytest.fixture
def relay():
    r = EventRelay("http://relay.test", "test-key")
    r.publish = AsyncMock(return_value=["evt-1"])
    return r


@pytest.fixture
def chat_service(sessions, accounts, gateway, relay):
    return ChatService(sessions=sessions, accounts=accounts, gateway=gateway, relay=relay)


@pytest.fixture
def make_account(accounts):
    """Create an account and return it as the public Account model."""
    from therapy_chat.models import Account

    async def _make(email: str = "user@example.com", name: str = "Test User"):
        stored = await accounts.create_account(email, name, get_password_hash("secret123"))
        return Account(id=stored.id, email=stored.email, name=stored.name, created_at=stored.created_at)

    return _make
