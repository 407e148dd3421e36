"""
LLM Provider Base - Abstract base for all LLM API providers.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)


@dataclass
class LLMMessage:
    """A text message in a conversation."""
    role: str  # "system", "user", "assistant"
    content: str

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        return LLMMessage(role=role, content=text)


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    Network and HTTP failures propagate as httpx exceptions.
    """

    name: str = "base"

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.7, default_max_tokens: int = 2048,
                 timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.timeout = timeout

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: Conversation messages
            temperature: Sampling temperature override
            max_tokens: Max tokens override
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the generated content
        """

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to the OpenAI-style message format."""
        return [{"role": m.role, "content": m.content} for m in messages]

    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _post_json(self, url: str, payload: Dict[str, Any], model: str,
                         params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        POST a JSON payload and return the decoded JSON body.
        Logs duration on success and failure; re-raises httpx errors.
        """
        start_time = time.time()
        logger.debug(f"LLM API call starting: provider={self.name}, model={model}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers(), params=params)
                logger.debug(f"LLM API response status: {resp.status_code}")
                resp.raise_for_status()
                data = resp.json()
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM API call failed: {type(e).__name__}: {e}",
                extra={"extra_fields": {
                    "provider": self.name,
                    "model": model,
                    "duration_ms": round(duration_ms, 2),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "LLM API call completed",
            extra={"extra_fields": {
                "provider": self.name,
                "model": model,
                "duration_ms": round(duration_ms, 2),
            }}
        )
        return data
