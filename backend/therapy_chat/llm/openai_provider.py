"""
OpenAI-compatible LLM Provider.
Works with any endpoint implementing the /chat/completions API.
"""

from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI and OpenAI-compatible chat completion APIs."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        default_temperature: float = 0.7,
        default_max_tokens: int = 2048,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url.rstrip("/"), default_temperature,
                         default_max_tokens, timeout)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        model = kwargs.get("model", self.model)
        payload: Dict[str, Any] = {
            "model": model,
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
        }

        data = await self._post_json(f"{self.base_url}/chat/completions", payload, model)

        return LLMResponse(
            content=data["choices"][0]["message"]["content"] or "",
            model=data.get("model", model),
            usage=data.get("usage", {}),
            raw=data,
        )
