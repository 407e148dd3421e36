"""
Google Gemini LLM Provider.
Calls the Generative Language REST API (models/<model>:generateContent).
"""

from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse


class GeminiProvider(LLMProvider):
    """
    Provider for Google Gemini models.
    System messages become the request's systemInstruction; assistant turns
    are sent with Gemini's "model" role.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        default_temperature: float = 0.7,
        default_max_tokens: int = 2048,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url.rstrip("/"), default_temperature,
                         default_max_tokens, timeout)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _build_payload(self, messages: List[LLMMessage], temperature: float,
                       max_tokens: int) -> Dict[str, Any]:
        system_parts = [{"text": m.content} for m in messages if m.role == "system"]
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages if m.role != "system"
        ]

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        model = kwargs.get("model", self.model)
        payload = self._build_payload(
            messages,
            temperature if temperature is not None else self.default_temperature,
            max_tokens or self.default_max_tokens,
        )

        data = await self._post_json(f"{self.base_url}/models/{model}:generateContent", payload, model)

        # A blocked prompt comes back without candidates
        candidates = data.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        usage = data.get("usageMetadata", {})

        return LLMResponse(
            content="".join(part.get("text", "") for part in parts),
            model=data.get("modelVersion", model),
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
            },
            raw=data,
        )
