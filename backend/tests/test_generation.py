"""
Tests for the generation gateway: analysis parsing and error mapping.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from therapy_chat.core.errors import GenerationMalformed, GenerationUnavailable
from therapy_chat.llm.base import LLMResponse
from therapy_chat.models import AnalysisResult
from therapy_chat.services.generation import GenerationGateway, parse_analysis, strip_code_fences
from therapy_chat.services.prompts import SYSTEM_PROMPT

ANALYSIS_JSON = json.dumps({
    "emotionalState": "anxious",
    "themes": ["anxiety"],
    "riskLevel": 2,
    "recommendedApproach": "grounding",
    "progressIndicators": [],
})


def _provider(content: str = "", side_effect=None):
    provider = MagicMock()
    provider.chat_completion = AsyncMock(
        return_value=LLMResponse(content=content, model="test"),
        side_effect=side_effect,
    )
    return provider


class TestStripCodeFences:

    def test_json_fence(self):
        assert strip_code_fences(f"```json\n{ANALYSIS_JSON}\n```") == ANALYSIS_JSON

    def test_bare_fence(self):
        assert strip_code_fences(f"```\n{ANALYSIS_JSON}\n```") == ANALYSIS_JSON

    def test_no_fence(self):
        assert strip_code_fences(f"  {ANALYSIS_JSON}\n") == ANALYSIS_JSON


class TestParseAnalysis:

    def test_valid(self):
        analysis = parse_analysis(f"```json\n{ANALYSIS_JSON}\n```")

        assert analysis.emotional_state == "anxious"
        assert analysis.themes == ["anxiety"]
        assert analysis.risk_level == 2
        assert analysis.recommended_approach == "grounding"

    def test_optional_lists_default_empty(self):
        analysis = parse_analysis('{"emotionalState": "calm", "riskLevel": 0}')

        assert analysis.themes == []
        assert analysis.progress_indicators == []

    @pytest.mark.parametrize("text", [
        "I think the user is anxious.",
        "[1, 2, 3]",
        '{"emotionalState": "calm"}',
        '{"emotionalState": "calm", "riskLevel": "very high"}',
        '{"emotionalState": "calm", "riskLevel": 1, "themes": "anxiety"}',
        "",
    ])
    def test_malformed(self, text):
        with pytest.raises(GenerationMalformed):
            parse_analysis(text)


class TestGenerationGateway:

    @pytest.mark.asyncio
    async def test_analyze_sends_message_and_parses(self):
        provider = _provider(ANALYSIS_JSON)
        gateway = GenerationGateway(provider)

        analysis = await gateway.analyze("I feel anxious", {"userProfile": {}}, [])

        assert isinstance(analysis, AnalysisResult)
        prompt = provider.chat_completion.call_args.args[0][0].content
        assert "Message: I feel anxious" in prompt
        assert '"riskLevel": number' in prompt

    @pytest.mark.asyncio
    async def test_reply_prompt_includes_system_prompt_and_analysis(self):
        provider = _provider("  I hear you.  ")
        gateway = GenerationGateway(provider)
        analysis = parse_analysis(ANALYSIS_JSON)

        reply = await gateway.reply("I feel anxious", analysis, {}, [])

        assert reply == "I hear you."
        prompt = provider.chat_completion.call_args.args[0][0].content
        assert prompt.startswith(SYSTEM_PROMPT)
        assert '"emotionalState": "anxious"' in prompt

    @pytest.mark.asyncio
    async def test_empty_reply_is_malformed(self):
        gateway = GenerationGateway(_provider("   "))

        with pytest.raises(GenerationMalformed):
            await gateway.reply("hi", parse_analysis(ANALYSIS_JSON), {}, [])

    @pytest.mark.asyncio
    async def test_no_provider_is_unavailable(self):
        with pytest.raises(GenerationUnavailable):
            await GenerationGateway(None).generate("hi")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
        httpx.HTTPStatusError("boom", request=MagicMock(), response=MagicMock(status_code=503)),
    ])
    async def test_transport_errors_are_unavailable(self, error):
        gateway = GenerationGateway(_provider(side_effect=error))

        with pytest.raises(GenerationUnavailable):
            await gateway.generate("hi")

    @pytest.mark.asyncio
    async def test_unexpected_body_is_malformed(self):
        gateway = GenerationGateway(_provider(side_effect=KeyError("choices")))

        with pytest.raises(GenerationMalformed):
            await gateway.generate("hi")

    @pytest.mark.asyncio
    async def test_malformed_analysis_is_not_retried(self):
        provider = _provider("not json at all")
        gateway = GenerationGateway(provider)

        with pytest.raises(GenerationMalformed):
            await gateway.analyze("hi", {}, [])

        assert provider.chat_completion.call_count == 1
