"""
Generation gateway - the chat flow's view of the LLM provider.

Turns provider failures into the chat error taxonomy:
- connectivity, timeout, HTTP error status -> GenerationUnavailable
- a response that can't be read as the expected shape -> GenerationMalformed
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.errors import GenerationMalformed, GenerationUnavailable
from ..llm.base import LLMMessage, LLMProvider
from ..models import AnalysisResult
from .prompts import build_analysis_prompt, build_reply_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[\w-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` / ```json fence, if there is one."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_analysis(text: str) -> AnalysisResult:
    """
    Parse LLM output as an AnalysisResult.

    Raises:
        GenerationMalformed: If the text is not a JSON object of the right shape
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationMalformed(f"analysis is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise GenerationMalformed(f"analysis is a JSON {type(data).__name__}, expected an object")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise GenerationMalformed(f"analysis has the wrong shape: {e}") from e


class GenerationGateway:
    """Two-call interface to the LLM: analyse a message, then reply to it."""

    def __init__(self, provider: Optional[LLMProvider]):
        self.provider = provider

    async def generate(self, prompt: str, temperature: Optional[float] = None) -> str:
        """
        Send a single prompt and return the generated text.

        Raises:
            GenerationUnavailable: No provider, connection failure, timeout, or HTTP error
            GenerationMalformed: Provider answered with an unreadable body
        """
        if self.provider is None:
            raise GenerationUnavailable("LLM provider not configured (set LLM_API_KEY)")

        try:
            response = await self.provider.chat_completion(
                [LLMMessage.text("user", prompt)],
                temperature=temperature,
            )
        except httpx.TimeoutException as e:
            raise GenerationUnavailable(f"LLM call timed out: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            raise GenerationUnavailable(f"LLM call failed: {type(e).__name__}: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GenerationMalformed(f"unexpected LLM response body: {type(e).__name__}: {e}") from e

        return (response.content or "").strip()

    async def analyze(self, message: str, memory: Dict[str, Any], goals: List[str]) -> AnalysisResult:
        text = await self.generate(build_analysis_prompt(message, memory, goals), temperature=0.2)
        analysis = parse_analysis(text)
        logger.debug(f"Message analysis: {analysis.model_dump(by_alias=True)}")
        return analysis

    async def reply(self, message: str, analysis: AnalysisResult, memory: Dict[str, Any],
                    goals: List[str]) -> str:
        prompt = build_reply_prompt(message, analysis.model_dump(by_alias=True), memory, goals)
        text = await self.generate(prompt)
        if not text:
            raise GenerationMalformed("LLM returned an empty reply")
        return text
