"""
Prompt text sent to the LLM and to the event relay.
"""

import json
from typing import Any, Dict, List

SYSTEM_PROMPT = """You are an AI therapist assistant. Your role is to:
1. Provide empathetic and supportive responses
2. Use evidence-based therapeutic techniques
3. Maintain professional boundaries
4. Monitor for risk factors"""

MESSAGE_EVENT_NAME = "therapy/session.message"

ANALYSIS_TEMPLATE = """Analyze this therapy message and provide insights. Return ONLY a valid JSON object with no markdown formatting or additional text.
Message: {message}
Context: {context}

Required JSON structure:
{{
  "emotionalState": "string",
  "themes": ["string"],
  "riskLevel": number,
  "recommendedApproach": "string",
  "progressIndicators": ["string"]
}}"""

REPLY_TEMPLATE = """{system_prompt}

Based on the following context, generate a therapeutic response:
Message: {message}
Analysis: {analysis}
Memory: {memory}
Goals: {goals}

Provide a response that:
1. Addresses the immediate emotional needs
2. Uses appropriate therapeutic techniques
3. Shows empathy and understanding
4. Maintains professional boundaries
5. Considers safety and well-being"""


def default_memory() -> Dict[str, Any]:
    """Memory block sent with every message until per-user memory exists."""
    return {
        "userProfile": {
            "emotionalState": [],
            "riskLevel": 0,
            "preferences": {},
        },
        "sessionContext": {
            "conversationThemes": [],
            "currentTechnique": None,
        },
    }


def build_analysis_prompt(message: str, memory: Dict[str, Any], goals: List[str]) -> str:
    context = json.dumps({"memory": memory, "goals": goals}, ensure_ascii=False)
    return ANALYSIS_TEMPLATE.format(message=message, context=context)


def build_reply_prompt(message: str, analysis: Dict[str, Any], memory: Dict[str, Any],
                       goals: List[str]) -> str:
    return REPLY_TEMPLATE.format(
        system_prompt=SYSTEM_PROMPT,
        message=message,
        analysis=json.dumps(analysis, ensure_ascii=False),
        memory=json.dumps(memory, ensure_ascii=False),
        goals=json.dumps(goals, ensure_ascii=False),
    )
