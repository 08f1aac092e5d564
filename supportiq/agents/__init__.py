"""
Deflection agents

Per-ticket decision steps: eligibility preflight, response generation
and confidence routing.
"""

from supportiq.agents import eligibility
from supportiq.agents.generator import (
    LLMProvider,
    ResponseGenerator,
    OpenAIResponseGenerator,
    GeminiResponseGenerator,
    create_generator,
    parse_candidate_payload,
)
from supportiq.agents.router import DecisionRouter

__all__ = [
    "eligibility",
    "LLMProvider",
    "ResponseGenerator",
    "OpenAIResponseGenerator",
    "GeminiResponseGenerator",
    "create_generator",
    "parse_candidate_payload",
    "DecisionRouter",
]
