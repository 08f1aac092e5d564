"""
Response Generator - structured AI response with confidence scoring

The deterministic pipeline only depends on the ResponseGenerator protocol.
Live adapters:
- OpenAI chat completion in JSON mode (default)
- Google Gemini

Any output that does not match the CandidateResponse contract is raised
as GenerationError; nothing is silently defaulted.
"""
import asyncio
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from supportiq.config import get_settings
from supportiq.errors import GenerationError
from supportiq.models.schemas import (
    CandidateResponse,
    DeflectionPolicy,
    GenerationContext,
    ResponseType,
    Ticket,
)
from supportiq.services.cost_model import CostRates, token_cost
from supportiq.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers"""
    OPENAI = "openai"
    GEMINI = "gemini"


class ResponseGenerator(Protocol):
    """Capability that turns a ticket plus context into one CandidateResponse"""

    async def generate(
        self,
        ticket: Ticket,
        context: GenerationContext,
        policy: DeflectionPolicy
    ) -> CandidateResponse:
        ...


# ============================================================================
# Payload validation
# ============================================================================

class GeneratedPayload(BaseModel):
    """Wire shape the model is asked to produce"""
    model_config = ConfigDict(extra="ignore")

    response_content: str = Field(..., min_length=1)
    response_type: ResponseType
    confidence_score: float = Field(..., ge=0.0, le=1.0, strict=True)
    reasoning: str
    suggested_actions: Optional[List[str]] = None
    escalation_triggers: Optional[List[str]] = None


def parse_candidate_payload(
    payload: Union[str, Dict[str, Any]],
    tokens_used: int = 0,
    rates: Optional[CostRates] = None,
    model_used: Optional[str] = None
) -> CandidateResponse:
    """
    Validate raw generator output and build a CandidateResponse

    Args:
        payload: JSON text or decoded object from the model
        tokens_used: Total tokens reported by the provider
        rates: Token pricing
        model_used: Model identifier for the stored record

    Returns:
        CandidateResponse

    Raises:
        GenerationError: On malformed JSON or contract violations
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise GenerationError(f"Invalid AI response format: {e}") from e

    if not isinstance(payload, dict):
        raise GenerationError("Invalid AI response format: expected a JSON object")

    try:
        data = GeneratedPayload.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise GenerationError(f"Invalid AI response format: {fields}") from e

    return CandidateResponse(
        content=data.response_content,
        type=data.response_type,
        confidence=data.confidence_score,
        reasoning=data.reasoning,
        tokens_used=tokens_used,
        cost_usd=token_cost(tokens_used, rates),
        suggested_actions=data.suggested_actions,
        escalation_triggers=data.escalation_triggers,
        model_used=model_used,
    )


# ============================================================================
# Prompt building
# ============================================================================

def build_system_prompt(policy: DeflectionPolicy) -> str:
    prompt = f"""You are an expert customer support AI. Your goal is to provide helpful, accurate responses that resolve customer issues.

Response Guidelines:
- Be empathetic and professional
- Provide specific, actionable solutions
- Keep responses concise but complete
- Suggest escalation if the issue is complex or sensitive

Available response types:
- auto_resolve: High confidence, complete solution provided
- follow_up: Medium confidence, partial solution with follow-up needed
- escalate: Low confidence or complex issue requiring human intervention

Respond with a JSON object:
{{
  "response_content": "The response to send to the customer",
  "response_type": "auto_resolve | follow_up | escalate",
  "confidence_score": 0.0-1.0,
  "reasoning": "Why this response type and confidence score were chosen",
  "suggested_actions": ["optional follow-up actions"],
  "escalation_triggers": ["optional reasons a human is needed"]
}}

Language: {policy.response_language}"""

    if policy.custom_instructions:
        prompt += f"\n\nCustom Instructions: {policy.custom_instructions}"
    return prompt


def build_user_prompt(ticket: Ticket, context: GenerationContext) -> str:
    conversation = "\n".join(
        f"{turn.role}: {turn.content}" for turn in context.conversation
    ) or "No previous conversation history"

    knowledge = "\n---\n".join(
        f"Title: {kb.title}\nContent: {kb.content}" for kb in context.knowledge
    ) or "No relevant knowledge base articles found"

    templates = "\n---\n".join(
        f"{t.name}: {t.template_content}" for t in context.templates
    ) or "No relevant templates found"

    return f"""CUSTOMER TICKET:
Subject: {ticket.subject or 'No subject'}
Content: {ticket.content}
Category: {ticket.category or 'Uncategorized'}
Priority: {ticket.priority.value}

CONVERSATION HISTORY:
{conversation}

RELEVANT KNOWLEDGE BASE:
{knowledge}

RESPONSE TEMPLATES:
{templates}

Please generate an appropriate response for this customer ticket. Consider:
1. The customer's specific issue and context
2. Relevant knowledge base information
3. Previous conversation history
4. Your confidence in solving this issue"""


# ============================================================================
# Adapters
# ============================================================================

class OpenAIResponseGenerator:
    """OpenAI chat completion adapter (JSON mode)"""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        rates: Optional[CostRates] = None
    ):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.generation_model
        self.rates = rates or CostRates.from_settings(settings)

    async def generate(
        self,
        ticket: Ticket,
        context: GenerationContext,
        policy: DeflectionPolicy
    ) -> CandidateResponse:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(policy)},
                    {"role": "user", "content": build_user_prompt(ticket, context)},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
                max_tokens=800
            )
        except Exception as e:
            logger.error(f"OpenAI generation failed for ticket {ticket.id}: {e}")
            raise GenerationError(str(e)) from e

        if not completion.choices or not completion.choices[0].message.content:
            raise GenerationError("Invalid AI response format: empty completion")

        tokens_used = completion.usage.total_tokens if completion.usage else 0
        return parse_candidate_payload(
            completion.choices[0].message.content,
            tokens_used=tokens_used,
            rates=self.rates,
            model_used=self.model
        )


class GeminiResponseGenerator:
    """Google Gemini adapter; the SDK call is blocking and runs in a thread"""

    def __init__(
        self,
        model: Any = None,
        model_name: Optional[str] = None,
        rates: Optional[CostRates] = None
    ):
        self.model_name = model_name or settings.gemini_model
        if model is None:
            import google.generativeai as genai  # Lazy import for tests

            genai.configure(api_key=settings.google_api_key)
            model = genai.GenerativeModel(self.model_name)
        self.model = model
        self.rates = rates or CostRates.from_settings(settings)

    async def generate(
        self,
        ticket: Ticket,
        context: GenerationContext,
        policy: DeflectionPolicy
    ) -> CandidateResponse:
        prompt = f"{build_system_prompt(policy)}\n\n{build_user_prompt(ticket, context)}"

        try:
            response = await asyncio.to_thread(
                self.model.generate_content,
                prompt,
                generation_config={
                    "temperature": 0.3,
                    "max_output_tokens": 800,
                    "response_mime_type": "application/json",
                }
            )
        except Exception as e:
            logger.error(f"Gemini generation failed for ticket {ticket.id}: {e}")
            raise GenerationError(str(e)) from e

        if not response.candidates or not response.candidates[0].content.parts:
            raise GenerationError("Invalid AI response format: response was blocked or empty")

        usage = getattr(response, "usage_metadata", None)
        tokens_used = getattr(usage, "total_token_count", 0) or 0
        return parse_candidate_payload(
            response.text,
            tokens_used=tokens_used,
            rates=self.rates,
            model_used=self.model_name
        )


def create_generator(provider: Optional[str] = None) -> ResponseGenerator:
    """Build the live generator for the configured provider"""
    provider = LLMProvider(provider or settings.llm_provider)
    if provider == LLMProvider.GEMINI:
        return GeminiResponseGenerator()
    return OpenAIResponseGenerator()
