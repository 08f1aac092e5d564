"""
Tests for response generation: payload contract and provider adapters
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from supportiq.agents.generator import (
    GeminiResponseGenerator,
    OpenAIResponseGenerator,
    build_system_prompt,
    build_user_prompt,
    parse_candidate_payload,
)
from supportiq.errors import GenerationError
from supportiq.models.schemas import (
    ConversationTurn,
    GenerationContext,
    KnowledgeSnippet,
    ResponseType,
)
from supportiq.services.cost_model import CostRates


def _payload(**overrides):
    data = {
        "response_content": "Click 'Forgot password' on the login page.",
        "response_type": "auto_resolve",
        "confidence_score": 0.92,
        "reasoning": "Matches the password reset article",
    }
    data.update(overrides)
    return data


def _completion(content, total_tokens=1000):
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    completion.usage.total_tokens = total_tokens
    return completion


class TestParseCandidatePayload:
    def test_valid_payload(self):
        response = parse_candidate_payload(json.dumps(_payload()), tokens_used=1000)

        assert response.type == ResponseType.AUTO_RESOLVE
        assert response.confidence == 0.92
        assert response.tokens_used == 1000
        assert response.cost_usd == pytest.approx(0.000285)

    def test_optional_lists(self):
        payload = _payload(suggested_actions=["Check spam folder"], escalation_triggers=[])
        response = parse_candidate_payload(payload)
        assert response.suggested_actions == ["Check spam folder"]
        assert response.escalation_triggers == []

    def test_zero_tokens_zero_cost(self):
        assert parse_candidate_payload(_payload()).cost_usd == 0

    def test_custom_rates(self):
        rates = CostRates(input_token_rate=0.001, output_token_rate=0.002, input_token_share=0.5)
        response = parse_candidate_payload(_payload(), tokens_used=100, rates=rates)
        assert response.cost_usd == pytest.approx(0.15)

    def test_malformed_json(self):
        with pytest.raises(GenerationError, match="Invalid AI response format"):
            parse_candidate_payload("not json {")

    def test_non_object(self):
        with pytest.raises(GenerationError, match="expected a JSON object"):
            parse_candidate_payload("[1, 2, 3]")

    def test_missing_field(self):
        payload = _payload()
        del payload["reasoning"]
        with pytest.raises(GenerationError, match="reasoning"):
            parse_candidate_payload(payload)

    def test_unknown_response_type(self):
        with pytest.raises(GenerationError, match="response_type"):
            parse_candidate_payload(_payload(response_type="maybe"))

    @pytest.mark.parametrize("score", [1.5, -0.1])
    def test_confidence_out_of_range(self, score):
        with pytest.raises(GenerationError, match="confidence_score"):
            parse_candidate_payload(_payload(confidence_score=score))

    def test_confidence_string_rejected(self):
        """No silent coercion of a string score"""
        with pytest.raises(GenerationError, match="confidence_score"):
            parse_candidate_payload(_payload(confidence_score="0.9"))

    def test_empty_content_rejected(self):
        with pytest.raises(GenerationError):
            parse_candidate_payload(_payload(response_content=""))


class TestPrompts:
    def test_system_prompt_language_and_instructions(self, policy):
        policy.response_language = "ko"
        policy.custom_instructions = "Always sign off as Team Acme"
        prompt = build_system_prompt(policy)

        assert "Language: ko" in prompt
        assert "Custom Instructions: Always sign off as Team Acme" in prompt

    def test_system_prompt_without_instructions(self, policy):
        assert "Custom Instructions" not in build_system_prompt(policy)

    def test_user_prompt_with_context(self, make_ticket):
        ticket = make_ticket(subject="Password reset")
        context = GenerationContext(
            knowledge=[KnowledgeSnippet(title="Resetting passwords", content="Use the link")],
            conversation=[ConversationTurn(role="customer", content="Hi there")],
        )
        prompt = build_user_prompt(ticket, context)

        assert "Subject: Password reset" in prompt
        assert "Title: Resetting passwords" in prompt
        assert "customer: Hi there" in prompt
        assert "No relevant templates found" in prompt

    def test_user_prompt_empty_context(self, make_ticket):
        prompt = build_user_prompt(make_ticket(category=None), GenerationContext())

        assert "Subject: No subject" in prompt
        assert "Category: Uncategorized" in prompt
        assert "No previous conversation history" in prompt
        assert "No relevant knowledge base articles found" in prompt


class TestOpenAIResponseGenerator:
    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_generate(self, client, make_ticket, policy):
        client.chat.completions.create.return_value = _completion(json.dumps(_payload()))
        generator = OpenAIResponseGenerator(client=client, model="gpt-4o-mini")

        response = await generator.generate(make_ticket(), GenerationContext(), policy)

        assert response.confidence == 0.92
        assert response.tokens_used == 1000
        assert response.model_used == "gpt-4o-mini"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self, client, make_ticket, policy):
        client.chat.completions.create.side_effect = RuntimeError("rate limited")
        generator = OpenAIResponseGenerator(client=client)

        with pytest.raises(GenerationError, match="rate limited"):
            await generator.generate(make_ticket(), GenerationContext(), policy)

    @pytest.mark.asyncio
    async def test_empty_completion(self, client, make_ticket, policy):
        client.chat.completions.create.return_value = _completion(None)
        generator = OpenAIResponseGenerator(client=client)

        with pytest.raises(GenerationError, match="empty completion"):
            await generator.generate(make_ticket(), GenerationContext(), policy)

    @pytest.mark.asyncio
    async def test_contract_violation(self, client, make_ticket, policy):
        client.chat.completions.create.return_value = _completion(
            json.dumps(_payload(confidence_score=3))
        )
        generator = OpenAIResponseGenerator(client=client)

        with pytest.raises(GenerationError):
            await generator.generate(make_ticket(), GenerationContext(), policy)


class TestGeminiResponseGenerator:
    @staticmethod
    def _gemini_response(text, tokens=500):
        response = MagicMock()
        response.candidates = [MagicMock()]
        response.candidates[0].content.parts = [MagicMock()]
        response.text = text
        response.usage_metadata.total_token_count = tokens
        return response

    @pytest.mark.asyncio
    async def test_generate(self, make_ticket, policy):
        model = MagicMock()
        model.generate_content.return_value = self._gemini_response(
            json.dumps(_payload(response_type="follow_up", confidence_score=0.6))
        )
        generator = GeminiResponseGenerator(model=model, model_name="gemini-test")

        response = await generator.generate(make_ticket(), GenerationContext(), policy)

        assert response.type == ResponseType.FOLLOW_UP
        assert response.tokens_used == 500
        assert response.model_used == "gemini-test"
        model.generate_content.assert_called_once()

    @pytest.mark.asyncio
    async def test_blocked_response(self, make_ticket, policy):
        model = MagicMock()
        blocked = MagicMock()
        blocked.candidates = []
        model.generate_content.return_value = blocked
        generator = GeminiResponseGenerator(model=model)

        with pytest.raises(GenerationError, match="blocked or empty"):
            await generator.generate(make_ticket(), GenerationContext(), policy)

    @pytest.mark.asyncio
    async def test_sdk_error_wrapped(self, make_ticket, policy):
        model = MagicMock()
        model.generate_content.side_effect = ValueError("quota exceeded")
        generator = GeminiResponseGenerator(model=model)

        with pytest.raises(GenerationError, match="quota exceeded"):
            await generator.generate(make_ticket(), GenerationContext(), policy)
