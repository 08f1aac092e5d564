"""
pytest configuration and shared fixtures
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from supportiq.models.schemas import (
    CandidateResponse,
    DeflectionPolicy,
    ResponseType,
    Ticket,
)


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "requires_supabase: mark test as requiring Supabase service"
    )


@pytest.fixture
def make_ticket():
    """Factory for tickets with sensible defaults"""
    counter = {"n": 0}

    def _make(**overrides) -> Ticket:
        counter["n"] += 1
        data = {
            "id": f"T-{counter['n']}",
            "account_id": "acct-1",
            "content": "How do I reset my password?",
            "customer_email": f"customer{counter['n']}@example.com",
            "category": "account",
            "priority": "normal",
        }
        data.update(overrides)
        return Ticket(**data)

    return _make


@pytest.fixture
def policy():
    """Enabled policy with one escalation keyword"""
    return DeflectionPolicy(
        account_id="acct-1",
        auto_response_enabled=True,
        confidence_threshold=0.8,
        escalation_threshold=0.5,
        excluded_categories=[],
        escalation_keywords=["urgent"],
    )


@pytest.fixture
def make_response():
    """Factory for candidate responses"""
    def _make(confidence: float = 0.9, type: str = "auto_resolve", **overrides) -> CandidateResponse:
        data = {
            "content": "Click 'Forgot password' on the login page.",
            "type": ResponseType(type),
            "confidence": confidence,
            "reasoning": "Matches the password reset article",
            "tokens_used": 1000,
            "cost_usd": 0.000285,
        }
        data.update(overrides)
        return CandidateResponse(**data)

    return _make


@pytest.fixture
def response_store():
    store = MagicMock()
    store.save_response = AsyncMock(return_value={"id": "resp-1"})
    store.mark_sent = AsyncMock(return_value=None)
    return store


@pytest.fixture
def ticket_store():
    store = MagicMock()
    store.update_status = AsyncMock(return_value=None)
    return store


@pytest.fixture
def delivery():
    channel = MagicMock()
    channel.send_reply = AsyncMock(return_value="msg_1")
    return channel


@pytest.fixture
def mock_supabase():
    """Mocked Supabase client with chainable query builder"""
    client = MagicMock()

    rpc_mock = MagicMock()
    rpc_mock.execute.return_value = MagicMock(data=None, count=None)
    client.rpc.return_value = rpc_mock

    client.table.return_value = client
    client.insert.return_value = client
    client.update.return_value = client
    client.upsert.return_value = client
    client.delete.return_value = client
    client.select.return_value = client
    client.eq.return_value = client
    client.gte.return_value = client
    client.in_.return_value = client
    client.or_.return_value = client
    client.is_.return_value = client
    client.not_ = client
    client.order.return_value = client
    client.limit.return_value = client

    client.execute.return_value = MagicMock(data=[], count=0)

    return client
