"""
Repositories package for database operations

Provides repository classes for:
- ai_responses table (ResponseRepository)
- tickets table (TicketRepository)
- deflection_settings table (PolicyRepository)
- knowledge_base / response_templates (KnowledgeRepository)
- deflection_insights table (InsightRepository)
- usage_counters table (UsageRepository)
"""
from supportiq.repositories.response_repository import ResponseRepository
from supportiq.repositories.ticket_repository import TicketRepository
from supportiq.repositories.policy_repository import PolicyRepository
from supportiq.repositories.knowledge_repository import KnowledgeRepository
from supportiq.repositories.insight_repository import InsightRepository
from supportiq.repositories.usage_repository import UsageRepository

__all__ = [
    "ResponseRepository",
    "TicketRepository",
    "PolicyRepository",
    "KnowledgeRepository",
    "InsightRepository",
    "UsageRepository",
]
