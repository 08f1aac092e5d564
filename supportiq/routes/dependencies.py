"""
Service wiring for API routes

Each provider builds its object once per process. Tests replace them
through `app.dependency_overrides`.
"""
from functools import lru_cache

from supportiq.agents.generator import create_generator
from supportiq.agents.router import DecisionRouter
from supportiq.config import get_settings
from supportiq.repositories import (
    InsightRepository,
    KnowledgeRepository,
    PolicyRepository,
    ResponseRepository,
    TicketRepository,
    UsageRepository,
)
from supportiq.services.analysis import AnalysisService
from supportiq.services.intercom import IntercomClient
from supportiq.services.pipeline import DeflectionPipeline

settings = get_settings()


@lru_cache()
def get_response_repository() -> ResponseRepository:
    return ResponseRepository()


@lru_cache()
def get_ticket_repository() -> TicketRepository:
    return TicketRepository()


@lru_cache()
def get_pipeline() -> DeflectionPipeline:
    delivery = IntercomClient() if settings.intercom_access_token else None
    router = DecisionRouter(
        response_store=get_response_repository(),
        ticket_store=get_ticket_repository(),
        delivery=delivery,
        delivery_confidence_floor=settings.delivery_confidence_floor,
    )
    return DeflectionPipeline(
        generator=create_generator(),
        router=router,
        quota=UsageRepository(default_limit=settings.default_usage_limit),
        policies=PolicyRepository(),
        context_provider=KnowledgeRepository(),
        meter=settings.usage_meter_name,
        generation_timeout=settings.generation_timeout_seconds,
    )


@lru_cache()
def get_analysis_service() -> AnalysisService:
    return AnalysisService(
        ticket_repository=get_ticket_repository(),
        insight_repository=InsightRepository(),
    )
