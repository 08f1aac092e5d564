"""
Pydantic models for SupportIQ Deflection
"""

from supportiq.models.schemas import (
    # Enums
    TicketPriority,
    TicketStatus,
    Sentiment,
    ResponseType,
    RoutingState,
    Tier,
    Difficulty,

    # Account inputs
    BusinessHours,
    DeflectionPolicy,
    Ticket,

    # Generation boundary
    KnowledgeSnippet,
    ResponseTemplate,
    ConversationTurn,
    GenerationContext,
    CandidateResponse,

    # Pipeline outcomes
    EligibilityResult,
    QuotaStatus,
    RoutingOutcome,
    ProcessingResult,

    # Pattern analysis
    Cluster,
    DeflectionInsight,
    CostDriver,
    AnalysisSummary,
    Recommendations,
    DeflectionAnalysis,
    GeneratedFAQ,

    # Benchmarking
    PercentileSummary,
    BenchmarkComparison,
)

__all__ = [
    # Enums
    "TicketPriority",
    "TicketStatus",
    "Sentiment",
    "ResponseType",
    "RoutingState",
    "Tier",
    "Difficulty",

    # Account inputs
    "BusinessHours",
    "DeflectionPolicy",
    "Ticket",

    # Generation boundary
    "KnowledgeSnippet",
    "ResponseTemplate",
    "ConversationTurn",
    "GenerationContext",
    "CandidateResponse",

    # Pipeline outcomes
    "EligibilityResult",
    "QuotaStatus",
    "RoutingOutcome",
    "ProcessingResult",

    # Pattern analysis
    "Cluster",
    "DeflectionInsight",
    "CostDriver",
    "AnalysisSummary",
    "Recommendations",
    "DeflectionAnalysis",
    "GeneratedFAQ",

    # Benchmarking
    "PercentileSummary",
    "BenchmarkComparison",
]
