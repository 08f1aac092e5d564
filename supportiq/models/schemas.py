"""
Pydantic models for SupportIQ Deflection

Covers the records the engine reads and writes:
- Ticket and per-account DeflectionPolicy (inputs)
- CandidateResponse produced by the response generator
- Routing / processing outcomes of the per-ticket pipeline
- Cluster and DeflectionInsight produced by pattern analysis
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, ConfigDict, ValidationInfo


# ============================================================================
# Enums
# ============================================================================

class TicketPriority(str, Enum):
    """Ticket priorities; PRIORITY is the high-priority sentinel"""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    PRIORITY = "priority"


class TicketStatus(str, Enum):
    """Ticket statuses written by the engine"""
    OPEN = "open"
    PENDING = "pending"
    AUTO_RESOLVED = "auto_resolved"
    CLOSED = "closed"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ResponseType(str, Enum):
    """Candidate response classification"""
    AUTO_RESOLVE = "auto_resolve"
    FOLLOW_UP = "follow_up"
    ESCALATE = "escalate"


class RoutingState(str, Enum):
    """
    Per-ticket routing state.

    PENDING is the only non-terminal state. FOLLOW_UP_QUEUED is part of
    the state set but the current routing rule sends every
    non-auto-resolved candidate to ESCALATED.
    """
    PENDING = "pending"
    AUTO_RESOLVED = "auto_resolved"
    FOLLOW_UP_QUEUED = "follow_up_queued"
    ESCALATED = "escalated"
    REJECTED = "rejected"


class Tier(str, Enum):
    """Three-level rating used for insight priority and customer impact"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# ============================================================================
# Account inputs
# ============================================================================

class BusinessHours(BaseModel):
    """
    Business-hours window for automated responses.

    Attributes:
        enabled: Only respond inside the window when True
        start_time: Local start time "HH:MM" (inclusive)
        end_time: Local end time "HH:MM" (exclusive); "24:00" means midnight,
            and an end at or before start wraps past midnight
        timezone: IANA timezone name
        days_of_week: Working days, Monday=0 ... Sunday=6
    """
    model_config = ConfigDict(from_attributes=True)

    enabled: bool = False
    start_time: str = Field("09:00", pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field("17:00", pattern=r"^\d{2}:\d{2}$")
    timezone: str = "UTC"
    days_of_week: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock(cls, v: str, info: ValidationInfo) -> str:
        """Require a real clock time; "24:00" is allowed as end of day"""
        hours, minutes = int(v[:2]), int(v[3:])
        if info.field_name == "end_time" and (hours, minutes) == (24, 0):
            return v
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid {info.field_name} '{v}', expected 00:00-23:59")
        return v


class DeflectionPolicy(BaseModel):
    """
    Per-account deflection settings.

    confidence_threshold >= escalation_threshold is the expected setup;
    it is not enforced and an inverted policy still routes through the
    low-confidence branch.
    """
    model_config = ConfigDict(from_attributes=True)

    account_id: Optional[str] = Field(None, description="Owning account")
    auto_response_enabled: bool = True
    confidence_threshold: float = Field(0.8, ge=0.0, le=1.0)
    escalation_threshold: float = Field(0.5, ge=0.0, le=1.0)
    excluded_categories: List[str] = Field(default_factory=list)
    escalation_keywords: List[str] = Field(default_factory=list)
    business_hours: BusinessHours = Field(default_factory=BusinessHours)
    custom_instructions: Optional[str] = None
    response_language: str = "en"


class Ticket(BaseModel):
    """
    Support ticket as seen by the engine.

    Attributes:
        id: Ticket ID
        account_id: Owning account
        subject: Optional subject line
        content: Body text (non-empty)
        customer_email: Customer contact identifier
        category: Category label, if classified
        priority: Ticket priority
        created_at: Creation timestamp
        embedding: Externally computed embedding vector
        conversation_id: Channel conversation reference for replies
        sentiment: Classified sentiment, if any
        handle_time_minutes: Agent handle time, if known
        resolution: Recorded resolution for closed tickets
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1, max_length=255)
    account_id: str = Field(..., min_length=1, max_length=255)
    subject: Optional[str] = Field(None, max_length=512)
    content: str = Field(..., min_length=1)
    customer_email: Optional[str] = None
    category: Optional[str] = None
    priority: TicketPriority = TicketPriority.NORMAL
    created_at: datetime = Field(default_factory=datetime.utcnow)
    embedding: Optional[List[float]] = None
    conversation_id: Optional[str] = None
    sentiment: Optional[Sentiment] = None
    handle_time_minutes: Optional[float] = Field(None, ge=0)
    resolution: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject whitespace-only content"""
        if not v.strip():
            raise ValueError("Ticket content must not be empty")
        return v


# ============================================================================
# Generation boundary
# ============================================================================

class KnowledgeSnippet(BaseModel):
    title: str
    content: str
    success_rate: Optional[float] = None


class ResponseTemplate(BaseModel):
    name: str
    template_content: str
    category: Optional[str] = None
    success_rate: Optional[float] = None


class ConversationTurn(BaseModel):
    role: str
    content: str
    timestamp: Optional[str] = None


class GenerationContext(BaseModel):
    """Account-scoped supporting context; every block is optional"""
    knowledge: List[KnowledgeSnippet] = Field(default_factory=list)
    templates: List[ResponseTemplate] = Field(default_factory=list)
    conversation: List[ConversationTurn] = Field(default_factory=list)


class CandidateResponse(BaseModel):
    """
    Structured response produced once per ticket by the generator.

    Immutable; the "sent" flag lives on the stored record, not here.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., min_length=1)
    type: ResponseType
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str
    tokens_used: int = Field(0, ge=0)
    cost_usd: float = Field(0.0, ge=0.0)
    suggested_actions: Optional[List[str]] = None
    escalation_triggers: Optional[List[str]] = None
    model_used: Optional[str] = None


# ============================================================================
# Pipeline outcomes
# ============================================================================

class EligibilityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    allow: bool
    reason: str


class QuotaStatus(BaseModel):
    allowed: bool
    used: int = 0
    limit: int = 0


class RoutingOutcome(BaseModel):
    """Terminal routing decision for one ticket"""
    state: RoutingState
    should_respond: bool
    reason: str
    response: Optional[CandidateResponse] = None
    delivered: bool = False


class ProcessingResult(BaseModel):
    """Result of one pipeline run for one ticket"""
    success: bool
    should_respond: bool
    reason: str
    response: Optional[CandidateResponse] = None
    usage_tracked: bool = False
    state: RoutingState = RoutingState.PENDING


# ============================================================================
# Pattern analysis
# ============================================================================

class Cluster(BaseModel):
    """
    Group of similar tickets from one analysis run.

    ticket_ids keeps discovery order; category is taken from the first
    member and never re-evaluated.
    """
    id: str
    ticket_ids: List[str]
    centroid: List[float]
    category: str = "Other"
    keywords: List[str] = Field(default_factory=list)
    members: List[Ticket] = Field(default_factory=list, exclude=True)

    @property
    def size(self) -> int:
        return len(self.ticket_ids)


class DeflectionInsight(BaseModel):
    """Read-only summary of one qualifying cluster"""
    model_config = ConfigDict(frozen=True)

    id: str
    pattern_id: str
    title: str
    description: str
    category: str
    ticket_count: int
    avg_handle_time: float
    annual_cost: int
    monthly_cost: int
    example_questions: List[str]
    recommended_action: str
    kb_article_template: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    priority: Tier
    deflection_potential: int = Field(..., ge=0, le=100)
    customer_impact: Tier
    implementation_difficulty: Difficulty


class CostDriver(BaseModel):
    category: str
    cost: int
    percentage: int


class AnalysisSummary(BaseModel):
    total_tickets_analyzed: int
    repetitive_ticket_count: int
    avg_ticket_cost: float
    top_cost_drivers: List[CostDriver] = Field(default_factory=list)


class Recommendations(BaseModel):
    quick_wins: List[DeflectionInsight] = Field(default_factory=list)
    big_impact: List[DeflectionInsight] = Field(default_factory=list)
    long_term: List[DeflectionInsight] = Field(default_factory=list)


class DeflectionAnalysis(BaseModel):
    """Full deflection-opportunity report for one analysis run"""
    total_potential_savings: int
    monthly_potential_savings: float
    top_insights: List[DeflectionInsight] = Field(default_factory=list)
    summary_stats: AnalysisSummary
    recommendations: Recommendations


class GeneratedFAQ(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: str = "general"
    tags: List[str] = Field(default_factory=list)
    source_ticket_ids: List[str] = Field(default_factory=list)
    confidence: float = Field(0.8, ge=0.0, le=1.0)


# ============================================================================
# Benchmarking
# ============================================================================

class PercentileSummary(BaseModel):
    p25: float = 0
    p50: float = 0
    p75: float = 0
    p90: float = 0
    avg: float = 0


class BenchmarkComparison(BaseModel):
    metric: str
    user_value: float
    industry_average: float
    percentile: float
    comparison: str  # better | worse | average
