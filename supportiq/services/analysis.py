"""
Deflection Analysis Service

Runs one pattern-analysis pass for an account: load history, embed,
cluster, build the report and persist its insights.
"""
from typing import Optional

from pydantic import BaseModel, Field

from supportiq.config import get_settings
from supportiq.errors import InsufficientDataError
from supportiq.models.schemas import DeflectionAnalysis
from supportiq.services.clustering import SimilarityClusterer
from supportiq.services.embedding import EmbeddingService
from supportiq.services.insights import PatternInsightBuilder
from supportiq.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


class AnalysisParams(BaseModel):
    """Bounds for one analysis run"""
    days: int = Field(90, ge=30, le=180)
    min_tickets: int = Field(10, ge=5, le=100)
    agent_hourly_cost: float = Field(30.0, ge=15, le=200)


class AnalysisService:
    """
    Args:
        ticket_repository: Source of analyzed tickets
        insight_repository: Destination for insights (optional)
        embedding_service: Embedding boundary for tickets missing a vector
        similarity_threshold: Clustering threshold
    """

    def __init__(
        self,
        ticket_repository,
        insight_repository=None,
        embedding_service: Optional[EmbeddingService] = None,
        similarity_threshold: Optional[float] = None,
        builder: Optional[PatternInsightBuilder] = None
    ):
        self.ticket_repository = ticket_repository
        self.insight_repository = insight_repository
        self.embedding_service = embedding_service or EmbeddingService()
        self.clusterer = SimilarityClusterer(similarity_threshold or settings.similarity_threshold)
        self.builder = builder or PatternInsightBuilder(settings.default_handle_time_minutes)

    async def run(self, account_id: str, params: Optional[AnalysisParams] = None) -> DeflectionAnalysis:
        """
        Analyze an account's recent tickets

        Raises:
            InsufficientDataError: Fewer than `min_tickets` tickets in the window
            ClusteringInputError: Embeddings of mixed dimensions
        """
        params = params or AnalysisParams()
        tickets = await self.ticket_repository.get_tickets_for_analysis(account_id, params.days)

        if len(tickets) < params.min_tickets:
            raise InsufficientDataError(
                f"Need at least {params.min_tickets} analyzed tickets "
                f"from the last {params.days} days",
                current_count=len(tickets)
            )

        tickets = await self.embedding_service.fill_missing(tickets)
        clusters = self.clusterer.cluster(tickets)
        analysis = self.builder.analyze(
            tickets, clusters, params.min_tickets, params.agent_hourly_cost
        )

        if self.insight_repository is not None:
            await self.insight_repository.save_insights(account_id, analysis.top_insights)

        logger.info(
            f"Deflection analysis for account {account_id}: "
            f"{len(tickets)} tickets, {len(clusters)} clusters, "
            f"{len(analysis.top_insights)} insights, "
            f"${analysis.total_potential_savings} potential savings"
        )
        return analysis
