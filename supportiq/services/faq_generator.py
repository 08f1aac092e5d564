"""
FAQ Generator - knowledge base articles from recurring resolved tickets

1. Load recent resolved tickets
2. Cluster them with the SimilarityClusterer
3. Keep clusters with at least `min_ticket_count` members, largest first
4. Ask the LLM for one FAQ article per cluster
5. Store the FAQs as active knowledge base articles
"""
import json
from typing import List, Optional

from openai import AsyncOpenAI

from supportiq.config import get_settings
from supportiq.models.schemas import Cluster, GeneratedFAQ
from supportiq.services.clustering import SimilarityClusterer
from supportiq.services.embedding import EmbeddingService
from supportiq.services.insights import cluster_theme
from supportiq.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

EXAMPLES_PER_FAQ = 5


def build_faq_prompt(cluster: Cluster, theme: str) -> str:
    examples = "\n".join(
        f"""Example {i}:
Subject: {t.subject or 'No subject'}
Customer Question: {t.content[:300]}
Resolution: {(t.resolution or 'No resolution recorded')[:300]}
"""
        for i, t in enumerate(cluster.members[:EXAMPLES_PER_FAQ], start=1)
    )

    return f"""Based on these similar customer support tickets, create a comprehensive FAQ article.

Common Theme: {theme}
Frequency: {cluster.size} times in recent period

Example Tickets:
{examples}
Create a FAQ article with:
1. A clear, customer-friendly title (question format)
2. A comprehensive answer that addresses this issue
3. Relevant tags for categorization
4. Appropriate category

Return JSON format:
{{
  "title": "How do I reset my password?",
  "content": "Detailed step-by-step answer...",
  "category": "authentication",
  "tags": ["password", "reset", "login"],
  "confidence": 0.85
}}"""


class FAQGenerator:
    """
    Generate FAQ articles for one account

    Args:
        ticket_repository: Source of resolved tickets
        knowledge_repository: Destination for generated articles
        embedding_service: Fills in missing ticket embeddings
        client: OpenAI client (default: from settings)
        similarity_threshold: Clustering threshold
    """

    def __init__(
        self,
        ticket_repository,
        knowledge_repository,
        embedding_service: Optional[EmbeddingService] = None,
        client: Optional[AsyncOpenAI] = None,
        similarity_threshold: Optional[float] = None,
        model: Optional[str] = None
    ):
        self.ticket_repository = ticket_repository
        self.knowledge_repository = knowledge_repository
        self.embedding_service = embedding_service or EmbeddingService()
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.clusterer = SimilarityClusterer(similarity_threshold or settings.similarity_threshold)
        self.model = model or settings.generation_model

    async def write_faq(self, cluster: Cluster) -> Optional[GeneratedFAQ]:
        """
        Ask the LLM for an FAQ covering one cluster

        Raises:
            ValueError: On malformed or incomplete output (ValidationError included)
        """
        theme = cluster_theme(cluster)
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "system",
                    "content": "You are a customer support expert who creates helpful FAQ articles. "
                               "Write in a friendly, professional tone. Return only valid JSON."
                },
                {"role": "user", "content": build_faq_prompt(cluster, theme)},
            ],
            response_format={"type": "json_object"},
            temperature=0.3,
            max_tokens=1500
        )

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            return None

        data = json.loads(content)
        return GeneratedFAQ(
            title=data.get("title") or "",
            content=data.get("content") or "",
            category=data.get("category") or cluster.category,
            tags=data.get("tags") or [],
            source_ticket_ids=list(cluster.ticket_ids),
            confidence=data.get("confidence") or 0.8,
        )

    async def generate(
        self,
        account_id: str,
        days_back: int = 30,
        min_ticket_count: int = 3,
        max_faqs: int = 10
    ) -> List[GeneratedFAQ]:
        """
        Generate and store FAQs for an account

        Returns:
            The FAQs that were generated (failed clusters are skipped)
        """
        tickets = await self.ticket_repository.get_resolved_tickets(account_id, days_back)
        if len(tickets) < min_ticket_count:
            logger.info(
                f"Not enough resolved tickets for FAQ generation "
                f"({len(tickets)} < {min_ticket_count})"
            )
            return []

        tickets = await self.embedding_service.fill_missing(tickets)
        clusters = self.clusterer.cluster(tickets)

        significant = sorted(
            (c for c in clusters if c.size >= min_ticket_count),
            key=lambda c: c.size,
            reverse=True
        )[:max_faqs]

        faqs = []
        for cluster in significant:
            try:
                faq = await self.write_faq(cluster)
            except Exception as e:
                logger.error(f"Error generating FAQ for {cluster.id}: {e}")
                continue
            if faq:
                faqs.append(faq)

        stored = await self.knowledge_repository.store_faqs(account_id, faqs)
        logger.info(f"Generated {len(faqs)} FAQs for account {account_id} (stored {stored})")
        return faqs
