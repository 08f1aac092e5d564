"""
Pattern Insight Builder - deflection opportunities from ticket clusters

Turns qualifying clusters into DeflectionInsights (cost, priority,
deflection potential, impact, difficulty, KB article template) and rolls
them up into a DeflectionAnalysis report.
"""
from typing import List, Optional, Sequence

from supportiq.models.schemas import (
    AnalysisSummary,
    Cluster,
    DeflectionAnalysis,
    DeflectionInsight,
    Difficulty,
    Recommendations,
    Sentiment,
    Ticket,
    Tier,
)
from supportiq.services import cost_model
from supportiq.services.clustering import cluster_keywords
from supportiq.utils.logger import get_logger
from supportiq.utils.text import format_theme

logger = get_logger(__name__)

FAQ_PRONE_CATEGORIES = frozenset(["how-to", "billing", "account", "technical"])
EASY_CATEGORIES = frozenset(["billing", "account", "how-to"])
HARD_TOPICS = ("integration", "api", "custom", "advanced")

BASE_POTENTIAL_FAQ = 80
BASE_POTENTIAL_OTHER = 60
NEGATIVE_SENTIMENT_PENALTY = 20
MIN_POTENTIAL = 30
MAX_POTENTIAL = 95

CONFIDENCE_CAP = 0.9
CONFIDENCE_SATURATION = 50

EXAMPLE_QUESTION_COUNT = 3
EXAMPLE_QUESTION_MIN_LENGTH = 10

TOP_INSIGHTS = 10
QUICK_WIN_LIMIT = 3
BIG_IMPACT_LIMIT = 5
LONG_TERM_LIMIT = 3
BIG_IMPACT_SHARE = 0.1


# ============================================================================
# Heuristics
# ============================================================================

def deflection_potential(tickets: Sequence[Ticket], category: str) -> int:
    score = BASE_POTENTIAL_FAQ if category.lower() in FAQ_PRONE_CATEGORIES else BASE_POTENTIAL_OTHER
    if any(t.sentiment == Sentiment.NEGATIVE for t in tickets):
        score -= NEGATIVE_SENTIMENT_PENALTY
    return max(MIN_POTENTIAL, min(MAX_POTENTIAL, score))


def customer_impact(tickets: Sequence[Ticket]) -> Tier:
    """Impact from the share of tickets raised by repeat customers"""
    if not tickets:
        return Tier.LOW
    unique_customers = len({t.customer_email for t in tickets})
    repeat_rate = 1 - unique_customers / len(tickets)
    if repeat_rate > 0.5:
        return Tier.HIGH
    if repeat_rate > 0.3:
        return Tier.MEDIUM
    return Tier.LOW


def implementation_difficulty(category: str, keywords: Sequence[str]) -> Difficulty:
    if category.lower() in EASY_CATEGORIES:
        return Difficulty.EASY
    if any(topic in keyword for keyword in keywords for topic in HARD_TOPICS):
        return Difficulty.HARD
    return Difficulty.MEDIUM


def insight_confidence(ticket_count: int) -> float:
    return min(CONFIDENCE_CAP, ticket_count / CONFIDENCE_SATURATION)


def recommended_action(potential: int) -> str:
    if potential > 70:
        return "Create comprehensive KB article"
    return "Improve existing documentation"


def example_questions(tickets: Sequence[Ticket]) -> List[str]:
    """Subjects (or truncated content) of the first members, short ones dropped"""
    questions = []
    for ticket in tickets[:EXAMPLE_QUESTION_COUNT]:
        question = ticket.subject or f"{ticket.content[:100]}..."
        if len(question) > EXAMPLE_QUESTION_MIN_LENGTH:
            questions.append(question)
    return questions


def cluster_theme(cluster: Cluster) -> str:
    """Display theme from the cluster keywords, derived from members if unset"""
    return format_theme(cluster.keywords or cluster_keywords(cluster.members))


def kb_article_template(theme: str, questions: Sequence[str]) -> str:
    """Markdown skeleton for a KB article covering the cluster"""
    sections = "\n\n".join(
        f"### {i}. {question}\n[Add detailed answer here]"
        for i, question in enumerate(questions, start=1)
    )
    return f"""# {theme} - Frequently Asked Questions

## Overview
This article addresses common questions about {theme.lower()}.

## Common Questions

{sections}

## Related Articles
- [Link to related article 1]
- [Link to related article 2]

## Still Need Help?
If you can't find what you're looking for, please contact our support team.

---
*This KB article was generated based on analysis of {len(questions)} similar support tickets.*"""


# ============================================================================
# Builder
# ============================================================================

class PatternInsightBuilder:
    """
    Build deflection insights from clusters

    Args:
        default_handle_time_minutes: Handle time for tickets without one
    """

    def __init__(self, default_handle_time_minutes: float = cost_model.DEFAULT_HANDLE_TIME_MINUTES):
        self.default_handle_time_minutes = default_handle_time_minutes

    def build_insight(self, cluster: Cluster, agent_hourly_cost: float) -> Optional[DeflectionInsight]:
        """
        Summarize one cluster

        Returns None when no member yields a usable example question.
        """
        tickets = cluster.members
        count = cluster.size
        questions = example_questions(tickets)
        if not questions:
            logger.debug(f"Skipping {cluster.id}: no usable example questions")
            return None

        avg_minutes = cost_model.average_handle_time(tickets, self.default_handle_time_minutes)
        annual = cost_model.annual_cost(count, avg_minutes, agent_hourly_cost)
        keywords = cluster.keywords or cluster_keywords(tickets)
        theme = format_theme(keywords)
        potential = deflection_potential(tickets, cluster.category)

        return DeflectionInsight(
            id=f"deflection_{cluster.id}",
            pattern_id=cluster.id,
            title=f'Reduce "{theme}" tickets',
            description=(
                f"{count} customers ask about {theme.lower()} every month. "
                f"Create a KB article to deflect these tickets."
            ),
            category=cluster.category,
            ticket_count=count,
            avg_handle_time=avg_minutes,
            annual_cost=annual,
            monthly_cost=cost_model.monthly_cost(annual),
            example_questions=questions,
            recommended_action=recommended_action(potential),
            kb_article_template=kb_article_template(theme, questions),
            confidence=insight_confidence(count),
            priority=cost_model.priority_tier(annual),
            deflection_potential=potential,
            customer_impact=customer_impact(tickets),
            implementation_difficulty=implementation_difficulty(cluster.category, keywords),
        )

    def build(
        self,
        clusters: Sequence[Cluster],
        min_cluster_size: int,
        agent_hourly_cost: float
    ) -> List[DeflectionInsight]:
        """
        Insights for clusters with at least `min_cluster_size` members

        Returns:
            Insights sorted by annual cost, highest first
        """
        insights = []
        for cluster in clusters:
            if cluster.size < min_cluster_size:
                continue
            insight = self.build_insight(cluster, agent_hourly_cost)
            if insight:
                insights.append(insight)

        insights.sort(key=lambda i: i.annual_cost, reverse=True)
        logger.info(f"Built {len(insights)} insights from {len(clusters)} clusters")
        return insights

    def analyze(
        self,
        tickets: Sequence[Ticket],
        clusters: Sequence[Cluster],
        min_cluster_size: int,
        agent_hourly_cost: float
    ) -> DeflectionAnalysis:
        """
        Full deflection report for one analysis run

        Args:
            tickets: All tickets analyzed in the run
            clusters: Clusters produced from those tickets
            min_cluster_size: Minimum members for a cluster to count
            agent_hourly_cost: Fully loaded agent cost per hour

        Returns:
            DeflectionAnalysis with savings, top insights and recommendations
        """
        insights = self.build(clusters, min_cluster_size, agent_hourly_cost)
        total = cost_model.annualized_savings(i.annual_cost for i in insights)

        quick_wins = [
            i for i in insights
            if i.implementation_difficulty == Difficulty.EASY and i.deflection_potential > 60
        ][:QUICK_WIN_LIMIT]
        big_impact = [
            i for i in insights if i.annual_cost > total * BIG_IMPACT_SHARE
        ][:BIG_IMPACT_LIMIT]
        long_term = [
            i for i in insights
            if i.customer_impact == Tier.HIGH and i.implementation_difficulty == Difficulty.HARD
        ][:LONG_TERM_LIMIT]

        repetitive = sum(c.size for c in clusters if c.size >= min_cluster_size)

        return DeflectionAnalysis(
            total_potential_savings=total,
            monthly_potential_savings=total / 12,
            top_insights=insights[:TOP_INSIGHTS],
            summary_stats=AnalysisSummary(
                total_tickets_analyzed=len(tickets),
                repetitive_ticket_count=repetitive,
                avg_ticket_cost=cost_model.average_ticket_cost(
                    tickets, agent_hourly_cost, self.default_handle_time_minutes
                ),
                top_cost_drivers=cost_model.cost_by_category(
                    tickets, agent_hourly_cost, default_minutes=self.default_handle_time_minutes
                ),
            ),
            recommendations=Recommendations(
                quick_wins=quick_wins,
                big_impact=big_impact,
                long_term=long_term,
            ),
        )
