"""
Cost Model - shared numeric utilities

- Token cost of a generated response
- Per-ticket and per-cluster agent cost, annualized savings
- Percentile-based benchmarking

Rates and thresholds are passed in explicitly (see CostRates); nothing
here reads settings on its own.
"""
import math
from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from supportiq.models.schemas import (
    BenchmarkComparison,
    CostDriver,
    PercentileSummary,
    Ticket,
    Tier,
)

# weeks per month, used as the annualization factor for cluster volume
ANNUALIZATION_FACTOR = 4.33
HIGH_PRIORITY_COST = 10000
MEDIUM_PRIORITY_COST = 3000
DEFAULT_HANDLE_TIME_MINUTES = 15.0

LOWER_IS_BETTER_METRICS = frozenset(["response_time"])


class CostRates(BaseModel):
    """Pricing knobs for generation cost"""
    input_token_rate: float = Field(0.15 / 1_000_000, ge=0)
    output_token_rate: float = Field(0.60 / 1_000_000, ge=0)
    input_token_share: float = Field(0.7, ge=0, le=1)

    @classmethod
    def from_settings(cls, settings) -> "CostRates":
        return cls(
            input_token_rate=settings.input_token_rate,
            output_token_rate=settings.output_token_rate,
            input_token_share=settings.input_token_share,
        )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity"""
    return int(math.floor(value + 0.5))


# ============================================================================
# Generation cost
# ============================================================================

def token_cost(tokens_used: int, rates: Optional[CostRates] = None) -> float:
    """
    Convert total token usage to USD

    Input tokens are estimated as `input_token_share` of the total and
    output tokens as the remainder.
    """
    rates = rates or CostRates()
    input_tokens = tokens_used * rates.input_token_share
    output_tokens = tokens_used * (1 - rates.input_token_share)
    return input_tokens * rates.input_token_rate + output_tokens * rates.output_token_rate


# ============================================================================
# Agent cost
# ============================================================================

def handle_time(ticket: Ticket, default_minutes: float = DEFAULT_HANDLE_TIME_MINUTES) -> float:
    """Ticket handle time in minutes; missing or zero falls back to the default"""
    return ticket.handle_time_minutes or default_minutes


def average_handle_time(
    tickets: Sequence[Ticket],
    default_minutes: float = DEFAULT_HANDLE_TIME_MINUTES
) -> float:
    if not tickets:
        return 0.0
    return sum(handle_time(t, default_minutes) for t in tickets) / len(tickets)


def per_ticket_cost(handle_minutes: float, agent_hourly_cost: float) -> float:
    return (handle_minutes / 60) * agent_hourly_cost


def average_ticket_cost(
    tickets: Sequence[Ticket],
    agent_hourly_cost: float,
    default_minutes: float = DEFAULT_HANDLE_TIME_MINUTES
) -> float:
    """Average agent cost per ticket, rounded to cents"""
    if not tickets:
        return 0.0
    cost = per_ticket_cost(average_handle_time(tickets, default_minutes), agent_hourly_cost)
    return round_half_up(cost * 100) / 100


def annual_cost(ticket_count: int, avg_handle_minutes: float, agent_hourly_cost: float) -> int:
    """
    Annualized agent cost of a recurring ticket pattern

    annual = round(count * hours * rate * 4.33)
    """
    return round_half_up(
        ticket_count * (avg_handle_minutes / 60) * agent_hourly_cost * ANNUALIZATION_FACTOR
    )


def monthly_cost(annual: int) -> int:
    return round_half_up(annual / 12)


def priority_tier(annual: float) -> Tier:
    if annual > HIGH_PRIORITY_COST:
        return Tier.HIGH
    if annual > MEDIUM_PRIORITY_COST:
        return Tier.MEDIUM
    return Tier.LOW


def annualized_savings(annual_costs: Iterable[int]) -> int:
    return sum(annual_costs)


def cost_by_category(
    tickets: Sequence[Ticket],
    agent_hourly_cost: float,
    limit: int = 5,
    default_minutes: float = DEFAULT_HANDLE_TIME_MINUTES
) -> List[CostDriver]:
    """
    Top categories by total agent cost

    Tickets without a category are grouped under "Other". Percentages are
    of the unrounded total cost.
    """
    minutes_by_category = OrderedDict()
    for ticket in tickets:
        category = ticket.category or "Other"
        minutes_by_category[category] = (
            minutes_by_category.get(category, 0.0) + handle_time(ticket, default_minutes)
        )

    total = sum(per_ticket_cost(m, agent_hourly_cost) for m in minutes_by_category.values())
    if total <= 0:
        return []

    drivers = []
    for category, minutes in minutes_by_category.items():
        cost = round_half_up(per_ticket_cost(minutes, agent_hourly_cost))
        drivers.append(CostDriver(
            category=category,
            cost=cost,
            percentage=round_half_up(cost / total * 100)
        ))

    drivers.sort(key=lambda d: d.cost, reverse=True)
    return drivers[:limit]


# ============================================================================
# Benchmarking
# ============================================================================

def percentiles(values: Sequence[float]) -> PercentileSummary:
    """p25/p50/p75/p90 by floor index into the sorted values, plus rounded mean"""
    if not values:
        return PercentileSummary()

    ordered = sorted(values)
    n = len(ordered)
    return PercentileSummary(
        p25=ordered[math.floor(n * 0.25)],
        p50=ordered[math.floor(n * 0.5)],
        p75=ordered[math.floor(n * 0.75)],
        p90=ordered[math.floor(n * 0.9)],
        avg=round_half_up(sum(ordered) / n),
    )


def _interpolate(value: float, low: float, high: float, base: float, span: float) -> float:
    if high == low:
        return base + span
    return base + (value - low) / (high - low) * span


def user_percentile(value: float, summary: PercentileSummary) -> float:
    """Place a value on the benchmark distribution (25..90)"""
    if value <= summary.p25:
        return 25
    if value <= summary.p50:
        return _interpolate(value, summary.p25, summary.p50, 25, 25)
    if value <= summary.p75:
        return _interpolate(value, summary.p50, summary.p75, 50, 25)
    if value <= summary.p90:
        return _interpolate(value, summary.p75, summary.p90, 75, 15)
    return 90


def compare(percentile: float, metric: str) -> str:
    """better | worse | average; lower-is-better metrics invert the scale"""
    if metric in LOWER_IS_BETTER_METRICS:
        if percentile <= 25:
            return "better"
        if percentile >= 75:
            return "worse"
        return "average"

    if percentile >= 75:
        return "better"
    if percentile <= 25:
        return "worse"
    return "average"


def improvement_opportunity(value: float, summary: PercentileSummary, metric: str) -> int:
    """Percent change needed to reach the 75th percentile (0 when already there)"""
    target = summary.p75
    if metric in LOWER_IS_BETTER_METRICS:
        if value > target:
            return round_half_up((value - target) / value * 100)
        return 0
    if value < target and target:
        return round_half_up((target - value) / target * 100)
    return 0


def benchmark(metric: str, value: float, industry_values: Sequence[float]) -> BenchmarkComparison:
    """Compare one account metric against industry values"""
    summary = percentiles(industry_values)
    placement = user_percentile(value, summary)
    return BenchmarkComparison(
        metric=metric,
        user_value=value,
        industry_average=summary.avg,
        percentile=placement,
        comparison=compare(placement, metric),
    )
