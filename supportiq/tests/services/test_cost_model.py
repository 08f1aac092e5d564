"""
Tests for cost and benchmarking utilities
"""
import pytest

from supportiq.models.schemas import Tier
from supportiq.services import cost_model
from supportiq.services.cost_model import CostRates


class TestRounding:
    @pytest.mark.parametrize("value,expected", [
        (0.5, 1), (1.5, 2), (2.5, 3), (389.7, 390), (32.5, 33), (32.49, 32), (0, 0),
    ])
    def test_round_half_up(self, value, expected):
        assert cost_model.round_half_up(value) == expected


class TestTokenCost:
    def test_default_rates(self):
        assert cost_model.token_cost(1000) == pytest.approx(0.000285)

    def test_zero_tokens(self):
        assert cost_model.token_cost(0) == 0

    def test_rates_from_settings(self):
        class _Settings:
            input_token_rate = 1.0
            output_token_rate = 2.0
            input_token_share = 0.5

        rates = CostRates.from_settings(_Settings())
        assert cost_model.token_cost(10, rates) == pytest.approx(15.0)


class TestAgentCost:
    def test_annual_and_monthly(self):
        annual = cost_model.annual_cost(12, 15, 30)
        assert annual == 390
        assert cost_model.monthly_cost(annual) == 33

    def test_annual_cost_larger_cluster(self):
        # 20 * 0.25h * 30 * 4.33 = 649.5
        assert cost_model.annual_cost(20, 15, 30) == 650

    @pytest.mark.parametrize("annual,tier", [
        (10001, Tier.HIGH),
        (10000, Tier.MEDIUM),
        (3001, Tier.MEDIUM),
        (3000, Tier.LOW),
        (0, Tier.LOW),
    ])
    def test_priority_tier(self, annual, tier):
        assert cost_model.priority_tier(annual) == tier

    def test_handle_time_default(self, make_ticket):
        assert cost_model.handle_time(make_ticket()) == 15.0
        assert cost_model.handle_time(make_ticket(handle_time_minutes=0)) == 15.0
        assert cost_model.handle_time(make_ticket(handle_time_minutes=8)) == 8

    def test_average_ticket_cost(self, make_ticket):
        tickets = [make_ticket(handle_time_minutes=10), make_ticket(handle_time_minutes=20)]
        assert cost_model.average_ticket_cost(tickets, 30) == 7.5

    def test_average_ticket_cost_empty(self):
        assert cost_model.average_ticket_cost([], 30) == 0.0
        assert cost_model.average_handle_time([]) == 0.0

    def test_annualized_savings(self):
        assert cost_model.annualized_savings([390, 650]) == 1040
        assert cost_model.annualized_savings([]) == 0

    def test_cost_by_category(self, make_ticket):
        tickets = [make_ticket(category="billing") for _ in range(3)]
        tickets.append(make_ticket(category=None, handle_time_minutes=30))

        drivers = cost_model.cost_by_category(tickets, 30)

        assert [(d.category, d.cost, d.percentage) for d in drivers] == [
            ("billing", 23, 61),
            ("Other", 15, 40),
        ]

    def test_cost_by_category_limit(self, make_ticket):
        tickets = [make_ticket(category=f"cat-{i}", handle_time_minutes=i + 1) for i in range(7)]
        drivers = cost_model.cost_by_category(tickets, 60, limit=5)

        assert len(drivers) == 5
        assert drivers[0].category == "cat-6"

    def test_cost_by_category_empty(self):
        assert cost_model.cost_by_category([], 30) == []


class TestBenchmarking:
    @pytest.fixture
    def industry(self):
        return [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]

    def test_percentiles(self, industry):
        summary = cost_model.percentiles(industry)
        assert (summary.p25, summary.p50, summary.p75, summary.p90, summary.avg) == (30, 60, 80, 100, 55)

    def test_percentiles_unsorted_input(self, industry):
        assert cost_model.percentiles(list(reversed(industry))) == cost_model.percentiles(industry)

    def test_percentiles_empty(self):
        summary = cost_model.percentiles([])
        assert summary.p50 == 0 and summary.avg == 0

    @pytest.mark.parametrize("value,expected", [
        (5, 25), (30, 25), (45, 37.5), (70, 62.5), (90, 82.5), (150, 90),
    ])
    def test_user_percentile(self, industry, value, expected):
        summary = cost_model.percentiles(industry)
        assert cost_model.user_percentile(value, summary) == pytest.approx(expected)

    def test_compare_higher_is_better(self):
        assert cost_model.compare(82.5, "deflection_rate") == "better"
        assert cost_model.compare(25, "deflection_rate") == "worse"
        assert cost_model.compare(50, "deflection_rate") == "average"

    def test_compare_response_time_inverted(self):
        assert cost_model.compare(25, "response_time") == "better"
        assert cost_model.compare(82.5, "response_time") == "worse"

    def test_improvement_opportunity(self, industry):
        summary = cost_model.percentiles(industry)
        assert cost_model.improvement_opportunity(60, summary, "csat") == 25
        assert cost_model.improvement_opportunity(90, summary, "csat") == 0
        assert cost_model.improvement_opportunity(100, summary, "response_time") == 20
        assert cost_model.improvement_opportunity(50, summary, "response_time") == 0

    def test_benchmark(self, industry):
        result = cost_model.benchmark("response_time", 20, industry)

        assert result.metric == "response_time"
        assert result.industry_average == 55
        assert result.percentile == 25
        assert result.comparison == "better"
