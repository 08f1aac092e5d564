"""
Tests for the in-memory usage tracker
"""
import asyncio

import pytest

from supportiq.services.quota import InMemoryQuotaTracker


class TestInMemoryQuotaTracker:
    @pytest.mark.asyncio
    async def test_check_limit(self):
        tracker = InMemoryQuotaTracker(default_limit=2)

        status = await tracker.check_limit("acct-1", "ai_responses")
        assert status.allowed is True
        assert (status.used, status.limit) == (0, 2)

        await tracker.track("acct-1", "ai_responses")
        await tracker.track("acct-1", "ai_responses")

        status = await tracker.check_limit("acct-1", "ai_responses")
        assert status.allowed is False
        assert status.used == 2

    @pytest.mark.asyncio
    async def test_account_override(self):
        tracker = InMemoryQuotaTracker(limits={"acct-vip": 5}, default_limit=1)
        assert (await tracker.check_limit("acct-vip", "ai_responses")).limit == 5
        assert (await tracker.check_limit("acct-2", "ai_responses")).limit == 1

    @pytest.mark.asyncio
    async def test_meters_and_accounts_isolated(self):
        tracker = InMemoryQuotaTracker()

        await tracker.track("acct-1", "ai_responses", 3)
        await tracker.track("acct-2", "ai_responses")
        await tracker.track("acct-1", "kb_articles")

        assert tracker.usage("acct-1", "ai_responses") == 3
        assert tracker.usage("acct-2", "ai_responses") == 1
        assert tracker.usage("acct-1", "kb_articles") == 1

    @pytest.mark.asyncio
    async def test_idempotent_per_ticket(self):
        tracker = InMemoryQuotaTracker()

        await tracker.track("acct-1", "ai_responses", ticket_id="T-1")
        await tracker.track("acct-1", "ai_responses", ticket_id="T-1")
        await tracker.track("acct-1", "ai_responses", ticket_id="T-2")

        assert tracker.usage("acct-1", "ai_responses") == 2

    @pytest.mark.asyncio
    async def test_concurrent_increments(self):
        tracker = InMemoryQuotaTracker()

        await asyncio.gather(*(
            tracker.track("acct-1", "ai_responses", ticket_id=f"T-{i}") for i in range(50)
        ))

        assert tracker.usage("acct-1", "ai_responses") == 50

    @pytest.mark.asyncio
    async def test_tracked_ticket_ids_bounded(self):
        tracker = InMemoryQuotaTracker(max_tracked_tickets=2)

        for ticket_id in ("T-1", "T-2", "T-3"):
            await tracker.track("acct-1", "ai_responses", ticket_id=ticket_id)

        assert len(tracker._tracked) == 2
        # T-3 is still remembered, T-1 was evicted
        await tracker.track("acct-1", "ai_responses", ticket_id="T-3")
        assert tracker.usage("acct-1", "ai_responses") == 3
        await tracker.track("acct-1", "ai_responses", ticket_id="T-1")
        assert tracker.usage("acct-1", "ai_responses") == 4

    @pytest.mark.asyncio
    async def test_limit_is_soft_under_concurrency(self):
        tracker = InMemoryQuotaTracker(default_limit=1)

        checks = await asyncio.gather(
            tracker.check_limit("acct-1", "ai_responses"),
            tracker.check_limit("acct-1", "ai_responses"),
        )
        for i, status in enumerate(checks):
            if status.allowed:
                await tracker.track("acct-1", "ai_responses", ticket_id=f"T-{i}")

        assert all(status.allowed for status in checks)
        assert tracker.usage("acct-1", "ai_responses") == 2
