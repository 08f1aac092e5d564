"""
Usage / quota collaborator

QuotaService is the boundary the pipeline talks to. InMemoryQuotaTracker
serves tests and single-process deployments; UsageRepository backs it
with Supabase.
"""
import asyncio
from collections import OrderedDict, defaultdict
from typing import Dict, Optional, Protocol, Tuple

from supportiq.models.schemas import QuotaStatus
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)


class QuotaService(Protocol):
    async def check_limit(self, account_id: str, meter: str) -> QuotaStatus:
        ...

    async def track(
        self,
        account_id: str,
        meter: str,
        delta: int = 1,
        ticket_id: Optional[str] = None
    ) -> None:
        ...


class InMemoryQuotaTracker:
    """
    Per-account usage counters held in memory

    Increments for one account are serialized with an asyncio lock.
    Passing a ticket_id makes `track` idempotent for that ticket; only the
    most recent `max_tracked_tickets` ticket ids are remembered.

    The limit is soft. `check_limit` and `track` are separate calls with
    generation in between, so tickets processed concurrently for one
    account can each pass the check and overshoot the limit by up to the
    number of tickets in flight.

    Args:
        limits: Per-account limit overrides
        default_limit: Limit for accounts without an override
        max_tracked_tickets: Ticket ids kept for idempotent tracking
    """

    def __init__(
        self,
        limits: Optional[Dict[str, int]] = None,
        default_limit: int = 1000,
        max_tracked_tickets: int = 10000
    ):
        self.limits = dict(limits or {})
        self.default_limit = default_limit
        self.max_tracked_tickets = max_tracked_tickets
        self._usage: Dict[Tuple[str, str], int] = defaultdict(int)
        self._tracked: "OrderedDict[Tuple[str, str, str], None]" = OrderedDict()
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def usage(self, account_id: str, meter: str) -> int:
        return self._usage[(account_id, meter)]

    async def check_limit(self, account_id: str, meter: str) -> QuotaStatus:
        used = self._usage[(account_id, meter)]
        limit = self.limits.get(account_id, self.default_limit)
        return QuotaStatus(allowed=used < limit, used=used, limit=limit)

    async def track(
        self,
        account_id: str,
        meter: str,
        delta: int = 1,
        ticket_id: Optional[str] = None
    ) -> None:
        async with self._locks[account_id]:
            if ticket_id is not None:
                key = (account_id, meter, ticket_id)
                if key in self._tracked:
                    logger.debug(f"Usage for ticket {ticket_id} already tracked")
                    return
                self._tracked[key] = None
                if len(self._tracked) > self.max_tracked_tickets:
                    self._tracked.popitem(last=False)
            self._usage[(account_id, meter)] += delta
