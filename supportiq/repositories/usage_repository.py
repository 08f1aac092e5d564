"""
Usage Repository

Supabase-backed QuotaService over the `usage_counters` table.

- check_limit fails open: a storage error allows the request
- track never raises: a storage error is logged
- increments go through the `increment_usage` database function, which
  serializes per account and ignores repeats of the same ticket id
"""
import asyncio
from typing import Optional

from supportiq.models.schemas import QuotaStatus
from supportiq.repositories.base_repository import BaseRepository
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)


class UsageRepository(BaseRepository):
    """Repository for usage_counters table operations."""

    table_name = "usage_counters"

    def __init__(self, supabase_client=None, default_limit: int = 1000):
        super().__init__(supabase_client)
        self.default_limit = default_limit

    def read_limit(self, account_id: str, meter: str) -> QuotaStatus:
        try:
            self._set_account(account_id)

            result = self.client.table(self.table_name) \
                .select("used, usage_limit") \
                .eq("account_id", account_id) \
                .eq("meter", meter) \
                .limit(1) \
                .execute()

        except Exception as exc:
            logger.error(f"Usage check failed for account {account_id}, allowing: {exc}")
            return QuotaStatus(allowed=True, used=0, limit=self.default_limit)

        if not result.data:
            return QuotaStatus(allowed=True, used=0, limit=self.default_limit)

        row = result.data[0]
        used = row.get("used") or 0
        limit = row.get("usage_limit")
        if limit is None:
            limit = self.default_limit
        return QuotaStatus(allowed=used < limit, used=used, limit=limit)

    async def check_limit(self, account_id: str, meter: str) -> QuotaStatus:
        return await asyncio.to_thread(self.read_limit, account_id, meter)

    def increment(
        self,
        account_id: str,
        meter: str,
        delta: int = 1,
        ticket_id: Optional[str] = None
    ) -> None:
        try:
            self._set_account(account_id)

            self.client.rpc('increment_usage', {
                'p_account_id': account_id,
                'p_meter': meter,
                'p_delta': delta,
                'p_ticket_id': ticket_id,
            }).execute()

        except Exception as exc:
            logger.error(f"Usage tracking failed for account {account_id}: {exc}")

    async def track(
        self,
        account_id: str,
        meter: str,
        delta: int = 1,
        ticket_id: Optional[str] = None
    ) -> None:
        await asyncio.to_thread(self.increment, account_id, meter, delta, ticket_id)
