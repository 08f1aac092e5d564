"""
Insight Repository

Persists cluster-derived deflection insights. Clusters themselves are
never stored; each analysis run replaces the account's previous insights.
"""
import asyncio
from typing import List, Sequence

from supportiq.models.schemas import DeflectionInsight
from supportiq.repositories.base_repository import BaseRepository
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)


class InsightRepository(BaseRepository):
    """Repository for deflection_insights table operations."""

    table_name = "deflection_insights"

    def replace_insights(self, account_id: str, insights: Sequence[DeflectionInsight]) -> int:
        """
        Replace the account's stored insights with a new run's results

        Returns:
            Number of rows inserted
        """
        try:
            self._set_account(account_id)

            self.client.table(self.table_name) \
                .delete() \
                .eq("account_id", account_id) \
                .execute()

            if not insights:
                return 0

            payload = [
                {"account_id": account_id, **insight.model_dump(mode="json")}
                for insight in insights
            ]
            result = self.client.table(self.table_name) \
                .insert(payload) \
                .execute()

            stored = len(result.data or [])
            logger.info(f"Stored {stored} insights for account {account_id}")
            return stored

        except Exception as exc:
            self._handle_error(f"store insights for account {account_id}", exc)

    async def save_insights(self, account_id: str, insights: Sequence[DeflectionInsight]) -> int:
        return await asyncio.to_thread(self.replace_insights, account_id, insights)

    def list_insights(self, account_id: str) -> List[DeflectionInsight]:
        try:
            self._set_account(account_id)

            result = self.client.table(self.table_name) \
                .select("*") \
                .eq("account_id", account_id) \
                .order("annual_cost", desc=True) \
                .execute()

            rows = result.data or []
            return [
                DeflectionInsight(**{k: v for k, v in row.items() if k in DeflectionInsight.model_fields})
                for row in rows
            ]

        except Exception as exc:
            self._handle_error(f"list insights for account {account_id}", exc)
