"""
Ticket Repository

Reads ticket history for pattern analysis and writes ticket status.
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from supportiq.models.schemas import Ticket, TicketStatus
from supportiq.repositories.base_repository import BaseRepository
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)

ANALYSIS_COLUMNS = (
    "id, account_id, subject, content, category, priority, sentiment, "
    "response_time_minutes, embedding, created_at, customer_email, "
    "intercom_conversation_id, resolution"
)


class TicketRepository(BaseRepository):
    """Repository for tickets table operations."""

    table_name = "tickets"

    @staticmethod
    def _deserialize(row: Dict[str, Any]) -> Ticket:
        """Convert Supabase row into Ticket model."""
        row = dict(row)
        if "response_time_minutes" in row:
            row["handle_time_minutes"] = row.pop("response_time_minutes")
        if "intercom_conversation_id" in row:
            row["conversation_id"] = row.pop("intercom_conversation_id")
        if isinstance(row.get("embedding"), str):
            # pgvector columns come back as "[x, y, ...]" text
            row["embedding"] = json.loads(row["embedding"])
        return Ticket(**{k: v for k, v in row.items() if v is not None})

    def set_status(self, account_id: str, ticket_id: str, status: TicketStatus) -> None:
        try:
            self._set_account(account_id)

            self.client.table(self.table_name) \
                .update({"status": status.value}) \
                .eq("id", ticket_id) \
                .eq("account_id", account_id) \
                .execute()

            logger.debug(f"Ticket {ticket_id} status -> {status.value}")

        except Exception as exc:
            self._handle_error(f"update status of ticket {ticket_id}", exc)

    async def update_status(self, account_id: str, ticket_id: str, status: TicketStatus) -> None:
        await asyncio.to_thread(self.set_status, account_id, ticket_id, status)

    def fetch_since(
        self,
        account_id: str,
        days: int,
        categorized_only: bool = False,
        resolved_only: bool = False,
        limit: Optional[int] = None
    ) -> List[Ticket]:
        """
        Tickets created in the last `days` days, newest first

        Args:
            account_id: Owning account
            days: Look-back window in days
            categorized_only: Skip tickets without a category
            resolved_only: Only tickets with a recorded resolution
            limit: Maximum rows
        """
        try:
            self._set_account(account_id)

            since = datetime.now(timezone.utc) - timedelta(days=days)
            query = self.client.table(self.table_name) \
                .select(ANALYSIS_COLUMNS) \
                .eq("account_id", account_id) \
                .gte("created_at", since.isoformat())

            if resolved_only:
                query = query.not_.is_("resolution", "null")
            if categorized_only:
                query = query.not_.is_("category", "null")

            query = query.order("created_at", desc=True)
            if limit:
                query = query.limit(limit)

            rows = query.execute().data or []

            tickets = []
            for row in rows:
                try:
                    tickets.append(self._deserialize(row))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed ticket row {row.get('id')}: {e}")
            return tickets

        except Exception as exc:
            self._handle_error(f"fetch tickets for account {account_id}", exc)

    async def get_tickets_for_analysis(self, account_id: str, days: int) -> List[Ticket]:
        return await asyncio.to_thread(self.fetch_since, account_id, days, True)

    async def get_resolved_tickets(self, account_id: str, days: int, limit: int = 500) -> List[Ticket]:
        return await asyncio.to_thread(
            self.fetch_since, account_id, days, False, True, limit
        )
