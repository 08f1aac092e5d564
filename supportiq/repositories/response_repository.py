"""
Response Repository

Stores generated responses in the `ai_responses` table: one row per
pipeline run, marked sent after delivery, annotated with customer
feedback later on.
"""
import asyncio
from typing import Any, Dict, Optional

from supportiq.models.schemas import CandidateResponse, Ticket
from supportiq.repositories.base_repository import BaseRepository
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)


class ResponseRepository(BaseRepository):
    """Repository for ai_responses table operations."""

    table_name = "ai_responses"

    def insert_response(self, ticket: Ticket, response: CandidateResponse) -> Dict[str, Any]:
        """Insert a generated response (not yet sent)."""
        try:
            self._set_account(ticket.account_id)

            payload = self._serialize_payload({
                "ticket_id": ticket.id,
                "account_id": ticket.account_id,
                "response_content": response.content,
                "response_type": response.type,
                "confidence_score": response.confidence,
                "reasoning": response.reasoning,
                "tokens_used": response.tokens_used,
                "cost_usd": response.cost_usd,
                "model_used": response.model_used,
                "suggested_actions": response.suggested_actions,
                "escalation_triggers": response.escalation_triggers,
                "sent_to_intercom": False,
            })

            result = self.client.table(self.table_name) \
                .insert(payload) \
                .execute()

            if not result.data:
                raise ValueError("Supabase insert returned no data")

            return result.data[0]

        except Exception as exc:
            self._handle_error(f"store response for ticket {ticket.id}", exc)

    async def save_response(self, ticket: Ticket, response: CandidateResponse) -> Dict[str, Any]:
        return await asyncio.to_thread(self.insert_response, ticket, response)

    def set_sent(self, ticket: Ticket, message_id: Optional[str]) -> None:
        """Flag the ticket's response as delivered."""
        try:
            self._set_account(ticket.account_id)

            self.client.table(self.table_name) \
                .update(self._serialize_payload({
                    "sent_to_intercom": True,
                    "intercom_message_id": message_id,
                })) \
                .eq("ticket_id", ticket.id) \
                .eq("account_id", ticket.account_id) \
                .execute()

        except Exception as exc:
            self._handle_error(f"mark response sent for ticket {ticket.id}", exc)

    async def mark_sent(self, ticket: Ticket, message_id: Optional[str]) -> None:
        await asyncio.to_thread(self.set_sent, ticket, message_id)

    def set_feedback(
        self,
        account_id: str,
        ticket_id: str,
        satisfied: bool,
        feedback: Optional[str] = None
    ) -> int:
        """
        Store customer satisfaction for a ticket's responses

        Returns:
            Number of response rows updated
        """
        try:
            self._set_account(account_id)

            result = self.client.table(self.table_name) \
                .update(self._serialize_payload({
                    "customer_satisfied": satisfied,
                    "customer_feedback": feedback,
                })) \
                .eq("ticket_id", ticket_id) \
                .eq("account_id", account_id) \
                .execute()

            updated = len(result.data or [])
            logger.info(
                f"Recorded feedback for ticket {ticket_id} "
                f"(satisfied={satisfied}, rows={updated})"
            )
            return updated

        except Exception as exc:
            self._handle_error(f"record feedback for ticket {ticket_id}", exc)

    async def record_feedback(
        self,
        account_id: str,
        ticket_id: str,
        satisfied: bool,
        feedback: Optional[str] = None
    ) -> int:
        return await asyncio.to_thread(self.set_feedback, account_id, ticket_id, satisfied, feedback)
