"""
Decision Router - confidence-threshold routing for a candidate response

States: PENDING -> AUTO_RESOLVED | ESCALATED | REJECTED (one per ticket per run)

The routing decision itself (`decide`) is pure. `route` applies it and
drives the side effects in this order:
1. store the generated response
2. deliver to the customer channel (auto-resolve only, above the delivery floor)
3. mark the ticket auto_resolved (auto-resolve only)
"""
from typing import Optional

from supportiq.models.schemas import (
    CandidateResponse,
    DeflectionPolicy,
    ResponseType,
    RoutingOutcome,
    RoutingState,
    Ticket,
    TicketStatus,
)
from supportiq.services.cost_model import round_half_up
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)

REASON_AUTO_RESOLVED = "High confidence AI response generated"


def low_confidence_reason(confidence: float) -> str:
    return f"Low confidence ({round_half_up(confidence * 100)}%) - escalating to human"


class DecisionRouter:
    """
    Route a CandidateResponse to its terminal state

    Args:
        response_store: Persists generated responses (`save_response`, `mark_sent`)
        ticket_store: Updates ticket status (`update_status`)
        delivery: Optional channel client (`send_reply`); None disables delivery
        delivery_confidence_floor: Platform-wide minimum confidence to send
    """

    def __init__(
        self,
        response_store,
        ticket_store,
        delivery=None,
        delivery_confidence_floor: float = 0.7
    ):
        self.response_store = response_store
        self.ticket_store = ticket_store
        self.delivery = delivery
        self.delivery_confidence_floor = delivery_confidence_floor

    def decide(self, response: CandidateResponse, policy: DeflectionPolicy) -> RoutingOutcome:
        """Pure routing rule; inclusive threshold"""
        if (
            response.confidence >= policy.confidence_threshold
            and response.type == ResponseType.AUTO_RESOLVE
        ):
            return RoutingOutcome(
                state=RoutingState.AUTO_RESOLVED,
                should_respond=True,
                reason=REASON_AUTO_RESOLVED,
                response=response,
            )

        return RoutingOutcome(
            state=RoutingState.ESCALATED,
            should_respond=False,
            reason=low_confidence_reason(response.confidence),
            response=response,
        )

    @staticmethod
    def reject(error: Exception) -> RoutingOutcome:
        """Terminal outcome for a failed generation; nothing is stored"""
        return RoutingOutcome(
            state=RoutingState.REJECTED,
            should_respond=False,
            reason=str(error),
        )

    async def route(
        self,
        ticket: Ticket,
        response: CandidateResponse,
        policy: DeflectionPolicy
    ) -> RoutingOutcome:
        """
        Apply the routing decision and its side effects

        Storage errors propagate. Delivery errors are logged and never
        change the routing state.
        """
        outcome = self.decide(response, policy)

        if outcome.state != RoutingState.AUTO_RESOLVED:
            escalated = response.model_copy(update={"type": ResponseType.ESCALATE})
            await self.response_store.save_response(ticket, escalated)
            logger.info(
                f"Ticket {ticket.id} escalated (confidence={response.confidence:.2f})"
            )
            return outcome

        await self.response_store.save_response(ticket, response)

        if self._should_deliver(ticket, response):
            outcome.delivered = await self._deliver(ticket, response)

        await self.ticket_store.update_status(ticket.account_id, ticket.id, TicketStatus.AUTO_RESOLVED)
        logger.info(
            f"Ticket {ticket.id} auto-resolved "
            f"(confidence={response.confidence:.2f}, delivered={outcome.delivered})"
        )
        return outcome

    def _should_deliver(self, ticket: Ticket, response: CandidateResponse) -> bool:
        if self.delivery is None or not ticket.conversation_id:
            return False
        return response.confidence >= self.delivery_confidence_floor

    async def _deliver(self, ticket: Ticket, response: CandidateResponse) -> bool:
        try:
            message_id: Optional[str] = await self.delivery.send_reply(
                ticket.conversation_id, response.content
            )
        except Exception as e:
            logger.warning(f"Delivery failed for ticket {ticket.id}: {e}")
            return False

        try:
            await self.response_store.mark_sent(ticket, message_id)
        except Exception as e:
            logger.warning(
                f"Reply sent for ticket {ticket.id} but marking it sent failed: {e}"
            )
        return True
