"""
Deflection Pipeline - per-ticket unit of work

quota check -> eligibility -> context -> generation -> usage -> routing

Each call handles one ticket and shares no mutable state with other
calls, so different tickets can be processed concurrently.
"""
import asyncio
from datetime import datetime
from typing import Optional

from supportiq.agents import eligibility
from supportiq.agents.generator import ResponseGenerator
from supportiq.agents.router import DecisionRouter
from supportiq.errors import GenerationError
from supportiq.models.schemas import (
    DeflectionPolicy,
    GenerationContext,
    ProcessingResult,
    RoutingState,
    Ticket,
)
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)


class DeflectionPipeline:
    """
    Orchestrates eligibility, generation and routing for one ticket

    Args:
        generator: ResponseGenerator implementation
        router: DecisionRouter for the terminal decision
        quota: QuotaService (check_limit / track)
        policies: Policy source with `get_policy(account_id)`
        context_provider: Optional source with `get_context(ticket)`
        meter: Usage meter name charged per generation
        generation_timeout: Seconds before generation is abandoned
    """

    def __init__(
        self,
        generator: ResponseGenerator,
        router: DecisionRouter,
        quota,
        policies=None,
        context_provider=None,
        meter: str = "ai_responses",
        generation_timeout: float = 30.0
    ):
        self.generator = generator
        self.router = router
        self.quota = quota
        self.policies = policies
        self.context_provider = context_provider
        self.meter = meter
        self.generation_timeout = generation_timeout

    async def _load_policy(self, ticket: Ticket, policy: Optional[DeflectionPolicy]) -> DeflectionPolicy:
        if policy is not None:
            return policy
        if self.policies is None:
            return DeflectionPolicy(account_id=ticket.account_id)
        return await self.policies.get_policy(ticket.account_id)

    async def _load_context(self, ticket: Ticket) -> GenerationContext:
        if self.context_provider is None:
            return GenerationContext()
        return await self.context_provider.get_context(ticket)

    async def _generate(
        self,
        ticket: Ticket,
        context: GenerationContext,
        policy: DeflectionPolicy
    ):
        try:
            return await asyncio.wait_for(
                self.generator.generate(ticket, context, policy),
                timeout=self.generation_timeout
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"Response generation timed out after {self.generation_timeout:g}s"
            ) from e

    async def process(
        self,
        ticket: Ticket,
        policy: Optional[DeflectionPolicy] = None,
        now: Optional[datetime] = None
    ) -> ProcessingResult:
        """
        Run the pipeline for one ticket

        Args:
            ticket: Ticket to process
            policy: Policy override (default: loaded for the ticket's account)
            now: Evaluation instant for business hours

        Returns:
            ProcessingResult; generation failures come back as success=False
        """
        logger.info(f"Processing ticket {ticket.id} for account {ticket.account_id}")

        quota = await self.quota.check_limit(ticket.account_id, self.meter)
        if not quota.allowed:
            logger.info(
                f"Usage limit reached for account {ticket.account_id} "
                f"({quota.used}/{quota.limit})"
            )
            return ProcessingResult(
                success=True,
                should_respond=False,
                reason=f"Usage limit reached ({quota.used}/{quota.limit} {self.meter})",
                usage_tracked=False,
            )

        policy = await self._load_policy(ticket, policy)
        verdict = eligibility.evaluate(ticket, policy, now)
        if not verdict.allow:
            logger.info(f"Ticket {ticket.id} not eligible: {verdict.reason}")
            return ProcessingResult(
                success=True,
                should_respond=False,
                reason=verdict.reason,
                usage_tracked=False,
            )

        context = await self._load_context(ticket)

        try:
            response = await self._generate(ticket, context, policy)
        except GenerationError as e:
            logger.error(f"Generation failed for ticket {ticket.id}: {e}")
            outcome = self.router.reject(e)
            return ProcessingResult(
                success=False,
                should_respond=False,
                reason=outcome.reason,
                usage_tracked=False,
                state=outcome.state,
            )

        await self.quota.track(ticket.account_id, self.meter, 1, ticket_id=ticket.id)

        outcome = await self.router.route(ticket, response, policy)
        logger.info(
            f"Ticket {ticket.id} routed to {outcome.state.value} "
            f"(confidence={response.confidence:.2f})"
        )

        return ProcessingResult(
            success=True,
            should_respond=outcome.state == RoutingState.AUTO_RESOLVED,
            reason=outcome.reason,
            response=response,
            usage_tracked=True,
            state=outcome.state,
        )
