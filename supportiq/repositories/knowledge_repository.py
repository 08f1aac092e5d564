"""
Knowledge Repository

Supplies generation context (knowledge base articles, response templates,
recent conversation turns) and stores generated FAQ articles.

Context lookups never fail the pipeline: each block degrades to an empty
list on error.
"""
import asyncio
from typing import List, Sequence

from supportiq.models.schemas import (
    ConversationTurn,
    GeneratedFAQ,
    GenerationContext,
    KnowledgeSnippet,
    ResponseTemplate,
    Ticket,
)
from supportiq.repositories.base_repository import BaseRepository
from supportiq.utils.logger import get_logger
from supportiq.utils.text import extract_keywords

logger = get_logger(__name__)

CONTEXT_LIMIT = 3
CONVERSATION_LIMIT = 10


class KnowledgeRepository(BaseRepository):
    """Repository for knowledge_base, response_templates and conversation history."""

    table_name = "knowledge_base"
    templates_table = "response_templates"
    messages_table = "conversation_messages"

    def find_knowledge(self, ticket: Ticket) -> List[KnowledgeSnippet]:
        """Top active articles matching ticket keywords, by success rate."""
        keywords = extract_keywords(f"{ticket.content} {ticket.subject or ''}")
        if not keywords:
            return []

        try:
            self._set_account(ticket.account_id)

            filters = ",".join(
                f"title.ilike.%{kw}%,content.ilike.%{kw}%" for kw in keywords
            )
            result = self.client.table(self.table_name) \
                .select("title, content, success_rate") \
                .eq("account_id", ticket.account_id) \
                .eq("is_active", True) \
                .or_(filters) \
                .order("success_rate", desc=True) \
                .limit(CONTEXT_LIMIT) \
                .execute()

            return [KnowledgeSnippet(**row) for row in result.data or []]

        except Exception as exc:
            logger.error(f"Knowledge lookup failed for ticket {ticket.id}: {exc}")
            return []

    def find_templates(self, ticket: Ticket) -> List[ResponseTemplate]:
        """Top active templates for the ticket's category or 'general'."""
        try:
            self._set_account(ticket.account_id)

            query = self.client.table(self.templates_table) \
                .select("name, template_content, category, success_rate") \
                .eq("account_id", ticket.account_id) \
                .eq("active", True)

            if ticket.category:
                query = query.in_("category", [ticket.category, "general"])

            result = query \
                .order("success_rate", desc=True) \
                .limit(CONTEXT_LIMIT) \
                .execute()

            return [ResponseTemplate(**row) for row in result.data or []]

        except Exception as exc:
            logger.error(f"Template lookup failed for ticket {ticket.id}: {exc}")
            return []

    def find_conversation(self, ticket: Ticket) -> List[ConversationTurn]:
        """Most recent turns of the ticket's conversation, oldest first."""
        if not ticket.conversation_id:
            return []

        try:
            self._set_account(ticket.account_id)

            result = self.client.table(self.messages_table) \
                .select("role, content, created_at") \
                .eq("conversation_id", ticket.conversation_id) \
                .order("created_at", desc=True) \
                .limit(CONVERSATION_LIMIT) \
                .execute()

            rows = list(reversed(result.data or []))
            return [
                ConversationTurn(role=row["role"], content=row["content"], timestamp=row.get("created_at"))
                for row in rows
            ]

        except Exception as exc:
            logger.error(f"Conversation lookup failed for ticket {ticket.id}: {exc}")
            return []

    async def get_context(self, ticket: Ticket) -> GenerationContext:
        knowledge, templates, conversation = await asyncio.gather(
            asyncio.to_thread(self.find_knowledge, ticket),
            asyncio.to_thread(self.find_templates, ticket),
            asyncio.to_thread(self.find_conversation, ticket),
        )
        return GenerationContext(
            knowledge=knowledge,
            templates=templates,
            conversation=conversation,
        )

    def insert_faqs(self, account_id: str, faqs: Sequence[GeneratedFAQ]) -> int:
        """Store generated FAQs as active knowledge base articles."""
        if not faqs:
            return 0

        try:
            self._set_account(account_id)

            payload = [
                {
                    "account_id": account_id,
                    "title": faq.title,
                    "content": faq.content,
                    "category": faq.category,
                    "tags": faq.tags,
                    "source_ticket_ids": faq.source_ticket_ids,
                    "confidence": faq.confidence,
                    "is_active": True,
                    "auto_generated": True,
                }
                for faq in faqs
            ]
            result = self.client.table(self.table_name) \
                .insert(payload) \
                .execute()

            return len(result.data or [])

        except Exception as exc:
            self._handle_error(f"store FAQs for account {account_id}", exc)

    async def store_faqs(self, account_id: str, faqs: Sequence[GeneratedFAQ]) -> int:
        return await asyncio.to_thread(self.insert_faqs, account_id, faqs)
