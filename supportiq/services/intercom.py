"""
Intercom API Client

Delivers generated responses as admin replies on the originating
conversation, with retry on rate limits and server errors.
"""
import asyncio
from typing import Any, Dict, Optional

import httpx

from supportiq.config import get_settings
from supportiq.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


class IntercomClient:
    """
    Intercom conversation API with retry logic

    Args:
        access_token: Intercom access token (default: from settings)
        admin_id: Admin that authors replies (default: from settings)
        base_url: API base URL
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        admin_id: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.intercom_base_url).rstrip("/")
        self.access_token = access_token or settings.intercom_access_token
        self.admin_id = admin_id or settings.intercom_admin_id
        self.headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self.timeout = 30.0
        self.max_retries = 3
        self.transport = transport

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make HTTP request with retry logic

        Raises:
            httpx.HTTPStatusError: On HTTP errors after retries
        """
        url = f"{self.base_url}/{endpoint}"

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        headers=self.headers,
                        **kwargs
                    )
                    response.raise_for_status()
                    return response.json()

            except httpx.HTTPStatusError as e:
                if e.response.status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {wait_time}s: {e}"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise
            except Exception as e:
                logger.error(f"Request failed: {e}")
                raise

    async def send_reply(self, conversation_id: str, body: str) -> Optional[str]:
        """
        Post an admin reply to a conversation

        Args:
            conversation_id: Intercom conversation ID
            body: Reply text

        Returns:
            ID of the created conversation part, if returned
        """
        payload = {
            "message_type": "comment",
            "type": "admin",
            "admin_id": self.admin_id,
            "body": body,
        }
        result = await self._make_request(
            "POST", f"conversations/{conversation_id}/reply", json=payload
        )

        parts = (result.get("conversation_parts") or {}).get("conversation_parts") or []
        message_id = parts[-1].get("id") if parts else result.get("id")
        logger.info(f"Sent reply to conversation {conversation_id} (message_id={message_id})")
        return message_id
