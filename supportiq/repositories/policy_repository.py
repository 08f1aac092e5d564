"""
Policy Repository

Loads per-account deflection policies with an in-memory TTL cache and
falls back to platform defaults when an account has no stored policy.
"""
import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from supportiq.models.schemas import BusinessHours, DeflectionPolicy
from supportiq.repositories.base_repository import BaseRepository
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_ESCALATION_KEYWORDS = [
    "urgent", "emergency", "asap", "immediately",
    "critical", "escalate", "manager", "supervisor",
]


def default_policy(account_id: str) -> DeflectionPolicy:
    return DeflectionPolicy(
        account_id=account_id,
        auto_response_enabled=True,
        confidence_threshold=0.8,
        escalation_threshold=0.5,
        excluded_categories=[],
        escalation_keywords=list(DEFAULT_ESCALATION_KEYWORDS),
        business_hours=BusinessHours(),
        response_language="en",
    )


class PolicyRepository(BaseRepository):
    """
    Repository for deflection_settings with caching.

    Features:
    - In-memory caching with TTL
    - Default fallback values
    """

    table_name = "deflection_settings"

    def __init__(self, supabase_client=None, cache_ttl_seconds: int = 300):
        """
        Args:
            supabase_client: Injected client (tests)
            cache_ttl_seconds: Cache time-to-live in seconds (default: 5 min)
        """
        super().__init__(supabase_client)
        self.cache: Dict[str, Dict[str, Any]] = {}
        self.cache_ttl = timedelta(seconds=cache_ttl_seconds)

    def _is_cache_valid(self, cache_entry: Dict[str, Any]) -> bool:
        age = datetime.now() - cache_entry['timestamp']
        return age < self.cache_ttl

    def _get_cache(self, account_id: str) -> Optional[DeflectionPolicy]:
        entry = self.cache.get(account_id)
        if entry and self._is_cache_valid(entry):
            logger.debug(f"Cache hit for policy {account_id}")
            return entry['policy']
        return None

    def _set_cache(self, account_id: str, policy: DeflectionPolicy) -> None:
        self.cache[account_id] = {'policy': policy, 'timestamp': datetime.now()}

    def invalidate(self, account_id: str) -> None:
        self.cache.pop(account_id, None)

    @staticmethod
    def _deserialize(account_id: str, row: Dict[str, Any]) -> DeflectionPolicy:
        """
        Merge a stored row over the defaults.

        The flat `business_hours_only` column toggles business_hours.enabled
        and wins over an `enabled` key in the business_hours column.
        """
        data = default_policy(account_id).model_dump()
        data.update({k: v for k, v in row.items() if v is not None and k in data})
        if row.get("business_hours_only") is not None:
            data["business_hours"] = {
                **dict(data["business_hours"]),
                "enabled": bool(row["business_hours_only"]),
            }
        data["account_id"] = account_id
        return DeflectionPolicy(**data)

    def load_policy(self, account_id: str, use_cache: bool = True) -> DeflectionPolicy:
        """
        Get an account's policy

        Args:
            account_id: Account identifier
            use_cache: Whether to use the cache (default: True)

        Returns:
            Stored policy merged over defaults, or defaults if none is stored
        """
        if use_cache:
            cached = self._get_cache(account_id)
            if cached:
                return cached

        try:
            self._set_account(account_id)

            result = self.client.table(self.table_name) \
                .select("*") \
                .eq("account_id", account_id) \
                .limit(1) \
                .execute()

        except Exception as exc:
            self._handle_error(f"load policy for account {account_id}", exc)

        if result.data:
            policy = self._deserialize(account_id, result.data[0])
        else:
            logger.info(f"No policy stored for account {account_id}, using defaults")
            policy = default_policy(account_id)

        self._set_cache(account_id, policy)
        return policy

    async def get_policy(self, account_id: str, use_cache: bool = True) -> DeflectionPolicy:
        return await asyncio.to_thread(self.load_policy, account_id, use_cache)

    def save_policy(self, policy: DeflectionPolicy) -> DeflectionPolicy:
        """Upsert an account's policy and refresh the cache."""
        try:
            self._set_account(policy.account_id)

            payload = policy.model_dump(mode="json")
            self.client.table(self.table_name) \
                .upsert(payload, on_conflict="account_id") \
                .execute()

        except Exception as exc:
            self._handle_error(f"save policy for account {policy.account_id}", exc)

        self._set_cache(policy.account_id, policy)
        return policy
