"""
Base Repository with account-scoped access

Provides the Supabase client, Row-Level Security account context and
centralized error handling shared by all repositories.
"""
from typing import Any, Dict, NoReturn

from supportiq.config import get_settings
from supportiq.errors import RepositoryError
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class BaseRepository:
    """
    Base repository class

    Args:
        supabase_client: Injected client (tests); created from settings if None
    """

    table_name: str = ""

    def __init__(self, supabase_client=None) -> None:
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            self.client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key or settings.supabase_key
            )
        else:
            self.client = supabase_client

    def _set_account(self, account_id: str) -> None:
        """Set account context for Row-Level Security policies."""
        self.client.rpc('set_config', {
            'key': 'app.current_account_id',
            'value': account_id
        }).execute()

    @staticmethod
    def _serialize_payload(data: Dict[str, Any]) -> Dict[str, Any]:
        """Prepare payload for Supabase (convert enums, strip None)."""
        serialized: Dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            serialized[key] = getattr(value, "value", value)
        return serialized

    def _handle_error(self, operation: str, error: Exception) -> NoReturn:
        """
        Log and re-raise a storage failure as RepositoryError

        Args:
            operation: Description of failed operation
            error: Exception that occurred
        """
        logger.error(f"Repository error during {operation}: {error}")
        raise RepositoryError(f"{operation} failed: {error}") from error
