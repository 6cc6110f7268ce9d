"""Supabase client wrapper with async context manager support."""

import os
import logging
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from propertysearch.utils.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_credentials() -> tuple[Optional[str], Optional[str]]:
    """Read Supabase URL and key; the anon key is preferred for read-only search."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    return url, key


def is_supabase_configured() -> bool:
    """Check whether Supabase credentials are present."""
    url, key = get_supabase_credentials()
    return bool(url and key)


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url, key = get_supabase_credentials()

        if not url or not key:
            raise StoreUnavailableError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        """Enter async context."""
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False
