"""Shared Supabase client for the review and credential stores."""

from functools import lru_cache

from supabase import Client, create_client

from cepho.core.config import get_settings
from cepho.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Service-role client shared by every store, created on first use.

    Raises:
        RuntimeError: If the client cannot be created from the configured URL and key
    """
    settings = get_settings()
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        logger.error(f"Supabase client init failed: {e}", extra={"extra_data": {"url": settings.SUPABASE_URL}})
        raise RuntimeError(f"Cannot connect to Supabase at {settings.SUPABASE_URL}: {e}") from e
