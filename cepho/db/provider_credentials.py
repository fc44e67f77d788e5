"""Provider credential database operations."""

from cepho.core.logging import get_logger
from cepho.db.supabase_client import get_supabase

logger = get_logger(__name__)

CREDENTIALS_TABLE = "provider_credentials"


class SupabaseCredentialStore:
    """CredentialStore backed by the provider_credentials table (one row per provider)."""

    def list_provider_ids(self) -> list[str]:
        supabase = get_supabase()
        response = supabase.table(CREDENTIALS_TABLE).select("provider_id").execute()
        return [row["provider_id"] for row in response.data or []]

    def save(self, provider_id: str, api_key: str) -> None:
        supabase = get_supabase()

        try:
            supabase.table(CREDENTIALS_TABLE).upsert(
                {"provider_id": provider_id, "api_key": api_key},
                on_conflict="provider_id",
            ).execute()

        except Exception as e:
            logger.error(f"Failed to save credential for {provider_id}: {e}")
            raise

    def delete(self, provider_id: str) -> None:
        supabase = get_supabase()

        try:
            supabase.table(CREDENTIALS_TABLE).delete().eq("provider_id", provider_id).execute()

        except Exception as e:
            logger.error(f"Failed to delete credential for {provider_id}: {e}")
            raise
