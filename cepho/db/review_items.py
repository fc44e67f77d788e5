"""Review items database operations."""

from typing import Any, Optional

from cepho.core.logging import get_logger
from cepho.db.supabase_client import get_supabase

logger = get_logger(__name__)

ITEMS_TABLE = "review_items"
LOG_TABLE = "review_log"
APPLY_REVIEW_FN = "apply_review_if_state"


class SupabaseReviewItemStore:
    """ReviewItemStore backed by the review_items and review_log tables."""

    def insert_item(self, row: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a review item.

        Raises:
            ValueError: If the insert returned no row
        """
        supabase = get_supabase()

        try:
            response = supabase.table(ITEMS_TABLE).insert(row).execute()
            if not response.data:
                raise ValueError("No data returned from insert_item")
            return response.data[0]

        except Exception as e:
            logger.error(f"Failed to insert review item: {e}")
            raise

    def get_item(self, item_id: str) -> Optional[dict[str, Any]]:
        supabase = get_supabase()
        response = supabase.table(ITEMS_TABLE).select("*").eq("id", item_id).execute()
        if response.data:
            return response.data[0]
        return None

    def list_items(self, state: Optional[str] = None, limit: int = 50) -> list[dict[str, Any]]:
        supabase = get_supabase()

        try:
            query = supabase.table(ITEMS_TABLE).select("*")
            if state:
                query = query.eq("state", state)
            response = query.order("updated_at", desc=True).limit(limit).execute()
            return response.data or []

        except Exception as e:
            logger.error(f"Failed to list review items: {e}", extra={"extra_data": {"state": state}})
            raise

    def update_item_if_state(
        self,
        item_id: str,
        expected_state: str,
        changes: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """
        Update an item only while it is still in ``expected_state``.

        The state filter makes the read-modify-write a single conditional
        UPDATE; an empty result means another writer moved the item first
        (or it does not exist).
        """
        supabase = get_supabase()

        try:
            response = (
                supabase.table(ITEMS_TABLE)
                .update(changes)
                .eq("id", item_id)
                .eq("state", expected_state)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(
                f"Failed to update review item: {e}",
                extra={"item_id": item_id},
            )
            raise

    def apply_review_if_state(
        self,
        item_id: str,
        expected_state: str,
        changes: dict[str, Any],
        log_row: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """
        Record a review verdict through the apply_review_if_state database function.

        The function runs the conditional UPDATE and the review_log INSERT in
        one transaction, so a failed log write also undoes the state change.
        """
        supabase = get_supabase()

        try:
            response = supabase.rpc(
                APPLY_REVIEW_FN,
                {
                    "p_item_id": item_id,
                    "p_expected_state": expected_state,
                    "p_changes": changes,
                    "p_log": log_row,
                },
            ).execute()
            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(
                f"Failed to apply review: {e}",
                extra={"item_id": item_id, "extra_data": {"stage": log_row.get("stage")}},
            )
            raise

    def list_review_log(self, item_id: str) -> list[dict[str, Any]]:
        supabase = get_supabase()
        response = (
            supabase.table(LOG_TABLE)
            .select("*")
            .eq("item_id", item_id)
            .order("created_at")
            .execute()
        )
        return response.data or []
