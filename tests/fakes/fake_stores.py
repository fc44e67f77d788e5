"""Fake in-memory stores for review pipeline and routing tests."""

from typing import Any, Dict, List, Optional
from uuid import uuid4


class FakeReviewItemStore:
    """In-memory ReviewItemStore."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all stores to initial state."""
        self.items: Dict[str, Dict[str, Any]] = {}
        self.review_log: List[Dict[str, Any]] = []
        # Simulates another reviewer moving the item right before our update
        self.race_state: Optional[str] = None
        self.fail_log_write = False

    def insert_item(self, row: Dict[str, Any]) -> Dict[str, Any]:
        item = {
            "id": str(uuid4()),
            "revision_of": None,
            "first_review_score": None,
            "first_review_feedback": None,
            "second_review_score": None,
            "second_review_feedback": None,
            "improvements": [],
            **row,
        }
        self.items[item["id"]] = item
        return dict(item)

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        item = self.items.get(item_id)
        return dict(item) if item else None

    def list_items(self, state: Optional[str] = None, limit: int = 50) -> List[Dict[str, Any]]:
        items = [i for i in self.items.values() if state is None or i["state"] == state]
        items.sort(key=lambda x: x["updated_at"], reverse=True)
        return [dict(i) for i in items[:limit]]

    def update_item_if_state(
        self,
        item_id: str,
        expected_state: str,
        changes: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        item = self.items.get(item_id)
        if item is None:
            return None
        if self.race_state is not None:
            item["state"] = self.race_state
            self.race_state = None
        if item["state"] != expected_state:
            return None
        item.update(changes)
        return dict(item)

    def apply_review_if_state(
        self,
        item_id: str,
        expected_state: str,
        changes: Dict[str, Any],
        log_row: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        item = self.items.get(item_id)
        if item is None:
            return None
        if self.race_state is not None:
            item["state"] = self.race_state
            self.race_state = None
        if item["state"] != expected_state:
            return None
        # Both writes land together; a failing log write leaves the item as it was
        if self.fail_log_write:
            raise RuntimeError("review_log insert failed")
        self.review_log.append({"id": str(uuid4()), **log_row})
        item.update(changes)
        return dict(item)

    def list_review_log(self, item_id: str) -> List[Dict[str, Any]]:
        return [dict(e) for e in self.review_log if e["item_id"] == item_id]


class FakeCredentialStore:
    """In-memory CredentialStore."""

    def __init__(self, credentials: Optional[Dict[str, str]] = None):
        self.credentials: Dict[str, str] = dict(credentials or {})

    def list_provider_ids(self) -> List[str]:
        return list(self.credentials.keys())

    def save(self, provider_id: str, api_key: str) -> None:
        self.credentials[provider_id] = api_key

    def delete(self, provider_id: str) -> None:
        self.credentials.pop(provider_id, None)
