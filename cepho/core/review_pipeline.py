"""
Review Pipeline for the QA quality gate

Tracks a task or document through the two-stage review: the Chief of
Staff reviews first, a secondary AI reviewer verifies second.

Linear flow, with a terminal rejection exit:
  PENDING → FIRST_REVIEW → FIRST_APPROVED → SECOND_REVIEW → VERIFIED
                                                           ↘ REJECTED

Every transition is a single conditional update on the item's current
state, so two reviewers acting at once cannot both advance it. A submitted
verdict and its review log row are written together or not at all.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from cepho.core.logging import get_logger, log_with_context
from cepho.core.schemas_reviews import (
    ReviewAction,
    ReviewDecision,
    ReviewItem,
    ReviewItemCreate,
    ReviewLogEntry,
    ReviewStage,
    ReviewState,
    ReviewSubmission,
)

logger = get_logger(__name__)


# ============================================================================
# Errors
# ============================================================================


class InvalidStateTransition(Exception):
    """Raised when an action is not permitted from the item's current state."""

    def __init__(self, message: str, current_state: Optional[ReviewState] = None):
        super().__init__(message)
        self.current_state = current_state


class ReviewItemNotFound(Exception):
    """Raised when a review item id does not exist."""

    def __init__(self, item_id: str):
        super().__init__(f"Review item {item_id} not found")
        self.item_id = item_id


# ============================================================================
# Transition Table
# ============================================================================

# action -> {from_state: {decision: to_state}}; start actions use decision None
TRANSITIONS: dict[ReviewAction, dict[ReviewState, dict[Optional[ReviewDecision], ReviewState]]] = {
    ReviewAction.START_FIRST_REVIEW: {
        ReviewState.PENDING: {None: ReviewState.FIRST_REVIEW},
    },
    ReviewAction.SUBMIT_FIRST_REVIEW: {
        ReviewState.PENDING: {
            ReviewDecision.APPROVE: ReviewState.FIRST_APPROVED,
            ReviewDecision.REJECT: ReviewState.REJECTED,
        },
        ReviewState.FIRST_REVIEW: {
            ReviewDecision.APPROVE: ReviewState.FIRST_APPROVED,
            ReviewDecision.REJECT: ReviewState.REJECTED,
        },
    },
    ReviewAction.START_SECOND_REVIEW: {
        ReviewState.FIRST_APPROVED: {None: ReviewState.SECOND_REVIEW},
    },
    ReviewAction.SUBMIT_SECOND_REVIEW: {
        ReviewState.FIRST_APPROVED: {
            ReviewDecision.APPROVE: ReviewState.VERIFIED,
            ReviewDecision.REJECT: ReviewState.REJECTED,
        },
        ReviewState.SECOND_REVIEW: {
            ReviewDecision.APPROVE: ReviewState.VERIFIED,
            ReviewDecision.REJECT: ReviewState.REJECTED,
        },
    },
}

DEFAULT_REVIEWERS: dict[ReviewStage, str] = {
    ReviewStage.FIRST_REVIEW: "chief_of_staff",
    ReviewStage.SECOND_REVIEW: "secondary_ai",
}


def allowed_from_states(action: ReviewAction) -> list[ReviewState]:
    """States from which an action may be taken."""
    return list(TRANSITIONS[action].keys())


def next_state(
    current: ReviewState,
    action: ReviewAction,
    decision: Optional[ReviewDecision] = None,
) -> ReviewState:
    """
    Resolve the state an action leads to.

    Raises:
        InvalidStateTransition: If the action is not allowed from ``current``
    """
    outcomes = TRANSITIONS[action].get(current)
    if outcomes is None or decision not in outcomes:
        allowed = ", ".join(s.value for s in allowed_from_states(action))
        raise InvalidStateTransition(
            f"Cannot {action.value} from state '{current.value}' (allowed from: {allowed})",
            current_state=current,
        )
    return outcomes[decision]


# ============================================================================
# Persistence Port
# ============================================================================


class ReviewItemStore(Protocol):
    """Persistence port for review items and their review log."""

    def insert_item(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert an item row and return it with its generated id."""
        ...

    def get_item(self, item_id: str) -> Optional[dict[str, Any]]:
        """Fetch an item row, or None when it does not exist."""
        ...

    def list_items(self, state: Optional[str] = None, limit: int = 50) -> list[dict[str, Any]]:
        """List item rows, most recently updated first."""
        ...

    def update_item_if_state(
        self,
        item_id: str,
        expected_state: str,
        changes: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """Apply changes only while the item is in expected_state; None when nothing matched."""
        ...

    def apply_review_if_state(
        self,
        item_id: str,
        expected_state: str,
        changes: dict[str, Any],
        log_row: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """
        Apply changes and append log_row in one transaction, only while the
        item is in expected_state. None when nothing matched; on any error
        neither write is kept.
        """
        ...

    def list_review_log(self, item_id: str) -> list[dict[str, Any]]:
        """Review log rows for an item, oldest first."""
        ...


# ============================================================================
# Pipeline
# ============================================================================


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ReviewPipeline:
    """Applies reviewer actions to persisted review items."""

    def __init__(self, store: ReviewItemStore):
        self.store = store

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def create_item(self, data: ReviewItemCreate) -> ReviewItem:
        """Create a new item in the pending state."""
        now = _now()
        row = self.store.insert_item({
            "title": data.title,
            "description": data.description,
            "state": ReviewState.PENDING.value,
            "revision_number": 0,
            "created_at": now,
            "updated_at": now,
        })
        item = ReviewItem(**row)
        log_with_context(logger, logging.INFO, "Created review item", item_id=item.id)
        return item

    def get_item(self, item_id: str) -> ReviewItem:
        """
        Fetch an item.

        Raises:
            ReviewItemNotFound: If the id does not exist
        """
        row = self.store.get_item(item_id)
        if row is None:
            raise ReviewItemNotFound(item_id)
        return ReviewItem(**row)

    def list_items(self, state: Optional[ReviewState] = None, limit: int = 50) -> list[ReviewItem]:
        """List items, optionally filtered by pipeline state."""
        rows = self.store.list_items(state=state.value if state else None, limit=limit)
        return [ReviewItem(**row) for row in rows]

    def get_history(self, item_id: str) -> list[ReviewLogEntry]:
        """Review verdicts recorded for an item, oldest first."""
        self.get_item(item_id)
        return [ReviewLogEntry(**row) for row in self.store.list_review_log(item_id)]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_first_review(self, item_id: str) -> ReviewItem:
        """Mark an item as picked up by the Chief of Staff."""
        return self._transition(item_id, ReviewAction.START_FIRST_REVIEW)

    def submit_first_review(self, item_id: str, submission: ReviewSubmission) -> ReviewItem:
        """Record the Chief of Staff verdict."""
        return self._submit(item_id, ReviewStage.FIRST_REVIEW, submission)

    def start_second_review(self, item_id: str) -> ReviewItem:
        """Mark a first-approved item as picked up by the secondary reviewer."""
        return self._transition(item_id, ReviewAction.START_SECOND_REVIEW)

    def submit_second_review(self, item_id: str, submission: ReviewSubmission) -> ReviewItem:
        """Record the secondary reviewer verdict."""
        return self._submit(item_id, ReviewStage.SECOND_REVIEW, submission)

    def create_revision(self, item_id: str) -> ReviewItem:
        """
        Start a new review cycle for a rejected item.

        The rejected item is left untouched; a new pending item is created
        that points back at it.

        Raises:
            ReviewItemNotFound: If the id does not exist
            InvalidStateTransition: If the item is not rejected
        """
        rejected = self.get_item(item_id)
        if rejected.state != ReviewState.REJECTED:
            raise InvalidStateTransition(
                f"Only rejected items can be revised (item is '{rejected.state.value}')",
                current_state=rejected.state,
            )

        # Carry forward what the rejecting reviewer asked to fix
        rejections = [
            entry for entry in self.store.list_review_log(rejected.id)
            if entry["decision"] == ReviewDecision.REJECT.value
        ]
        improvements = list(rejections[-1].get("improvements") or []) if rejections else []

        now = _now()
        row = self.store.insert_item({
            "title": rejected.title,
            "description": rejected.description,
            "state": ReviewState.PENDING.value,
            "revision_of": rejected.id,
            "revision_number": rejected.revision_number + 1,
            "improvements": improvements,
            "created_at": now,
            "updated_at": now,
        })
        revision = ReviewItem(**row)
        log_with_context(
            logger, logging.INFO, "Created revision",
            item_id=revision.id, revision_of=rejected.id,
            revision_number=revision.revision_number,
        )
        return revision

    def _submit(self, item_id: str, stage: ReviewStage, submission: ReviewSubmission) -> ReviewItem:
        if stage == ReviewStage.FIRST_REVIEW:
            action = ReviewAction.SUBMIT_FIRST_REVIEW
            changes = {
                "first_review_score": submission.score,
                "first_review_feedback": submission.feedback,
            }
        else:
            action = ReviewAction.SUBMIT_SECOND_REVIEW
            changes = {
                "second_review_score": submission.score,
                "second_review_feedback": submission.feedback,
            }

        log_row = {
            "item_id": item_id,
            "stage": stage.value,
            "reviewer_id": submission.reviewer_id or DEFAULT_REVIEWERS[stage],
            "score": submission.score,
            "feedback": submission.feedback,
            "improvements": list(submission.improvements),
            "decision": submission.decision.value,
        }
        return self._transition(item_id, action, submission.decision, changes, log_row)

    def _transition(
        self,
        item_id: str,
        action: ReviewAction,
        decision: Optional[ReviewDecision] = None,
        changes: Optional[dict[str, Any]] = None,
        log_row: Optional[dict[str, Any]] = None,
    ) -> ReviewItem:
        current = self.get_item(item_id)

        try:
            target = next_state(current.state, action, decision)
        except InvalidStateTransition:
            log_with_context(
                logger, logging.WARNING, "Rejected review transition",
                item_id=item_id, action=action.value, state=current.state.value,
            )
            raise

        now = _now()
        update = dict(changes or {})
        update["state"] = target.value
        update["updated_at"] = now

        if log_row is None:
            row = self.store.update_item_if_state(item_id, current.state.value, update)
        else:
            log_row = {
                **log_row,
                "from_state": current.state.value,
                "to_state": target.value,
                "created_at": now,
            }
            row = self.store.apply_review_if_state(item_id, current.state.value, update, log_row)

        if row is None:
            # Nothing matched: the item vanished or another reviewer moved it first
            latest = self.store.get_item(item_id)
            if latest is None:
                raise ReviewItemNotFound(item_id)
            raise InvalidStateTransition(
                f"Item changed to '{latest['state']}' while applying {action.value}",
                current_state=ReviewState(latest["state"]),
            )

        item = ReviewItem(**row)
        log_with_context(
            logger, logging.INFO, "Review transition applied",
            item_id=item.id, action=action.value,
            from_state=current.state.value, to_state=item.state.value,
        )
        return item
