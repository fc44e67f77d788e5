"""Tests for the QA review pipeline state machine."""

import pytest
from pydantic import ValidationError

from cepho.core.review_pipeline import (
    InvalidStateTransition,
    ReviewItemNotFound,
    ReviewPipeline,
    next_state,
)
from cepho.core.schemas_reviews import (
    ReviewAction,
    ReviewDecision,
    ReviewItemCreate,
    ReviewStage,
    ReviewState,
    ReviewSubmission,
)

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _approve(score: int = 8, feedback: str = "Looks good") -> ReviewSubmission:
    return ReviewSubmission(score=score, feedback=feedback, decision=ReviewDecision.APPROVE)


def _reject(score: int = 3, feedback: str = "Needs work") -> ReviewSubmission:
    return ReviewSubmission(score=score, feedback=feedback, decision=ReviewDecision.REJECT)


@pytest.fixture
def pipeline(review_store):
    return ReviewPipeline(review_store)


@pytest.fixture
def item(pipeline):
    return pipeline.create_item(ReviewItemCreate(title="Investment deck", description="Series A"))


# =============================================================================
# Transition table
# =============================================================================


class TestNextState:
    @pytest.mark.parametrize(
        "current,action,decision,expected",
        [
            (ReviewState.PENDING, ReviewAction.START_FIRST_REVIEW, None, ReviewState.FIRST_REVIEW),
            (ReviewState.PENDING, ReviewAction.SUBMIT_FIRST_REVIEW, ReviewDecision.APPROVE, ReviewState.FIRST_APPROVED),
            (ReviewState.FIRST_REVIEW, ReviewAction.SUBMIT_FIRST_REVIEW, ReviewDecision.REJECT, ReviewState.REJECTED),
            (ReviewState.FIRST_APPROVED, ReviewAction.START_SECOND_REVIEW, None, ReviewState.SECOND_REVIEW),
            (ReviewState.FIRST_APPROVED, ReviewAction.SUBMIT_SECOND_REVIEW, ReviewDecision.APPROVE, ReviewState.VERIFIED),
            (ReviewState.SECOND_REVIEW, ReviewAction.SUBMIT_SECOND_REVIEW, ReviewDecision.REJECT, ReviewState.REJECTED),
        ],
    )
    def test_allowed(self, current, action, decision, expected):
        assert next_state(current, action, decision) == expected

    @pytest.mark.parametrize(
        "current,action,decision",
        [
            (ReviewState.PENDING, ReviewAction.SUBMIT_SECOND_REVIEW, ReviewDecision.APPROVE),
            (ReviewState.PENDING, ReviewAction.START_SECOND_REVIEW, None),
            (ReviewState.FIRST_APPROVED, ReviewAction.SUBMIT_FIRST_REVIEW, ReviewDecision.APPROVE),
            (ReviewState.FIRST_REVIEW, ReviewAction.START_FIRST_REVIEW, None),
            (ReviewState.VERIFIED, ReviewAction.SUBMIT_SECOND_REVIEW, ReviewDecision.APPROVE),
            (ReviewState.REJECTED, ReviewAction.SUBMIT_FIRST_REVIEW, ReviewDecision.APPROVE),
            (ReviewState.REJECTED, ReviewAction.START_FIRST_REVIEW, None),
        ],
    )
    def test_disallowed(self, current, action, decision):
        with pytest.raises(InvalidStateTransition) as exc_info:
            next_state(current, action, decision)
        assert exc_info.value.current_state == current

    def test_submit_without_decision_is_invalid(self):
        with pytest.raises(InvalidStateTransition):
            next_state(ReviewState.PENDING, ReviewAction.SUBMIT_FIRST_REVIEW, None)


# =============================================================================
# Pipeline against the store
# =============================================================================


class TestItems:
    def test_create_starts_pending(self, item):
        assert item.state == ReviewState.PENDING
        assert item.revision_number == 0
        assert item.first_review_score is None
        assert item.second_review_score is None

    def test_get_missing_raises(self, pipeline):
        with pytest.raises(ReviewItemNotFound):
            pipeline.get_item(MISSING_ID)

    def test_list_filters_by_state(self, pipeline, item):
        other = pipeline.create_item(ReviewItemCreate(title="Risk register"))
        pipeline.submit_first_review(other.id, _approve())

        pending = pipeline.list_items(state=ReviewState.PENDING)
        assert [i.id for i in pending] == [item.id]
        assert len(pipeline.list_items()) == 2
        assert len(pipeline.list_items(limit=1)) == 1


class TestFullFlow:
    def test_double_approval_verifies(self, pipeline, item):
        first = pipeline.submit_first_review(item.id, _approve(score=8, feedback="Solid"))
        assert first.state == ReviewState.FIRST_APPROVED

        final = pipeline.submit_second_review(item.id, _approve(score=9, feedback="Verified"))
        assert final.state == ReviewState.VERIFIED
        assert final.first_review_score == 8
        assert final.first_review_feedback == "Solid"
        assert final.second_review_score == 9
        assert final.second_review_feedback == "Verified"

    def test_explicit_review_steps(self, pipeline, item):
        assert pipeline.start_first_review(item.id).state == ReviewState.FIRST_REVIEW
        assert pipeline.submit_first_review(item.id, _approve()).state == ReviewState.FIRST_APPROVED
        assert pipeline.start_second_review(item.id).state == ReviewState.SECOND_REVIEW
        assert pipeline.submit_second_review(item.id, _approve()).state == ReviewState.VERIFIED

    def test_first_rejection_blocks_second_review(self, pipeline, item, review_store):
        rejected = pipeline.submit_first_review(item.id, _reject())
        assert rejected.state == ReviewState.REJECTED

        with pytest.raises(InvalidStateTransition):
            pipeline.submit_second_review(item.id, _approve())

        assert pipeline.get_item(item.id).state == ReviewState.REJECTED
        assert len(review_store.review_log) == 1

    def test_second_rejection(self, pipeline, item):
        pipeline.submit_first_review(item.id, _approve())
        pipeline.start_second_review(item.id)
        result = pipeline.submit_second_review(item.id, _reject(score=2))
        assert result.state == ReviewState.REJECTED
        assert result.second_review_score == 2

    def test_cannot_skip_first_review(self, pipeline, item):
        with pytest.raises(InvalidStateTransition):
            pipeline.submit_second_review(item.id, _approve())
        with pytest.raises(InvalidStateTransition):
            pipeline.start_second_review(item.id)
        assert pipeline.get_item(item.id).state == ReviewState.PENDING

    def test_cannot_resubmit_first_review_after_approval(self, pipeline, item):
        pipeline.submit_first_review(item.id, _approve())
        with pytest.raises(InvalidStateTransition):
            pipeline.submit_first_review(item.id, _approve(score=10))
        assert pipeline.get_item(item.id).first_review_score == 8

    def test_submit_on_missing_item(self, pipeline):
        with pytest.raises(ReviewItemNotFound):
            pipeline.submit_first_review(MISSING_ID, _approve())


class TestConcurrency:
    def test_concurrent_change_rejected(self, pipeline, item, review_store):
        # Another reviewer approves between our read and our update
        review_store.race_state = ReviewState.FIRST_APPROVED.value

        with pytest.raises(InvalidStateTransition) as exc_info:
            pipeline.submit_first_review(item.id, _reject())

        assert exc_info.value.current_state == ReviewState.FIRST_APPROVED
        stored = pipeline.get_item(item.id)
        assert stored.state == ReviewState.FIRST_APPROVED
        assert stored.first_review_score is None
        assert review_store.review_log == []

    def test_failed_log_write_leaves_item_unchanged(self, pipeline, item, review_store):
        review_store.fail_log_write = True

        with pytest.raises(RuntimeError):
            pipeline.submit_first_review(item.id, _approve())

        stored = pipeline.get_item(item.id)
        assert stored.state == ReviewState.PENDING
        assert stored.first_review_score is None
        assert pipeline.get_history(item.id) == []

        # The verdict can still be recorded once the log is writable again
        review_store.fail_log_write = False
        assert pipeline.submit_first_review(item.id, _approve()).state == ReviewState.FIRST_APPROVED
        assert len(pipeline.get_history(item.id)) == 1

    def test_start_transitions_write_no_log(self, pipeline, item, review_store):
        pipeline.start_first_review(item.id)
        assert review_store.review_log == []


class TestHistory:
    def test_log_records_each_verdict(self, pipeline, item):
        pipeline.start_first_review(item.id)
        pipeline.submit_first_review(item.id, _approve(score=7))
        second = ReviewSubmission(
            score=9, feedback="ok", decision=ReviewDecision.APPROVE, reviewer_id="legal_expert"
        )
        pipeline.submit_second_review(item.id, second)

        history = pipeline.get_history(item.id)
        assert [e.stage for e in history] == [ReviewStage.FIRST_REVIEW, ReviewStage.SECOND_REVIEW]
        assert history[0].reviewer_id == "chief_of_staff"
        assert history[0].from_state == ReviewState.FIRST_REVIEW
        assert history[0].to_state == ReviewState.FIRST_APPROVED
        assert history[1].reviewer_id == "legal_expert"
        assert history[1].to_state == ReviewState.VERIFIED

    def test_improvements_recorded(self, pipeline, item):
        submission = ReviewSubmission(
            score=4,
            feedback="Numbers do not reconcile",
            improvements=["Reconcile Q3 totals", "Cite the data source"],
            decision=ReviewDecision.REJECT,
        )
        pipeline.submit_first_review(item.id, submission)

        [entry] = pipeline.get_history(item.id)
        assert entry.improvements == ["Reconcile Q3 totals", "Cite the data source"]
        assert entry.decision == ReviewDecision.REJECT

    def test_improvements_default_empty(self, pipeline, item):
        pipeline.submit_first_review(item.id, _approve())
        assert pipeline.get_history(item.id)[0].improvements == []

    def test_history_of_missing_item(self, pipeline):
        with pytest.raises(ReviewItemNotFound):
            pipeline.get_history(MISSING_ID)


class TestRevisions:
    def test_revision_of_rejected_item(self, pipeline, item):
        pipeline.submit_first_review(item.id, _reject())

        revision = pipeline.create_revision(item.id)
        assert revision.id != item.id
        assert revision.state == ReviewState.PENDING
        assert revision.revision_of == item.id
        assert revision.revision_number == 1
        assert revision.title == item.title
        assert pipeline.get_item(item.id).state == ReviewState.REJECTED

    def test_revision_carries_requested_improvements(self, pipeline, item):
        pipeline.submit_first_review(item.id, _approve())
        rejection = ReviewSubmission(
            score=2,
            improvements=["Add a risk section"],
            decision=ReviewDecision.REJECT,
        )
        pipeline.submit_second_review(item.id, rejection)

        revision = pipeline.create_revision(item.id)
        assert revision.improvements == ["Add a risk section"]

    def test_revision_numbers_increment(self, pipeline, item):
        pipeline.submit_first_review(item.id, _reject())
        revision = pipeline.create_revision(item.id)
        pipeline.submit_first_review(revision.id, _reject())
        assert pipeline.create_revision(revision.id).revision_number == 2

    def test_only_rejected_items_can_be_revised(self, pipeline, item):
        with pytest.raises(InvalidStateTransition):
            pipeline.create_revision(item.id)


@pytest.mark.parametrize("score", [-1, 11])
def test_score_out_of_range(score):
    with pytest.raises(ValidationError):
        ReviewSubmission(score=score, decision=ReviewDecision.APPROVE)
