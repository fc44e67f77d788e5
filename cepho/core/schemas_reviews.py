"""Pydantic schemas for the QA review pipeline."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Enums
# ============================================================================


class ReviewState(str, Enum):
    """Where an item sits in the quality gate."""
    PENDING = "pending"
    FIRST_REVIEW = "first_review"        # Chief of Staff reviewing
    FIRST_APPROVED = "first_approved"    # Chief of Staff approved
    SECOND_REVIEW = "second_review"      # Secondary AI reviewing
    VERIFIED = "verified"
    REJECTED = "rejected"


class ReviewDecision(str, Enum):
    """Reviewer verdict."""
    APPROVE = "approve"
    REJECT = "reject"


class ReviewStage(str, Enum):
    """Which reviewer stage an action belongs to."""
    FIRST_REVIEW = "first_review"
    SECOND_REVIEW = "second_review"


class ReviewAction(str, Enum):
    """Actions that move an item through the pipeline."""
    START_FIRST_REVIEW = "start_first_review"
    SUBMIT_FIRST_REVIEW = "submit_first_review"
    START_SECOND_REVIEW = "start_second_review"
    SUBMIT_SECOND_REVIEW = "submit_second_review"


# ============================================================================
# Item Schemas
# ============================================================================


class ReviewItemCreate(BaseModel):
    """Schema for creating a reviewable item."""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None


class ReviewItem(BaseModel):
    """A task or document moving through the quality gate."""
    id: str
    title: str
    description: Optional[str] = None
    state: ReviewState = ReviewState.PENDING
    first_review_score: Optional[int] = None
    first_review_feedback: Optional[str] = None
    second_review_score: Optional[int] = None
    second_review_feedback: Optional[str] = None
    revision_of: Optional[str] = None
    revision_number: int = 0
    improvements: list[str] = Field(
        default_factory=list, description="Fixes requested by the rejection this revises"
    )
    created_at: datetime
    updated_at: datetime


class ReviewSubmission(BaseModel):
    """A reviewer's verdict for one stage."""
    score: int = Field(..., ge=0, le=10, description="Quality score 0-10")
    feedback: Optional[str] = None
    improvements: list[str] = Field(default_factory=list, description="Suggested improvements")
    decision: ReviewDecision
    reviewer_id: Optional[str] = Field(
        None, description="Reviewer identifier; stage default when omitted"
    )


class ReviewLogEntry(BaseModel):
    """One recorded review verdict."""
    id: str
    item_id: str
    stage: ReviewStage
    reviewer_id: str
    score: int
    feedback: Optional[str] = None
    improvements: list[str] = Field(default_factory=list)
    decision: ReviewDecision
    from_state: ReviewState
    to_state: ReviewState
    created_at: datetime


class ReviewItemListResponse(BaseModel):
    """Response for listing review items."""
    items: list[ReviewItem]
    total: int


class ReviewHistoryResponse(BaseModel):
    """Review log for one item, oldest first."""
    item_id: str
    entries: list[ReviewLogEntry]
