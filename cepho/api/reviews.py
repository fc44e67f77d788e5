"""API endpoints for the QA review pipeline."""

from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from cepho.core.config import Settings, get_settings
from cepho.core.logging import get_logger
from cepho.core.review_pipeline import (
    InvalidStateTransition,
    ReviewItemNotFound,
    ReviewPipeline,
)
from cepho.core.schemas_reviews import (
    ReviewHistoryResponse,
    ReviewItem,
    ReviewItemCreate,
    ReviewItemListResponse,
    ReviewState,
    ReviewSubmission,
)
from cepho.db.review_items import SupabaseReviewItemStore

logger = get_logger(__name__)

router = APIRouter()


def get_review_pipeline() -> ReviewPipeline:
    """Review pipeline dependency (overridden in tests)."""
    return ReviewPipeline(SupabaseReviewItemStore())


def _run(action: Callable[[], ReviewItem], item_id: UUID, what: str) -> ReviewItem:
    """Run a pipeline action, mapping domain errors to HTTP errors."""
    try:
        return action()

    except ReviewItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidStateTransition as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        error_msg = f"Failed to {what}: {str(e)}"
        logger.error(error_msg, extra={"item_id": str(item_id)})
        raise HTTPException(status_code=500, detail=error_msg) from e


# ============================================================================
# Items
# ============================================================================


@router.post("/items", response_model=ReviewItem, status_code=201)
async def create_review_item(
    request: ReviewItemCreate,
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """Create a task or document awaiting review."""
    try:
        return pipeline.create_item(request)

    except Exception as e:
        error_msg = f"Failed to create review item: {str(e)}"
        logger.error(error_msg)
        raise HTTPException(status_code=500, detail=error_msg) from e


@router.get("/items", response_model=ReviewItemListResponse)
async def list_review_items(
    state: Optional[ReviewState] = Query(None, description="Optional pipeline state filter"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Max items to return"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
    settings: Settings = Depends(get_settings),
) -> ReviewItemListResponse:
    """List review items, most recently updated first."""
    try:
        items = pipeline.list_items(state=state, limit=limit or settings.REVIEW_LIST_DEFAULT_LIMIT)
        return ReviewItemListResponse(items=items, total=len(items))

    except Exception as e:
        error_msg = f"Failed to list review items: {str(e)}"
        logger.error(error_msg)
        raise HTTPException(status_code=500, detail=error_msg) from e


@router.get("/items/{item_id}", response_model=ReviewItem)
async def get_review_item(
    item_id: UUID = Path(..., description="Review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """Get a single review item."""
    return _run(lambda: pipeline.get_item(str(item_id)), item_id, "get review item")


@router.get("/items/{item_id}/history", response_model=ReviewHistoryResponse)
async def get_review_history(
    item_id: UUID = Path(..., description="Review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewHistoryResponse:
    """Get the recorded review verdicts for an item."""
    try:
        entries = pipeline.get_history(str(item_id))
        return ReviewHistoryResponse(item_id=str(item_id), entries=entries)

    except ReviewItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        error_msg = f"Failed to get review history: {str(e)}"
        logger.error(error_msg, extra={"item_id": str(item_id)})
        raise HTTPException(status_code=500, detail=error_msg) from e


# ============================================================================
# Transitions
# ============================================================================


@router.post("/items/{item_id}/first-review/start", response_model=ReviewItem)
async def start_first_review(
    item_id: UUID = Path(..., description="Review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """Chief of Staff picks up a pending item."""
    return _run(lambda: pipeline.start_first_review(str(item_id)), item_id, "start first review")


@router.post("/items/{item_id}/first-review", response_model=ReviewItem)
async def submit_first_review(
    request: ReviewSubmission,
    item_id: UUID = Path(..., description="Review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """
    Record the Chief of Staff verdict.

    Raises:
        HTTPException 404: If the item does not exist
        HTTPException 409: If the item is not awaiting a first review
    """
    return _run(
        lambda: pipeline.submit_first_review(str(item_id), request), item_id, "submit first review"
    )


@router.post("/items/{item_id}/second-review/start", response_model=ReviewItem)
async def start_second_review(
    item_id: UUID = Path(..., description="Review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """Secondary reviewer picks up a first-approved item."""
    return _run(lambda: pipeline.start_second_review(str(item_id)), item_id, "start second review")


@router.post("/items/{item_id}/second-review", response_model=ReviewItem)
async def submit_second_review(
    request: ReviewSubmission,
    item_id: UUID = Path(..., description="Review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """
    Record the secondary reviewer verdict.

    Raises:
        HTTPException 404: If the item does not exist
        HTTPException 409: If the item has not passed the first review
    """
    return _run(
        lambda: pipeline.submit_second_review(str(item_id), request), item_id, "submit second review"
    )


@router.post("/items/{item_id}/revisions", response_model=ReviewItem, status_code=201)
async def create_revision(
    item_id: UUID = Path(..., description="Rejected review item UUID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
) -> ReviewItem:
    """Open a new review cycle for a rejected item."""
    return _run(lambda: pipeline.create_revision(str(item_id)), item_id, "create revision")
