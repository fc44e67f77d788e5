"""API router for v1 endpoints."""

from fastapi import APIRouter

from cepho.api import reviews, routing

router = APIRouter()

# AI provider routing: classification, provider selection, credentials
router.include_router(routing.router, prefix="/routing", tags=["routing"])

# QA review pipeline: Chief of Staff review, secondary AI verification
router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
