"""Cepho engine HTTP app: provider routing and the QA review gate, served under /v1."""

from fastapi import FastAPI

from cepho.api import router as api_router
from cepho.core.config import get_settings

VERSION = "0.1.0"

app = FastAPI(
    title="Cepho Engine",
    description="AI provider routing and QA review pipeline for the Cepho Chief of Staff",
    version=VERSION,
)
app.include_router(api_router, prefix="/v1", tags=["v1"])


@app.get("/health")
async def health_check() -> dict:
    """Liveness check reporting the running version and environment."""
    return {"status": "ok", "version": VERSION, "environment": get_settings().CEPHO_ENV}
