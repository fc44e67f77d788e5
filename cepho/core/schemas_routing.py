"""Pydantic schemas for AI provider routing."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Enums
# ============================================================================


class TaskCategory(str, Enum):
    """Coarse domain a query belongs to."""
    MEDICAL = "medical"
    LEGAL = "legal"
    FINANCIAL = "financial"
    RESEARCH = "research"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    GENERAL = "general"


class Complexity(str, Enum):
    """Complexity bucket derived from query length."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class ProviderId(str, Enum):
    """Known AI backends."""
    FORGE = "forge"
    CLAUDE = "claude"
    OPENAI = "openai"
    PERPLEXITY = "perplexity"
    GEMINI = "gemini"
    AZURE = "azure"
    OLLAMA = "ollama"


class ProviderSpecialty(str, Enum):
    """Strengths that earn a provider a scoring bonus."""
    LIVE_WEB = "live_web"                    # Real-time web lookup
    CAREFUL_REASONING = "careful_reasoning"  # Medical / high-stakes reasoning
    CALCULATION = "calculation"              # Structured output and arithmetic
    CODE = "code"


# ============================================================================
# Core models
# ============================================================================


class TaskProfile(BaseModel):
    """Classification of a single query. Computed per call, never persisted."""
    category: TaskCategory = TaskCategory.GENERAL
    complexity: Complexity = Complexity.SIMPLE
    requires_real_time: bool = False
    requires_calculation: bool = False
    requires_code_execution: bool = False
    word_count: int = 0
    matched_keywords: list[str] = Field(default_factory=list)


class ProviderProfile(BaseModel):
    """Static description of an AI backend."""
    id: ProviderId
    name: str
    description: str = ""
    capabilities: list[str] = Field(default_factory=list)
    domains: list[TaskCategory] = Field(default_factory=list)
    specialties: list[ProviderSpecialty] = Field(default_factory=list)
    requires_credential: bool = True
    cost_score: float = Field(..., ge=0, le=10, description="Relative cost, 0-10")
    quality_score: float = Field(..., ge=0, le=10, description="Relative quality, 0-10")
    is_configured: bool = False


class RoutingDecision(BaseModel):
    """Which provider should service a query, and why."""
    provider: ProviderId
    reason: str
    confidence: float = Field(..., ge=0, le=1)
    alternatives: list[ProviderId] = Field(default_factory=list)
    scores: dict[str, float] = Field(default_factory=dict)


# ============================================================================
# API payloads
# ============================================================================


class ClassifyRequest(BaseModel):
    """Request body for query classification."""
    query: str = Field(..., min_length=1, description="Free-text user query")


class RouteRequest(BaseModel):
    """Request body for routing a query to a provider."""
    query: str = Field(..., min_length=1, description="Free-text user query")
    configured_providers: Optional[list[ProviderId]] = Field(
        None, description="Providers the caller holds credentials for; stored credentials when omitted"
    )
    forced_provider: Optional[ProviderId] = Field(
        None, description="Bypass scoring and use this provider"
    )


class RouteResponse(BaseModel):
    """Routing result; profile is omitted when a provider was forced."""
    profile: Optional[TaskProfile] = None
    decision: RoutingDecision


class CredentialUpdate(BaseModel):
    """Request body for storing a provider credential."""
    api_key: str = Field(..., min_length=1)


class ProviderListResponse(BaseModel):
    """All known providers with their configured flag."""
    providers: list[ProviderProfile]
    total: int
