"""Provider selection: score configured providers against a task profile.

Each candidate starts from its quality score and collects fixed bonuses
for domain fit and specialties, minus a penalty when a weak provider
meets a complex task. The highest score wins; ties keep registry order.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from cepho.core.logging import get_logger
from cepho.core.provider_registry import DEFAULT_PROVIDER, PROVIDERS
from cepho.core.schemas_routing import (
    Complexity,
    ProviderId,
    ProviderProfile,
    ProviderSpecialty,
    RoutingDecision,
    TaskCategory,
    TaskProfile,
)

logger = get_logger(__name__)

# Scoring weights
DOMAIN_BONUS = 3.0
REAL_TIME_BONUS = 4.0
MEDICAL_REASONING_BONUS = 3.0
CALCULATION_BONUS = 2.0
CODE_BONUS = 2.0
COMPLEXITY_PENALTY = 2.0
LOW_QUALITY_THRESHOLD = 7.0

# Normalisation: a score at or above this maps to full confidence
CONFIDENCE_REFERENCE_MAX = 12.0
MAX_ALTERNATIVES = 2

FALLBACK_REASON = "best general match"
FORCED_REASON = "manually selected"


@dataclass
class ScoredProvider:
    """A candidate provider with its score and the bonuses it earned."""

    provider: ProviderProfile
    score: float
    reasons: list[str] = field(default_factory=list)


def score_provider(provider: ProviderProfile, profile: TaskProfile) -> ScoredProvider:
    """Score one provider for a task profile."""
    score = provider.quality_score
    reasons: list[str] = []

    if profile.category in provider.domains:
        score += DOMAIN_BONUS
        reasons.append(f"optimised for {profile.category.value} tasks")

    if profile.requires_real_time and ProviderSpecialty.LIVE_WEB in provider.specialties:
        score += REAL_TIME_BONUS
        reasons.append("has real-time web access")

    if (
        profile.category == TaskCategory.MEDICAL
        and ProviderSpecialty.CAREFUL_REASONING in provider.specialties
    ):
        score += MEDICAL_REASONING_BONUS
        reasons.append("strongest for medical reasoning")

    if profile.requires_calculation and ProviderSpecialty.CALCULATION in provider.specialties:
        score += CALCULATION_BONUS
        reasons.append("strong at calculations")

    if profile.requires_code_execution and ProviderSpecialty.CODE in provider.specialties:
        score += CODE_BONUS
        reasons.append("strong at code")

    if profile.complexity == Complexity.COMPLEX and provider.quality_score < LOW_QUALITY_THRESHOLD:
        score -= COMPLEXITY_PENALTY

    return ScoredProvider(provider=provider, score=score, reasons=reasons)


def candidate_providers(configured_providers: Iterable[ProviderId]) -> list[ProviderProfile]:
    """Configured providers plus the default, in registry order."""
    allowed = {ProviderId(p) for p in configured_providers}
    allowed.add(DEFAULT_PROVIDER)
    return [p for p in PROVIDERS if p.id in allowed]


def select_provider(
    profile: TaskProfile,
    configured_providers: Iterable[ProviderId],
    forced_provider: Optional[ProviderId] = None,
    reference_max: float = CONFIDENCE_REFERENCE_MAX,
    max_alternatives: int = MAX_ALTERNATIVES,
) -> RoutingDecision:
    """
    Pick the best provider for a task profile.

    Args:
        profile: Classified query
        configured_providers: Providers the caller holds credentials for
        forced_provider: User override; bypasses scoring entirely
        reference_max: Score that maps to confidence 1.0
        max_alternatives: Number of runner-ups to return

    Returns:
        RoutingDecision for the query
    """
    if forced_provider is not None:
        return RoutingDecision(
            provider=ProviderId(forced_provider),
            reason=FORCED_REASON,
            confidence=1.0,
            alternatives=[],
        )

    scored = [score_provider(p, profile) for p in candidate_providers(configured_providers)]
    # sorted() is stable, so equal scores keep registry order
    scored = sorted(scored, key=lambda s: s.score, reverse=True)

    best = scored[0]
    confidence = min(max(best.score, 0.0) / reference_max, 1.0)

    decision = RoutingDecision(
        provider=best.provider.id,
        reason=", ".join(best.reasons) if best.reasons else FALLBACK_REASON,
        confidence=round(confidence, 4),
        alternatives=[s.provider.id for s in scored[1 : 1 + max_alternatives]],
        scores={s.provider.id.value: s.score for s in scored},
    )

    logger.debug(
        f"Scored {len(scored)} providers for {profile.category.value}/{profile.complexity.value}",
        extra={"extra_data": decision.scores},
    )
    return decision
