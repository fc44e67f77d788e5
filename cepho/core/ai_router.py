"""Chat-submission entry point for AI provider routing.

Combines query classification and provider selection. A forced provider
skips classification entirely.
"""

import logging
from typing import Iterable, Optional

from cepho.core.config import Settings
from cepho.core.logging import get_logger, log_with_context
from cepho.core.provider_selector import select_provider
from cepho.core.query_classifier import classify_query
from cepho.core.schemas_routing import ProviderId, RoutingDecision, TaskProfile

logger = get_logger(__name__)


def route_query(
    text: str,
    configured_providers: Iterable[ProviderId],
    forced_provider: Optional[ProviderId] = None,
    settings: Optional[Settings] = None,
) -> tuple[Optional[TaskProfile], RoutingDecision]:
    """
    Route a query to an AI provider.

    Args:
        text: Free-text user query
        configured_providers: Providers the caller holds credentials for
        forced_provider: Optional user override
        settings: Tunables; module defaults are used when omitted

    Returns:
        (profile, decision) - profile is None when the provider was forced
    """
    if forced_provider is not None:
        decision = select_provider(TaskProfile(), configured_providers, forced_provider)
        log_with_context(
            logger, logging.INFO, "Routing forced by user",
            provider=decision.provider.value,
        )
        return None, decision

    if settings is not None:
        profile = classify_query(
            text,
            moderate_threshold=settings.COMPLEXITY_MODERATE_WORDS,
            complex_threshold=settings.COMPLEXITY_COMPLEX_WORDS,
        )
        decision = select_provider(
            profile,
            configured_providers,
            reference_max=settings.ROUTING_CONFIDENCE_REFERENCE_MAX,
            max_alternatives=settings.ROUTING_MAX_ALTERNATIVES,
        )
    else:
        profile = classify_query(text)
        decision = select_provider(profile, configured_providers)

    log_with_context(
        logger, logging.INFO, "Routed query",
        category=profile.category.value,
        complexity=profile.complexity.value,
        provider=decision.provider.value,
        confidence=decision.confidence,
    )
    return profile, decision
