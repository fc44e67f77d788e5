"""Known AI providers and which of them hold credentials.

The provider list is fixed at import time. Only the "configured" flag
changes, and only when a credential is stored or removed through a
CredentialStore.
"""

from typing import Protocol

from cepho.core.logging import get_logger
from cepho.core.schemas_routing import (
    ProviderId,
    ProviderProfile,
    ProviderSpecialty,
    TaskCategory,
)

logger = get_logger(__name__)


# ============================================================================
# Provider Definitions
# ============================================================================

DEFAULT_PROVIDER = ProviderId.FORGE

# Registry order is also the scoring tie-break order
PROVIDERS: list[ProviderProfile] = [
    ProviderProfile(
        id=ProviderId.FORGE,
        name="Forge API",
        description="Built-in AI service",
        capabilities=["General purpose", "Fast response", "Integrated"],
        domains=[TaskCategory.GENERAL, TaskCategory.CREATIVE],
        requires_credential=False,
        cost_score=3,
        quality_score=7,
    ),
    ProviderProfile(
        id=ProviderId.CLAUDE,
        name="Claude (Anthropic)",
        description="Nuanced reasoning, safer outputs",
        capabilities=["Medical reasoning", "Complex analysis", "Code", "Safety"],
        domains=[TaskCategory.MEDICAL, TaskCategory.TECHNICAL, TaskCategory.CREATIVE],
        specialties=[ProviderSpecialty.CAREFUL_REASONING, ProviderSpecialty.CODE],
        cost_score=5,
        quality_score=9,
    ),
    ProviderProfile(
        id=ProviderId.OPENAI,
        name="GPT-4o (OpenAI)",
        description="Strong at structured tasks",
        capabilities=["Legal analysis", "Calculations", "Structured output"],
        domains=[TaskCategory.LEGAL, TaskCategory.FINANCIAL],
        specialties=[ProviderSpecialty.CALCULATION],
        cost_score=6,
        quality_score=8,
    ),
    ProviderProfile(
        id=ProviderId.PERPLEXITY,
        name="Perplexity",
        description="Real-time web research with citations",
        capabilities=["Live information", "Source citations", "Research"],
        domains=[TaskCategory.RESEARCH],
        specialties=[ProviderSpecialty.LIVE_WEB],
        cost_score=4,
        quality_score=8,
    ),
    ProviderProfile(
        id=ProviderId.GEMINI,
        name="Google Gemini",
        description="Multimodal, real-time data",
        capabilities=["Image analysis", "Real-time info", "Large context"],
        domains=[TaskCategory.RESEARCH, TaskCategory.GENERAL],
        cost_score=4,
        quality_score=7,
    ),
    ProviderProfile(
        id=ProviderId.AZURE,
        name="Azure OpenAI",
        description="Enterprise-grade, governed",
        capabilities=["Enterprise security", "Compliance", "Governance"],
        domains=[TaskCategory.LEGAL, TaskCategory.FINANCIAL, TaskCategory.GENERAL],
        cost_score=7,
        quality_score=8,
    ),
    ProviderProfile(
        id=ProviderId.OLLAMA,
        name="Local (Ollama)",
        description="Self-hosted, maximum privacy",
        capabilities=["Privacy", "No data leaves device", "Free"],
        domains=[TaskCategory.GENERAL],
        requires_credential=False,
        cost_score=1,
        quality_score=6,
    ),
]

PROVIDERS_BY_ID: dict[ProviderId, ProviderProfile] = {p.id: p for p in PROVIDERS}


def get_provider(provider_id: ProviderId) -> ProviderProfile:
    """Look up a provider profile by id."""
    return PROVIDERS_BY_ID[ProviderId(provider_id)]


# ============================================================================
# Credential Store Port
# ============================================================================


class CredentialStore(Protocol):
    """
    Persistence port for provider credentials.

    Implementations decide where keys live (Supabase table, vault, memory).
    """

    def list_provider_ids(self) -> list[str]:
        """Return ids of providers that currently have a stored credential."""
        ...

    def save(self, provider_id: str, api_key: str) -> None:
        """Store (or replace) the credential for a provider."""
        ...

    def delete(self, provider_id: str) -> None:
        """Remove the credential for a provider; no-op when absent."""
        ...


# ============================================================================
# Registry
# ============================================================================


class ProviderRegistry:
    """Provider profiles combined with the credentials a CredentialStore holds."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def configured_ids(self) -> set[ProviderId]:
        """Providers usable right now. The default provider is always included."""
        configured = {DEFAULT_PROVIDER}
        for raw_id in self.store.list_provider_ids():
            try:
                configured.add(ProviderId(raw_id))
            except ValueError:
                logger.warning(f"Ignoring credential for unknown provider '{raw_id}'")
        return configured

    def list_providers(self) -> list[ProviderProfile]:
        """All providers in registry order with is_configured filled in."""
        configured = self.configured_ids()
        return [
            provider.model_copy(update={"is_configured": provider.id in configured})
            for provider in PROVIDERS
        ]

    def configure(self, provider_id: ProviderId, api_key: str) -> ProviderProfile:
        """
        Store a credential for a provider and mark it configured.

        Raises:
            ValueError: If the key is blank
        """
        provider_id = ProviderId(provider_id)
        if not api_key or not api_key.strip():
            raise ValueError(f"An API key is required to configure {provider_id.value}")

        self.store.save(provider_id.value, api_key.strip())
        logger.info(f"Configured provider {provider_id.value}")
        return get_provider(provider_id).model_copy(update={"is_configured": True})

    def remove(self, provider_id: ProviderId) -> ProviderProfile:
        """
        Drop a provider's credential.

        Raises:
            ValueError: If asked to remove the built-in default provider
        """
        provider_id = ProviderId(provider_id)
        if provider_id == DEFAULT_PROVIDER:
            raise ValueError("The built-in provider cannot be removed")

        self.store.delete(provider_id.value)
        logger.info(f"Removed provider {provider_id.value}")
        return get_provider(provider_id).model_copy(update={"is_configured": False})
