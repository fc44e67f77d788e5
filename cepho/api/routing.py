"""API endpoints for AI provider routing."""

from fastapi import APIRouter, Depends, HTTPException, Path

from cepho.core.ai_router import route_query
from cepho.core.config import Settings, get_settings
from cepho.core.logging import get_logger
from cepho.core.provider_registry import CredentialStore, ProviderRegistry
from cepho.core.query_classifier import classify_query
from cepho.core.schemas_routing import (
    ClassifyRequest,
    CredentialUpdate,
    ProviderId,
    ProviderListResponse,
    ProviderProfile,
    RouteRequest,
    RouteResponse,
    TaskProfile,
)
from cepho.db.provider_credentials import SupabaseCredentialStore

logger = get_logger(__name__)

router = APIRouter()


def get_credential_store() -> CredentialStore:
    """Credential store dependency (overridden in tests)."""
    return SupabaseCredentialStore()


def get_registry(store: CredentialStore = Depends(get_credential_store)) -> ProviderRegistry:
    return ProviderRegistry(store)


@router.get("/providers", response_model=ProviderListResponse)
async def list_providers(
    registry: ProviderRegistry = Depends(get_registry),
) -> ProviderListResponse:
    """List every known provider with its configured flag."""
    try:
        providers = registry.list_providers()
        return ProviderListResponse(providers=providers, total=len(providers))

    except Exception as e:
        error_msg = f"Failed to list providers: {str(e)}"
        logger.error(error_msg)
        raise HTTPException(status_code=500, detail=error_msg) from e


@router.put("/providers/{provider_id}/credential", response_model=ProviderProfile)
async def configure_provider(
    provider_id: ProviderId = Path(..., description="Provider identifier"),
    request: CredentialUpdate = ...,
    registry: ProviderRegistry = Depends(get_registry),
) -> ProviderProfile:
    """
    Store an API key for a provider.

    Raises:
        HTTPException 400: If the key is blank
        HTTPException 500: If the credential could not be stored
    """
    try:
        return registry.configure(provider_id, request.api_key)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        error_msg = f"Failed to configure provider: {str(e)}"
        logger.error(error_msg, extra={"provider": provider_id.value})
        raise HTTPException(status_code=500, detail=error_msg) from e


@router.delete("/providers/{provider_id}/credential", response_model=ProviderProfile)
async def remove_provider(
    provider_id: ProviderId = Path(..., description="Provider identifier"),
    registry: ProviderRegistry = Depends(get_registry),
) -> ProviderProfile:
    """
    Remove a provider's API key.

    Raises:
        HTTPException 400: If asked to remove the built-in provider
        HTTPException 500: If the credential could not be removed
    """
    try:
        return registry.remove(provider_id)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        error_msg = f"Failed to remove provider: {str(e)}"
        logger.error(error_msg, extra={"provider": provider_id.value})
        raise HTTPException(status_code=500, detail=error_msg) from e


@router.post("/classify", response_model=TaskProfile)
async def classify(
    request: ClassifyRequest,
    settings: Settings = Depends(get_settings),
) -> TaskProfile:
    """Classify a query into a task profile."""
    return classify_query(
        request.query,
        moderate_threshold=settings.COMPLEXITY_MODERATE_WORDS,
        complex_threshold=settings.COMPLEXITY_COMPLEX_WORDS,
    )


@router.post("/route", response_model=RouteResponse)
async def route(
    request: RouteRequest,
    registry: ProviderRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> RouteResponse:
    """
    Pick the AI provider that should answer a query.

    When ``configured_providers`` is omitted the stored credentials decide
    which providers are available. The built-in provider always is.
    """
    try:
        if request.configured_providers is None:
            configured = registry.configured_ids()
        else:
            configured = set(request.configured_providers)

        profile, decision = route_query(
            request.query,
            configured,
            forced_provider=request.forced_provider,
            settings=settings,
        )
        return RouteResponse(profile=profile, decision=decision)

    except Exception as e:
        error_msg = f"Failed to route query: {str(e)}"
        logger.error(error_msg)
        raise HTTPException(status_code=500, detail=error_msg) from e
