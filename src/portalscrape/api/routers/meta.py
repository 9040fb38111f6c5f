from fastapi import APIRouter, Depends

from portalscrape.api.schemas.meta import CapabilitiesOut, StatusOut
from portalscrape.scrapers.registry import ScraperRegistry, get_registry
from portalscrape.settings import Settings, get_settings

router = APIRouter(prefix="/api/v1", tags=["meta"])


@router.get("/status", response_model=StatusOut)
def service_status(settings: Settings = Depends(get_settings)) -> StatusOut:
    """Static identity of this deployment."""
    return StatusOut(
        name=settings.service_name,
        version=settings.version,
        environment=settings.environment,
        canonical_uri=settings.canonical_uri,
        tier=settings.tier,
    )


@router.get("/capabilities", response_model=CapabilitiesOut, response_model_exclude_none=True)
def capabilities(
    settings: Settings = Depends(get_settings),
    registry: ScraperRegistry = Depends(get_registry),
) -> CapabilitiesOut:
    """Portal ids this instance can serve, in registration order."""
    return CapabilitiesOut(
        service=settings.service_name,
        version=settings.version,
        scrapers=registry.list(),
    )
