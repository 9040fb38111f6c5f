from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portalscrape.api.routers.gaps import router as gaps_router
from portalscrape.api.routers.meta import router as meta_router
from portalscrape.api.routers.scrape import router as scrape_router
from portalscrape.api.schemas.meta import HealthOut
from portalscrape.db.session import init_db
from portalscrape.logging_config import configure_logging
from portalscrape.scrapers.registry import get_registry
from portalscrape.settings import get_settings


@asynccontextmanager
async def lifespan(application: FastAPI):
    init_db()
    get_registry()  # register every plugin before the first request
    yield


def create_app() -> FastAPI:
    """FastAPI application factory with CORS middleware and all routers mounted."""
    settings = get_settings()
    configure_logging(settings.log_dir, settings.log_level)

    # No interactive docs: every route outside the public allow-list requires a token
    application = FastAPI(
        title="Portal Scrape API",
        description="Browser-driven data extraction from portals without an API",
        version=settings.version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @application.get("/health", response_model=HealthOut, tags=["meta"])
    def health_check() -> HealthOut:
        """Liveness check -- returns status ok."""
        return HealthOut(
            status="ok",
            service=settings.service_name,
            version=settings.version,
            timestamp=datetime.now(timezone.utc),
        )

    application.include_router(meta_router)    # /api/v1/status, /api/v1/capabilities
    application.include_router(gaps_router)    # /api/v1/gaps
    application.include_router(scrape_router)  # /api/scrape/{portal_id}

    return application


# Module-level app instance for uvicorn
app = create_app()
