from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from portalscrape.api.deps import get_dispatcher, get_scrape_context, require_service_token
from portalscrape.dispatch import Dispatcher
from portalscrape.scrapers.base import ScrapeContext

router = APIRouter(
    prefix="/api/scrape",
    tags=["scrape"],
    dependencies=[Depends(require_service_token)],
)


# ``:path`` so ids containing "/" reach the dispatcher and are rejected with 400
@router.post("/{portal_id:path}")
async def scrape_portal(
    portal_id: str,
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    context: ScrapeContext = Depends(get_scrape_context),
) -> JSONResponse:
    """Run the scraper registered for ``portal_id`` with the JSON request body."""
    outcome = await dispatcher.dispatch(portal_id, await request.body(), context)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
