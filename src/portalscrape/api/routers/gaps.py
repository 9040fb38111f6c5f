from fastapi import APIRouter, Depends, HTTPException

from portalscrape.api.deps import get_gap_tracker, require_service_token
from portalscrape.api.schemas.meta import GapsOut
from portalscrape.errors import StoreUnavailableError
from portalscrape.gaps import GapTracker

router = APIRouter(
    prefix="/api/v1",
    tags=["gaps"],
    dependencies=[Depends(require_service_token)],
)


@router.get("/gaps", response_model=GapsOut, response_model_exclude_none=True)
def list_gaps(tracker: GapTracker = Depends(get_gap_tracker)) -> GapsOut:
    """Requested portal ids with no scraper, most requested first."""
    try:
        report = tracker.list_gaps()
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="Gap store unavailable")
    return GapsOut(
        gaps=report.gaps,
        malformed_count=report.malformed_count or None,
    )
