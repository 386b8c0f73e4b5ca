import logging

from fastapi import APIRouter, HTTPException, Request

from torblock.middleware import TorBlock
from torblock.models import RefreshResponse, RelayListStatus

router = APIRouter()
logger = logging.getLogger(__name__)


def _torblock(request: Request) -> TorBlock:
    return request.app.state.torblock


@router.get("/health", response_model=RelayListStatus)
def health(request: Request):
    """
    Report the state of the relay list. Does NOT contact the listing source.

    Status semantics:
      ok       — a list is loaded and the last refresh succeeded
      degraded — a list is loaded but the last refresh failed (stale list)
      empty    — no list yet; every request is currently allowed through
    """
    return _torblock(request).status()


@router.post("/refresh", response_model=RefreshResponse, status_code=202)
async def manual_refresh(request: Request):
    """
    Triggers an immediate fetch of the exit-address listing.

    Returns 202 Accepted immediately; the refresh runs in the background.
    Returns 409 Conflict if a refresh is already in progress.
    """
    result = _torblock(request).scheduler.trigger()

    if result["status"] == "conflict":
        raise HTTPException(status_code=409, detail=result["message"])

    logger.info("Manual refresh triggered")
    return RefreshResponse(status=result["status"], message=result["message"])
