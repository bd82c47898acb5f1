"""
Run trigger route handlers.
"""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from rentwatch.config import ConfigError

from ..deps import get_coordinator
from ..models import RunSummaryOut
from ..runner import RunCoordinator, RunInProgress

logger = logging.getLogger(__name__)
router = APIRouter(tags=["runs"])


@router.get("/", response_class=PlainTextResponse)
async def alive():
    """Liveness probe."""
    return "alive\n"


@router.api_route("/run", methods=["GET", "POST"], response_model=RunSummaryOut)
async def trigger_run(coordinator: RunCoordinator = Depends(get_coordinator)):
    """Run one crawl-and-deliver pass and return its counters."""
    try:
        summary = await coordinator.trigger()
        return RunSummaryOut(**asdict(summary))

    except RunInProgress:
        raise HTTPException(status_code=409, detail="Run already in progress")
    except ConfigError as e:
        logger.error(f"Run aborted: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Run failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/runs/last", response_model=RunSummaryOut)
async def last_run(coordinator: RunCoordinator = Depends(get_coordinator)):
    """Counters of the most recent completed run."""
    if coordinator.last_summary is None:
        raise HTTPException(status_code=404, detail="No run completed yet")
    return RunSummaryOut(**asdict(coordinator.last_summary))
