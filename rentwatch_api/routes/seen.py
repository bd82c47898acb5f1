"""
Seen-set route handlers.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from rentwatch.config import Settings

from ..config import config
from ..database import get_seen, get_seen_count, seen_db_available
from ..deps import get_settings
from ..models import SeenOut, SeenResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["seen"])


@router.get("/seen", response_model=SeenResponse)
async def list_seen(
    settings: Settings = Depends(get_settings),
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    offset: int = Query(0, ge=0)
):
    """Listings already delivered, most recent first."""
    if not seen_db_available(settings.seen_db_path):
        return SeenResponse(total=0, items=[])
    try:
        total = get_seen_count(settings.seen_db_path, settings.seen_namespace)
        rows = get_seen(settings.seen_db_path, settings.seen_namespace, limit, offset)
        return SeenResponse(total=total, items=[SeenOut(**r) for r in rows])

    except Exception as e:
        logger.error(f"Error fetching seen entries: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
