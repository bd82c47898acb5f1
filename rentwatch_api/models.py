"""
Pydantic models for API request/response serialization.
"""
from typing import List, Optional
from pydantic import BaseModel


class RunSummaryOut(BaseModel):
    """Result of one crawl-and-deliver run."""
    started_at: str
    finished_at: Optional[str] = None
    pages: int = 0
    collected: int = 0
    delivered: int = 0
    skipped_seen: int = 0
    failed: int = 0


class SeenOut(BaseModel):
    """A listing that was already delivered."""
    item_id: str
    url: Optional[str] = None
    title: Optional[str] = None
    price: Optional[int] = None
    delivered_at: Optional[str] = None


class SeenResponse(BaseModel):
    """Response model for paginated seen entries."""
    total: int
    items: List[SeenOut]
