"""
Data models for the rental listings watcher.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


OWNER_INDIVIDUAL = "individual"
OWNER_AGENCY = "agency"
OWNER_UNKNOWN = "unknown"

# Fetch outcomes
FETCH_OK = "ok"
FETCH_NOT_FOUND = "not_found"
FETCH_BLOCKED = "blocked"
FETCH_FAILED = "failed"


@dataclass
class Listing:
    """Represents one classifieds listing extracted from a detail page."""

    # Identity
    item_id: str
    url: str
    title: str = ""

    # Parsed attributes (None means unknown, never zero)
    price: Optional[int] = None
    rooms: Optional[int] = None
    locality: Optional[str] = None
    owner: str = OWNER_UNKNOWN
    published_at: Optional[str] = None
    phone: Optional[str] = None

    # Media and text
    images: List[str] = field(default_factory=list)
    description: str = ""

    def to_row(self) -> Dict:
        """Flatten the listing into a dict suitable for a DataFrame row."""
        return {
            "item_id": self.item_id,
            "title": self.title,
            "price": self.price,
            "rooms": self.rooms,
            "locality": self.locality,
            "owner": self.owner,
            "published_at": self.published_at,
            "phone": self.phone,
            "images": "|".join(self.images) if self.images else "",
            "description": self.description,
            "url": self.url,
        }


@dataclass
class FetchResult:
    """Outcome of one HTTP retrieval, classified for the orchestrator."""

    url: str
    status: int
    outcome: str
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == FETCH_OK and bool(self.body)


@dataclass
class RunSummary:
    """Counters for one crawl-and-deliver run."""

    started_at: str
    finished_at: Optional[str] = None
    pages: int = 0
    collected: int = 0
    delivered: int = 0
    skipped_seen: int = 0
    failed: int = 0
