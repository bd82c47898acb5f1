"""
Rental listings watcher package.
"""
from .models import Listing, FetchResult, RunSummary
from .config import Settings, ConfigError
from .core import run_once, collect_listings, deliver_new
from .extractor import ListingExtractor
from .classifier import Classifier
from .seen import open_seen_store, NullSeenStore, SqliteSeenStore
from .telegram import TelegramNotifier, TelegramTransport
from .throttle import Throttle
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "Listing",
    "FetchResult",
    "RunSummary",
    "Settings",
    "ConfigError",
    "run_once",
    "collect_listings",
    "deliver_new",
    "ListingExtractor",
    "Classifier",
    "open_seen_store",
    "NullSeenStore",
    "SqliteSeenStore",
    "TelegramNotifier",
    "TelegramTransport",
    "Throttle",
    "init_logger",
    "now_iso"
]
