"""
HTTP retrieval of list and detail pages through a Playwright request context.
"""
import logging

from playwright.async_api import Error as PlaywrightError

from .config import Settings
from .models import FetchResult, FETCH_OK, FETCH_NOT_FOUND, FETCH_BLOCKED, FETCH_FAILED
from .throttle import Throttle

logger = logging.getLogger(__name__)

BLOCKED_STATUSES = (403, 429)


def classify_status(status: int) -> str:
    """Map an HTTP status code to a fetch outcome."""
    if status in BLOCKED_STATUSES:
        return FETCH_BLOCKED
    if status == 404:
        return FETCH_NOT_FOUND
    if 200 <= status < 300:
        return FETCH_OK
    return FETCH_FAILED


class Fetcher:
    """
    Fetches pages from the listing site.

    ``request_context`` is a Playwright ``APIRequestContext``. Every request
    carries the browser identity headers from settings and waits on the
    throttle first. Nothing here retries; a bad response is classified,
    logged and handed back with an empty body.
    """

    def __init__(self, request_context, settings: Settings, throttle: Throttle):
        self._ctx = request_context
        self._settings = settings
        self._throttle = throttle
        self._headers = settings.browser_headers()
        self._timeout_ms = settings.request_timeout * 1000

    def list_page_url(self, page: int) -> str:
        return f"{self._settings.base_url}{self._settings.category_path}?page={page}"

    def detail_url(self, path: str) -> str:
        return f"{self._settings.base_url}{path}"

    async def fetch_list_page(self, page: int) -> FetchResult:
        url = self.list_page_url(page)
        logger.info(f">>> Fetch page: {url}")
        return await self._get(url, kind="page")

    async def fetch_detail_page(self, path: str) -> FetchResult:
        url = self.detail_url(path)
        logger.info(f">>> Fetch ad: {url}")
        return await self._get(url, kind="ad")

    async def _get(self, url: str, kind: str) -> FetchResult:
        await self._throttle.acquire()
        try:
            resp = await self._ctx.get(url, headers=self._headers, timeout=self._timeout_ms)
        except PlaywrightError as e:
            logger.warning(f"Request failed for {kind} {url}: {e}")
            return FetchResult(url=url, status=0, outcome=FETCH_FAILED)

        status = resp.status
        outcome = classify_status(status)

        if outcome == FETCH_BLOCKED:
            logger.info(f"Got {status} from site, skip: {url}")
            return FetchResult(url=url, status=status, outcome=outcome)
        if outcome == FETCH_NOT_FOUND:
            logger.info(f"{kind.capitalize()} {status}, skip: {url}")
            return FetchResult(url=url, status=status, outcome=outcome)
        if outcome == FETCH_FAILED:
            logger.warning(f"Failed to fetch {kind}: HTTP {status} {url}")
            return FetchResult(url=url, status=status, outcome=outcome)

        try:
            body = await resp.text()
        except PlaywrightError as e:
            logger.warning(f"Failed to read body of {kind} {url}: {e}")
            return FetchResult(url=url, status=status, outcome=FETCH_FAILED)

        return FetchResult(url=url, status=status, outcome=FETCH_OK, body=body)
