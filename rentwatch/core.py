"""
Core crawl orchestration: pagination, detail fetches, filtering and delivery.
"""
import logging
from typing import List, Optional, Set

from playwright.async_api import async_playwright

from .classifier import Classifier
from .config import Settings
from .export import save_output_rows
from .extractor import ListingExtractor
from .fetcher import Fetcher
from .models import Listing, RunSummary, FETCH_BLOCKED
from .seen import open_seen_store
from .telegram import TelegramNotifier, TelegramTransport
from .throttle import Throttle
from .utils import now_iso

logger = logging.getLogger(__name__)


async def collect_listings(
    fetcher: Fetcher,
    extractor: ListingExtractor,
    classifier: Classifier,
    throttle: Throttle,
    settings: Settings,
    summary: Optional[RunSummary] = None
) -> List[Listing]:
    """
    Walk list pages 1..settings.pages and collect qualifying listings.

    Each detail path is fetched at most once per run. The run stops as soon
    as ``settings.ads_limit`` listings are collected. Every network step is
    followed by a fixed pause, whether it succeeded or not.
    """
    listings: List[Listing] = []
    visited: Set[str] = set()

    for page in range(1, settings.pages + 1):
        result = await fetcher.fetch_list_page(page)
        if summary is not None:
            summary.pages += 1
        if not result.ok:
            await throttle.pause("blocked")
            continue

        links = extractor.extract_links(result.body)
        logger.info(f">>> Page {page}: found {len(links)} links")

        for path in links:
            if len(listings) >= settings.ads_limit:
                logger.info(f">>> ADS_LIMIT ({settings.ads_limit}) reached, stop collecting")
                return listings
            if path in visited:
                continue
            visited.add(path)

            detail = await fetcher.fetch_detail_page(path)
            if not detail.ok:
                await throttle.pause("blocked" if detail.outcome == FETCH_BLOCKED else "detail")
                continue

            listing = extractor.extract_record(detail.body, path)
            if listing is None:
                await throttle.pause("detail")
                continue

            reason = classifier.rejection_reason(listing)
            if reason:
                logger.debug(f"Skip {listing.item_id}: {reason} ({listing.url})")
                await throttle.pause("detail")
                continue

            listings.append(listing)
            logger.info(
                f"Matched: {listing.item_id} | {listing.title} | {listing.price} | "
                f"{listing.rooms} rooms | {listing.locality} | {listing.url}"
            )
            await throttle.pause("detail")

        await throttle.pause("page")

    return listings


async def deliver_new(
    listings: List[Listing],
    seen,
    notifier,
    throttle: Throttle,
    summary: RunSummary
) -> RunSummary:
    """Send every listing not yet seen; mark seen only after Telegram accepted it."""
    for listing in listings:
        if seen.has_seen(listing.item_id):
            summary.skipped_seen += 1
            continue

        delivered = await notifier.deliver(listing)
        if delivered:
            seen.mark_seen(listing)
            summary.delivered += 1
        else:
            summary.failed += 1

        await throttle.pause("delivery")

    return summary


async def _run_with_context(
    request_context,
    settings: Settings,
    seen,
    notifier,
    throttle: Throttle,
    summary: RunSummary
):
    fetcher = Fetcher(request_context, settings, throttle)
    extractor = ListingExtractor.from_settings(settings)
    classifier = Classifier(settings)

    listings = await collect_listings(fetcher, extractor, classifier, throttle, settings, summary)
    summary.collected = len(listings)
    logger.info(f">>> Total matched ads: {len(listings)}")

    if settings.export_path:
        save_output_rows(listings, settings.export_path)

    if notifier is None:
        transport = TelegramTransport(request_context, settings.bot_token, settings.request_timeout)
        notifier = TelegramNotifier(transport, settings.chat_id)

    await deliver_new(listings, seen, notifier, throttle, summary)


async def run_once(
    settings: Settings,
    request_context=None,
    seen=None,
    notifier=None,
    throttle: Optional[Throttle] = None
) -> RunSummary:
    """
    Run one full crawl-and-deliver pass.

    Raises ConfigError before any network activity when settings are
    incomplete. Collaborators not passed in are created here and released
    when the run ends.
    """
    settings.validate()

    summary = RunSummary(started_at=now_iso())
    logger.info(f">>> Run started at {summary.started_at}")

    throttle = throttle or Throttle.from_settings(settings)
    own_seen = seen is None
    if own_seen:
        seen = open_seen_store(settings.seen_db_path, settings.seen_namespace)

    try:
        if request_context is not None:
            await _run_with_context(request_context, settings, seen, notifier, throttle, summary)
        else:
            async with async_playwright() as p:
                ctx = await p.request.new_context()
                try:
                    await _run_with_context(ctx, settings, seen, notifier, throttle, summary)
                finally:
                    await ctx.dispose()
    finally:
        if own_seen:
            seen.close()

    summary.finished_at = now_iso()
    logger.info(
        f">>> Done: pages={summary.pages}, matched={summary.collected}, "
        f"sent={summary.delivered}, already_seen={summary.skipped_seen}, failed={summary.failed}"
    )
    return summary
