"""
Field extraction from listing HTML.

Each field has an ordered chain of strategies. A strategy is a plain function
``(html) -> Optional[str]``; the chain is walked in order and the first value
that survives cleaning (and parsing, for numeric fields) wins. Later
strategies are never consulted once one has produced a value. The chains live
in ``DEFAULT_STRATEGIES`` so they can be reordered, extended or tested one by
one without touching the interpreter.

Embedded JSON is matched with regexes on the raw page; markup is read through
BeautifulSoup.
"""
import logging
import re
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .models import Listing, OWNER_AGENCY, OWNER_INDIVIDUAL, OWNER_UNKNOWN
from .utils import clean_text, digits_only, safe_number, unique

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Optional[str]]

HTML_PARSER = "html.parser"

_TEL_RE = re.compile(r"^tel:(\+?996[\d\s\-]{9,14})$", re.I)
_AGENCY_RE = re.compile(r"агентств[ао]? недвижимости|риелтор|риэлтор|риэлт|agency|realtor", re.I)
_OWNER_RE = re.compile(r"собственник|хозяин|owner", re.I)


@lru_cache(maxsize=8)
def parse_html(html: str) -> BeautifulSoup:
    """Parse a page once; every markup strategy on the same page reuses the tree."""
    return BeautifulSoup(html, HTML_PARSER)


def regex_strategy(pattern: str, flags: int = 0) -> Strategy:
    """Build a strategy returning the first capture group of ``pattern``."""
    compiled = re.compile(pattern, flags)

    def strategy(html: str) -> Optional[str]:
        m = compiled.search(html)
        return m.group(1).strip() if m else None

    strategy.__name__ = f"regex<{pattern[:40]}>"
    return strategy


def meta_contents(html: str, attr: str, value: str) -> List[str]:
    """Return ``content`` of every <meta> whose ``attr`` equals ``value``, in document order."""
    matcher = re.compile(rf"^{re.escape(value)}$", re.I)
    found = []
    for meta in parse_html(html).find_all("meta", attrs={attr: matcher, "content": True}):
        content = meta["content"].strip()
        if content:
            found.append(content)
    return found


def meta_strategy(attr: str, value: str) -> Strategy:
    """Build a strategy reading a meta tag regardless of attribute order or quoting."""
    def strategy(html: str) -> Optional[str]:
        contents = meta_contents(html, attr, value)
        return contents[0] if contents else None

    strategy.__name__ = f"meta<{attr}={value}>"
    return strategy


def select_strategy(selector: str) -> Strategy:
    """Build a strategy returning the text of the first element matching a CSS selector."""
    def strategy(html: str) -> Optional[str]:
        node = parse_html(html).select_one(selector)
        return node.get_text(" ", strip=True) if node else None

    strategy.__name__ = f"select<{selector}>"
    return strategy


def attr_strategy(attr: str) -> Strategy:
    """Build a strategy returning the value of the first ``attr`` attribute on the page."""
    def strategy(html: str) -> Optional[str]:
        node = parse_html(html).find(attrs={attr: True})
        return node[attr].strip() if node else None

    strategy.__name__ = f"attr<{attr}>"
    return strategy


def labelled_span_strategy(label: str) -> Strategy:
    """Build a strategy reading the <span> right after a span starting with ``label``."""
    def strategy(html: str) -> Optional[str]:
        for span in parse_html(html).find_all("span"):
            if span.get_text(strip=True).startswith(label):
                value = span.find_next_sibling("span")
                return value.get_text(" ", strip=True) if value else None
        return None

    strategy.__name__ = f"label<{label}>"
    return strategy


def tel_link(html: str) -> Optional[str]:
    for a in parse_html(html).find_all("a", href=True):
        m = _TEL_RE.match(a["href"].strip())
        if m:
            return m.group(1)
    return None


DEFAULT_STRATEGIES: Dict[str, List[Strategy]] = {
    "item_id": [
        regex_strategy(r'"ad_id":\s*"(\d+)"'),
        attr_strategy("data-ad-id"),
        regex_strategy(r'"id":\s*(\d+)'),
    ],
    "title": [
        select_strategy("h1"),
        meta_strategy("property", "og:title"),
        meta_strategy("name", "title"),
    ],
    "price": [
        regex_strategy(r'"price":\s*\{\s*"amount":\s*"?([\d\s]+)"?'),
        meta_strategy("itemprop", "price"),
        select_strategy('div[class*="price"] > span'),
    ],
    "locality": [
        regex_strategy(r'"city":\s*"([^"]+)"'),
        select_strategy('span[class*="city"]'),
    ],
    "rooms": [
        regex_strategy(r'"rooms":\s*"?(\d+)"?'),
        regex_strategy(r"(?<!\d)([1-5])\s*ком(?:ната|наты|нат)", re.I),
    ],
    "phone": [
        regex_strategy(r'"phone":\s*"(\+?996\d{9})"'),
        tel_link,
        regex_strategy(r"(?<!\d)(\+?996\d{9})(?!\d)"),
    ],
    "description": [
        select_strategy('div[class*="ad-description"]'),
        meta_strategy("name", "description"),
        meta_strategy("property", "og:description"),
    ],
    "published_at": [
        regex_strategy(r'"created_at":\s*"([^"]+)"'),
        labelled_span_strategy("Опубликовано:"),
        meta_strategy("property", "article:published_time"),
    ],
}

# How each field's raw match is turned into its value; None means "try next".
FIELD_PARSERS: Dict[str, Callable[[Optional[str]], object]] = {
    "item_id": digits_only,
    "title": clean_text,
    "price": safe_number,
    "locality": clean_text,
    "rooms": safe_number,
    "phone": digits_only,
    "description": clean_text,
    "published_at": clean_text,
}


def first_match(strategies: Sequence[Strategy], html: str, parse: Callable = clean_text):
    """Run strategies in order and return the first parsed, non-empty value."""
    for strategy in strategies:
        raw = strategy(html)
        if raw is None:
            continue
        value = parse(raw)
        if value is None or value == "":
            continue
        return value
    return None


def infer_owner(html: str) -> str:
    """
    Classify the seller from the author-info block only.

    Agency phrases alone -> agency, owner phrases alone -> individual. Both or
    neither leave the seller unknown.
    """
    node = parse_html(html).select_one('div[class*="author-info"]')
    block = node.get_text(" ", strip=True) if node else ""
    if not block:
        return OWNER_UNKNOWN
    has_agency = bool(_AGENCY_RE.search(block))
    has_owner = bool(_OWNER_RE.search(block))
    if has_agency and not has_owner:
        return OWNER_AGENCY
    if has_owner and not has_agency:
        return OWNER_INDIVIDUAL
    return OWNER_UNKNOWN


class ListingExtractor:
    """Turns list pages into detail paths and detail pages into listings."""

    def __init__(
        self,
        base_url: str,
        link_prefix: str,
        strategies: Optional[Dict[str, List[Strategy]]] = None,
        link_tail_pattern: str = r"[0-9\-]+",
    ):
        self.base_url = base_url.rstrip("/")
        self.strategies = dict(DEFAULT_STRATEGIES)
        if strategies:
            self.strategies.update(strategies)
        self._link_re = re.compile(re.escape(link_prefix) + link_tail_pattern)

    @classmethod
    def from_settings(cls, settings) -> "ListingExtractor":
        return cls(settings.base_url, settings.link_prefix)

    def extract_links(self, html: str) -> List[str]:
        """Collect detail paths from a list page, first occurrence order, no duplicates."""
        if not html:
            return []
        hrefs = (a["href"].strip() for a in parse_html(html).find_all("a", href=True))
        return unique(href for href in hrefs if self._link_re.fullmatch(href))

    def field(self, name: str, html: str):
        return first_match(self.strategies.get(name, []), html, FIELD_PARSERS.get(name, clean_text))

    def extract_images(self, html: str) -> List[str]:
        urls = [urljoin(self.base_url + "/", u) for u in meta_contents(html, "property", "og:image")]
        return unique(urls)

    def extract_record(self, html: str, path: str) -> Optional[Listing]:
        """Build a Listing from a detail page; None when the page has no ad id."""
        if not html:
            return None

        item_id = self.field("item_id", html)
        if not item_id:
            logger.warning(f"No ad id, skip: {path}")
            return None

        return Listing(
            item_id=item_id,
            url=f"{self.base_url}{path}",
            title=self.field("title", html) or "",
            price=self.field("price", html),
            rooms=self.field("rooms", html),
            locality=self.field("locality", html),
            owner=infer_owner(html),
            published_at=self.field("published_at", html),
            phone=self.field("phone", html),
            images=self.extract_images(html),
            description=self.field("description", html) or "",
        )
