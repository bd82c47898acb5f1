"""
Telegram delivery: caption formatting, payload shapes and the Bot API call.
"""
import logging
from typing import Dict, List, Tuple

from playwright.async_api import Error as PlaywrightError

from .models import Listing

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
MEDIA_GROUP_LIMIT = 10
CAPTION_LIMIT = 1024
MESSAGE_LIMIT = 4096
TITLE_LIMIT = 256
PLACEHOLDER = "—"
ELLIPSIS = "…"


def escape_html(text: str) -> str:
    """Escape the characters Telegram's HTML parse mode treats as markup."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def fit_escaped(text: str, budget: int) -> str:
    """
    Escape ``text`` and shorten it to at most ``budget`` characters.

    Cuts happen between source characters, so an entity like ``&amp;`` is
    kept whole or dropped whole. A shortened value ends with an ellipsis.
    """
    escaped = escape_html(text)
    if len(escaped) <= budget:
        return escaped
    room = budget - len(ELLIPSIS)
    if room <= 0:
        return ""
    out, used = [], 0
    for ch in text:
        piece = escape_html(ch)
        if used + len(piece) > room:
            break
        out.append(piece)
        used += len(piece)
    return "".join(out).rstrip() + ELLIPSIS


def format_price(price) -> str:
    if price is None:
        return PLACEHOLDER
    return f"{price:,}".replace(",", " ") + " KGS"


def build_caption(listing: Listing, limit: int = CAPTION_LIMIT) -> str:
    """
    Render the HTML caption for a listing; every inserted value is escaped.

    The description is shortened so the whole caption fits in ``limit``
    characters. The link line is always kept.
    """
    title = fit_escaped(listing.title or "", TITLE_LIMIT)
    rooms = f"{listing.rooms} комн." if listing.rooms is not None else PLACEHOLDER

    head = [
        f"<b>{title}</b>",
        f"<b>Цена:</b> {format_price(listing.price)}",
        f"<b>Комнат:</b> {rooms}",
        f"<b>Город:</b> {escape_html(listing.locality or PLACEHOLDER)}",
        f"<b>Телефон:</b> {escape_html(listing.phone or PLACEHOLDER)}",
        f"<b>Опубликовано:</b> {escape_html(listing.published_at or PLACEHOLDER)}",
    ]
    link = f'<a href="{escape_html(listing.url)}">Открыть объявление</a>'

    lines = head
    if listing.description:
        label = "<b>Описание:</b>\n"
        # one newline before the description block, one before the link
        budget = limit - len("\n".join(head + [link])) - len(label) - 1
        desc = fit_escaped(listing.description, budget)
        if desc:
            lines = head + [label + desc]
    return "\n".join(lines + [link])


def build_message(listing: Listing, chat_id: str) -> Tuple[str, Dict]:
    """
    Pick the Bot API method and payload for a listing.

    No images -> sendMessage, one image -> sendPhoto with caption, more ->
    sendMediaGroup where only the first item carries the caption.
    """
    if not listing.images:
        return "sendMessage", {
            "chat_id": chat_id,
            "text": build_caption(listing, MESSAGE_LIMIT),
            "parse_mode": "HTML",
            "disable_web_page_preview": False,
        }

    caption = build_caption(listing, CAPTION_LIMIT)

    if len(listing.images) == 1:
        return "sendPhoto", {
            "chat_id": chat_id,
            "photo": listing.images[0],
            "caption": caption,
            "parse_mode": "HTML",
        }

    media: List[Dict] = []
    for idx, url in enumerate(listing.images[:MEDIA_GROUP_LIMIT]):
        item = {"type": "photo", "media": url}
        if idx == 0:
            item["caption"] = caption
            item["parse_mode"] = "HTML"
        media.append(item)
    return "sendMediaGroup", {"chat_id": chat_id, "media": media}


class TelegramTransport:
    """Posts JSON payloads to the Bot API through a Playwright request context."""

    def __init__(self, request_context, bot_token: str, timeout: float = 30.0):
        self._ctx = request_context
        self._token = bot_token
        self._timeout_ms = timeout * 1000

    async def send(self, method: str, payload: Dict) -> bool:
        url = f"{TELEGRAM_API}/bot{self._token}/{method}"
        try:
            resp = await self._ctx.post(
                url,
                data=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout_ms,
            )
        except PlaywrightError as e:
            logger.error(f"Telegram request {method} failed: {e}")
            return False

        if not resp.ok:
            try:
                body = await resp.text()
            except PlaywrightError:
                body = ""
            logger.error(f"Telegram error {resp.status} on {method}: {body[:500]}")
            return False
        return True


class TelegramNotifier:
    """Delivery driver: formats a listing and reports whether Telegram accepted it."""

    def __init__(self, transport: TelegramTransport, chat_id: str):
        self.transport = transport
        self.chat_id = chat_id

    async def deliver(self, listing: Listing) -> bool:
        method, payload = build_message(listing, self.chat_id)
        ok = await self.transport.send(method, payload)
        if ok:
            logger.info(f">>> Sent {listing.item_id} via {method}")
        else:
            logger.warning(f"Delivery rejected for {listing.item_id} ({listing.url})")
        return ok
