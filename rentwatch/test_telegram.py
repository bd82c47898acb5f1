"""
Tests for caption formatting, payload shapes and the Bot API transport.
"""
import asyncio

from playwright.async_api import Error as PlaywrightError

from rentwatch.models import Listing
from rentwatch.telegram import (
    CAPTION_LIMIT,
    MESSAGE_LIMIT,
    TelegramNotifier,
    TelegramTransport,
    build_caption,
    build_message,
    escape_html,
    fit_escaped,
)


def make_listing(images=(), **kwargs):
    base = dict(
        item_id="42",
        url="https://lalafo.kg/bishkek/kvartiry/arenda-kvartir/42?a=1&b=2",
        title="Квартира <люкс> & вид",
        price=45000,
        rooms=2,
        locality="Бишкек",
        phone="996555123456",
        published_at="2024-05-01",
        description="Тихо & уютно",
        images=list(images),
    )
    base.update(kwargs)
    return Listing(**base)


class FakeResponse:
    def __init__(self, status, body=""):
        self.status = status
        self.ok = 200 <= status < 300
        self._body = body

    async def text(self):
        return self._body


class FakePostContext:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(200, '{"ok": true}')
        self.error = error
        self.posts = []

    async def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({"url": url, "data": data})
        if self.error:
            raise self.error
        return self.response


def test_escape_html():
    assert escape_html("a & b <c> d") == "a &amp; b &lt;c&gt; d"
    assert escape_html("&lt;") == "&amp;lt;"


def test_caption_escapes_text_and_url():
    caption = build_caption(make_listing())

    assert "<b>Квартира &lt;люкс&gt; &amp; вид</b>" in caption
    assert "Тихо &amp; уютно" in caption
    assert 'href="https://lalafo.kg/bishkek/kvartiry/arenda-kvartir/42?a=1&amp;b=2"' in caption
    assert "<b>Цена:</b> 45 000 KGS" in caption
    assert "<b>Комнат:</b> 2 комн." in caption


def test_caption_placeholders_for_missing_fields():
    caption = build_caption(make_listing(price=None, rooms=None, phone=None, description=""))
    assert "<b>Цена:</b> —" in caption
    assert "<b>Комнат:</b> —" in caption
    assert "<b>Телефон:</b> —" in caption
    assert "Описание" not in caption
    assert "\n\n" not in caption


def test_no_images_is_text_message():
    method, payload = build_message(make_listing(), "chat")
    assert method == "sendMessage"
    assert payload["parse_mode"] == "HTML"
    assert payload["chat_id"] == "chat"
    assert "photo" not in payload and "media" not in payload


def test_one_image_is_photo_with_caption():
    method, payload = build_message(make_listing(images=["https://img/1.jpg"]), "chat")
    assert method == "sendPhoto"
    assert payload["photo"] == "https://img/1.jpg"
    assert payload["caption"].startswith("<b>")
    assert payload["parse_mode"] == "HTML"


def test_many_images_caption_only_on_first_item():
    images = ["https://img/1.jpg", "https://img/2.jpg", "https://img/3.jpg"]
    method, payload = build_message(make_listing(images=images), "chat")

    assert method == "sendMediaGroup"
    media = payload["media"]
    assert [m["media"] for m in media] == images
    assert "caption" in media[0] and media[0]["parse_mode"] == "HTML"
    for item in media[1:]:
        assert "caption" not in item
        assert "parse_mode" not in item


def test_media_group_capped_at_ten():
    images = [f"https://img/{i}.jpg" for i in range(14)]
    _, payload = build_message(make_listing(images=images), "chat")
    assert len(payload["media"]) == 10


def test_transport_posts_to_bot_api():
    ctx = FakePostContext()
    ok = asyncio.run(TelegramTransport(ctx, "TOKEN").send("sendMessage", {"text": "hi"}))

    assert ok
    assert ctx.posts[0]["url"] == "https://api.telegram.org/botTOKEN/sendMessage"
    assert ctx.posts[0]["data"] == {"text": "hi"}


def test_transport_rejection_and_network_error_return_false():
    rejected = FakePostContext(response=FakeResponse(400, '{"ok": false}'))
    broken = FakePostContext(error=PlaywrightError("timeout"))

    assert not asyncio.run(TelegramTransport(rejected, "T").send("sendPhoto", {}))
    assert not asyncio.run(TelegramTransport(broken, "T").send("sendPhoto", {}))


def test_notifier_uses_payload_shape():
    ctx = FakePostContext()
    notifier = TelegramNotifier(TelegramTransport(ctx, "T"), "chat")

    assert asyncio.run(notifier.deliver(make_listing(images=["https://img/1.jpg"])))
    assert ctx.posts[0]["url"].endswith("/sendPhoto")


def test_long_description_fits_photo_caption():
    listing = make_listing(images=["https://img/1.jpg"], description="Просторная квартира. " * 75)
    method, payload = build_message(listing, "chat")

    caption = payload["caption"]
    assert method == "sendPhoto"
    assert len(caption) <= CAPTION_LIMIT
    assert caption.endswith('">Открыть объявление</a>')
    assert "…" in caption


def test_long_description_fits_media_group_and_message():
    text = "Тихо & уютно. " * 400
    _, group = build_message(make_listing(images=["a", "b"], description=text), "chat")
    _, message = build_message(make_listing(description=text), "chat")

    assert len(group["media"][0]["caption"]) <= CAPTION_LIMIT
    assert len(message["text"]) <= MESSAGE_LIMIT
    assert len(message["text"]) > CAPTION_LIMIT


def test_short_description_kept_whole():
    caption = build_caption(make_listing(description="Рядом парк"))
    assert "<b>Описание:</b>\nРядом парк\n<a href" in caption


def test_fit_escaped_never_splits_entities():
    assert fit_escaped("a&b", 10) == "a&amp;b"
    assert fit_escaped("ab&cd", 6) == "ab…"
    assert fit_escaped("abcdef", 1) == ""
