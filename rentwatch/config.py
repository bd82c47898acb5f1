"""
Runtime configuration for the watcher.

Settings are read from the environment once at startup and then passed to
every component explicitly; nothing below the entrypoints touches os.environ.
"""
import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Mapping, Optional, Tuple


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,*/*;q=0.8"
)
DEFAULT_ACCEPT_LANGUAGE = "ru-RU,ru;q=0.9,en-US;q=0.8,en;q=0.7"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_list(env: Mapping[str, str], name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = env.get(name)
    if raw is None:
        return default
    items = tuple(x.strip() for x in raw.split(",") if x.strip())
    return items or default


def _env_int_set(env: Mapping[str, str], name: str, default: FrozenSet[int]) -> FrozenSet[int]:
    raw = env.get(name)
    if raw is None:
        return default
    values = set()
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            values.add(int(part))
    return frozenset(values) if values else default


@dataclass(frozen=True)
class Settings:
    """All knobs of one watcher instance."""

    # Target site
    base_url: str = "https://lalafo.kg"
    category_path: str = "/bishkek/kvartiry/arenda-kvartir/dolgosrochnaya-arenda-kvartir"
    link_prefix: str = "/bishkek/kvartiry/arenda-kvartir/"

    # Business rules
    locality_variants: Tuple[str, ...] = ("бишкек", "bishkek", "бiшкек")
    max_price: int = 50000
    allowed_rooms: FrozenSet[int] = frozenset({1, 2})

    # Run bounds
    ads_limit: int = 60
    pages: int = 5

    # Throttling, seconds
    detail_delay: float = 2.5
    page_delay: float = 5.0
    blocked_delay: float = 5.0
    delivery_delay: float = 2.5
    min_request_interval: float = 1.0
    request_timeout: float = 30.0

    # Browser identity sent with every request
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    # Telegram
    bot_token: str = field(default="", repr=False)
    chat_id: str = ""

    # Seen-set persistence; empty path disables it
    seen_db_path: str = "data/seen.db"
    seen_namespace: str = "seen_v3"

    # Optional CSV/XLSX export of each run's matches
    export_path: Optional[str] = None

    # Recurring runs inside the HTTP service; 0 disables
    schedule_minutes: int = 30

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        d = cls()
        return cls(
            base_url=env.get("BASE_URL", d.base_url).rstrip("/"),
            category_path=env.get("CATEGORY_PATH", d.category_path),
            link_prefix=env.get("LINK_PREFIX", d.link_prefix),
            locality_variants=_env_list(env, "LOCALITY_VARIANTS", d.locality_variants),
            max_price=_env_int(env, "MAX_PRICE", d.max_price),
            allowed_rooms=_env_int_set(env, "ALLOWED_ROOMS", d.allowed_rooms),
            ads_limit=_env_int(env, "ADS_LIMIT", d.ads_limit),
            pages=_env_int(env, "PAGES", d.pages),
            detail_delay=_env_float(env, "DETAIL_DELAY", d.detail_delay),
            page_delay=_env_float(env, "PAGE_DELAY", d.page_delay),
            blocked_delay=_env_float(env, "BLOCKED_DELAY", d.blocked_delay),
            delivery_delay=_env_float(env, "DELIVERY_DELAY", d.delivery_delay),
            min_request_interval=_env_float(env, "MIN_REQUEST_INTERVAL", d.min_request_interval),
            request_timeout=_env_float(env, "REQUEST_TIMEOUT", d.request_timeout),
            user_agent=env.get("USER_AGENT", d.user_agent),
            accept=env.get("ACCEPT", d.accept),
            accept_language=env.get("ACCEPT_LANGUAGE", d.accept_language),
            bot_token=env.get("TELEGRAM_BOT_TOKEN", "").strip(),
            chat_id=env.get("TELEGRAM_CHAT_ID", "").strip(),
            seen_db_path=env.get("SEEN_DB", d.seen_db_path).strip(),
            seen_namespace=env.get("SEEN_NAMESPACE", d.seen_namespace),
            export_path=env.get("EXPORT_PATH") or None,
            schedule_minutes=_env_int(env, "SCHEDULE_MINUTES", d.schedule_minutes),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> None:
        """Validate configuration before a run starts."""
        if not self.bot_token or not self.chat_id:
            raise ConfigError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set")
        if self.pages < 1:
            raise ConfigError(f"PAGES must be at least 1, got {self.pages}")
        if self.ads_limit < 0:
            raise ConfigError(f"ADS_LIMIT must not be negative, got {self.ads_limit}")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError(f"BASE_URL must be an http(s) origin, got {self.base_url!r}")

    def browser_headers(self) -> dict:
        """Browser-like header set sent with every request to the listing site."""
        return {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }
