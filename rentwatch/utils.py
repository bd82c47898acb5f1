"""
Utility functions for text processing, number parsing, and logging.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional


def init_logger(
    name: str = "rentwatch",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "rentwatch.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def safe_number(text: Optional[str]) -> Optional[int]:
    """
    Parse an integer from free text by dropping every non-digit character.

    "45 000 KGS" -> 45000. Text without digits yields None, never 0.
    """
    if not text:
        return None
    digits = re.sub(r"\D", "", text)
    if not digits:
        return None
    try:
        return int(digits)
    except ValueError:
        return None


def digits_only(text: Optional[str]) -> Optional[str]:
    """Keep only the digits of an id or phone-like string."""
    if not text:
        return None
    digits = re.sub(r"\D", "", text)
    return digits or None


def unique(items: Iterable[str]) -> List[str]:
    """Remove duplicates while preserving first-seen order."""
    uniq, seen = [], set()
    for x in items:
        if x not in seen:
            uniq.append(x)
            seen.add(x)
    return uniq
