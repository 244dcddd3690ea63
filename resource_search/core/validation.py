"""Input validation and sanitization utilities."""

import re
import unicodedata
from urllib.parse import urlsplit

# Control characters to remove (except newline, tab)
CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# Multiple whitespace pattern
MULTI_WHITESPACE_PATTERN = re.compile(r"\s+")

# Hostname label: letters, digits, hyphens; not starting/ending with a hyphen
_HOST_LABEL_PATTERN = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$", re.IGNORECASE)

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})
MAX_URL_LENGTH = 2048


def normalize_text(text: str | None) -> str | None:
    """
    Normalize free-text input by:
    - Normalizing Unicode to NFC form
    - Removing null bytes and control characters
    - Stripping leading/trailing whitespace

    Newlines inside descriptions are kept. Returns None if input is None.
    """
    if text is None:
        return None

    text = unicodedata.normalize("NFC", text)
    text = CONTROL_CHAR_PATTERN.sub("", text)
    return text.strip()


def normalize_single_line(text: str | None) -> str | None:
    """
    Normalize text for single-line fields such as titles (no newlines allowed).
    """
    if text is None:
        return None

    text = text.replace("\n", " ").replace("\r", " ")
    text = normalize_text(text)
    return MULTI_WHITESPACE_PATTERN.sub(" ", text)


def _is_valid_host(host: str) -> bool:
    if host == "localhost":
        return True
    labels = host.rstrip(".").split(".")
    if len(labels) < 2:
        return False
    return all(_HOST_LABEL_PATTERN.match(label) for label in labels)


def is_valid_url(url: str | None) -> bool:
    """
    Check that a URL is an absolute http(s) URL with a plausible host.

    Accepts domain names (at least one dot), ``localhost`` and IP literals.
    """
    if not url or len(url) > MAX_URL_LENGTH:
        return False
    if MULTI_WHITESPACE_PATTERN.search(url) or CONTROL_CHAR_PATTERN.search(url):
        return False
    try:
        parts = urlsplit(url)
        host = parts.hostname
        # Accessing .port validates the port range
        parts.port
    except ValueError:
        return False
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES or not host:
        return False
    if ":" in host:
        return True  # IPv6 literal, already validated by urlsplit
    if host.replace(".", "").isdigit():
        octets = host.split(".")
        return len(octets) == 4 and all(o and int(o) <= 255 for o in octets)
    return _is_valid_host(host)
