"""Canonical comparison form for resource text.

The same function is applied to titles and descriptions when a resource is
written and to the query term when a search is read, so both sides of every
comparison live in the same normalized space.
"""

import re
import unicodedata

MULTI_SPACE_RE = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    """Decompose accented characters and drop the combining marks ("Café" -> "Cafe")."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: str) -> str:
    """Reduce text to its canonical comparison form.

    Case-folds, strips diacritics, collapses whitespace runs to a single space
    and trims. Total and idempotent: ``normalize(normalize(s)) == normalize(s)``.
    """
    if not text:
        return ""
    # Fold case after decomposition as well: NFKD can surface characters
    # (compatibility forms) that fold differently once decomposed.
    result = strip_diacritics(text.casefold()).casefold()
    result = strip_diacritics(result)
    return MULTI_SPACE_RE.sub(" ", result).strip()


def normalize_optional(text: str | None) -> str | None:
    """normalize() for nullable columns; blank results collapse to None."""
    if text is None:
        return None
    return normalize(text) or None
