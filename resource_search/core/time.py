"""UTC datetime utilities.

Timestamps are stored as **naive** UTC datetimes (no tzinfo), compatible with
SQLAlchemy ``DateTime`` columns on both SQLite and PostgreSQL without
``timezone=True``. Everything crossing the HTTP boundary is converted into
that form here.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert an aware datetime to naive UTC. Naive input is assumed to be UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def parse_iso_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix or numeric offset allowed) to naive UTC.

    Raises ValueError for anything that is not a valid timestamp.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty timestamp")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))
