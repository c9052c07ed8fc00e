"""Digest date window — which captured items belong to which day's digest."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta

from dailybrief.models import DigestContentItem

logger = logging.getLogger(__name__)


def get_digest_date_range(
    reference: datetime | None = None,
) -> tuple[datetime, datetime, date]:
    """Return ``(start, end, digest_date)`` for the day before *reference*.

    ``start`` is 00:00:00 and ``end`` is 23:59:59.999999 of that day, in
    the timezone of *reference* (UTC when omitted).
    """
    now = reference or datetime.now(UTC)
    digest_date = (now - timedelta(days=1)).date()
    start = datetime.combine(digest_date, time.min, tzinfo=now.tzinfo)
    end = datetime.combine(digest_date, time.max, tzinfo=now.tzinfo)
    return start, end, digest_date


def format_digest_date(value: date | datetime) -> str:
    """``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_digest_date(value: str) -> date:
    return date.fromisoformat(value.strip())


def window_for_date(digest_date: date) -> tuple[datetime, datetime]:
    """UTC day boundaries for an explicit digest date."""
    return (
        datetime.combine(digest_date, time.min, tzinfo=UTC),
        datetime.combine(digest_date, time.max, tzinfo=UTC),
    )


def items_in_window(
    items: list[DigestContentItem],
    start: datetime,
    end: datetime,
) -> list[DigestContentItem]:
    """Keep items captured within ``[start, end]``, preserving order.

    Naive timestamps are treated as UTC. Items without a timestamp are
    dropped.
    """
    if start.tzinfo is None:
        start = start.replace(tzinfo=UTC)
    if end.tzinfo is None:
        end = end.replace(tzinfo=UTC)

    kept: list[DigestContentItem] = []
    for item in items:
        if item.created_at is None:
            continue
        captured = item.created_at
        if captured.tzinfo is None:
            captured = captured.replace(tzinfo=UTC)
        if start <= captured <= end:
            kept.append(item)

    logger.info(
        "Window %s → %s: %d of %d items", start.isoformat(), end.isoformat(), len(kept), len(items)
    )
    return kept
