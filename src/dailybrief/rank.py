"""Urgency ordering for cluster summaries ahead of the reduce phase."""

from __future__ import annotations

import logging

from dailybrief.models import ClusterSummary

logger = logging.getLogger(__name__)


def rank(summaries: list[ClusterSummary]) -> list[ClusterSummary]:
    """Sort summaries by peak urgency, highest first.

    The sort is stable, so equally urgent clusters keep their cluster order.
    """
    ranked = sorted(summaries, key=lambda s: s.max_urgency, reverse=True)
    logger.info(
        "Ranked %d clusters; spotlight=%s",
        len(ranked),
        ranked[0].slug if ranked else "-",
    )
    return ranked
