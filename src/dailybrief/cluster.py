"""Group map beats into themed clusters by slug, tag, and title similarity."""

from __future__ import annotations

import logging
import re

from dailybrief.models import MapBeat, ThemeCluster

logger = logging.getLogger(__name__)

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")

# A beat joins an existing cluster only at or above this combined score.
MERGE_THRESHOLD = 0.5

# Tokens this short ("the", "and", "ai") say little about the topic.
_MIN_TOKEN_LEN = 4


def _title_tokens(value: str) -> set[str]:
    return {
        tok for tok in _TOKEN_SPLIT_RE.split(value.lower()) if len(tok) >= _MIN_TOKEN_LEN
    }


def term_overlap(a: str, b: str) -> float:
    """Jaccard similarity over the meaningful tokens of two titles."""
    tokens_a = _title_tokens(a)
    tokens_b = _title_tokens(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def tag_score(beat_tags: set[str], cluster_tags: set[str]) -> float:
    """Shared tags relative to the smaller tag set."""
    if not beat_tags or not cluster_tags:
        return 0.0
    return len(beat_tags & cluster_tags) / min(len(beat_tags), len(cluster_tags))


def title_score(beat: MapBeat, cluster: ThemeCluster) -> float:
    lead = cluster.lead
    return max(
        term_overlap(beat.segment_title, lead.segment_title),
        term_overlap(beat.headline, lead.headline),
    )


def _best_match(beat: MapBeat, clusters: list[ThemeCluster]) -> ThemeCluster | None:
    """Highest-scoring cluster at or above the threshold; earliest wins ties."""
    beat_tags = set(beat.tags)
    best: ThemeCluster | None = None
    best_score = 0.0

    for cluster in clusters:
        combined = max(
            tag_score(beat_tags, set(cluster.tags)),
            title_score(beat, cluster),
        )
        if combined >= MERGE_THRESHOLD and (best is None or combined > best_score):
            best, best_score = cluster, combined

    if best is not None:
        logger.debug(
            "Beat %d (%s) joins cluster %s (score=%.2f)",
            beat.item_number,
            beat.group_key,
            best.slug,
            best_score,
        )
    return best


def cluster_beats(beats: list[MapBeat]) -> list[ThemeCluster]:
    """Group beats into theme clusters, in first-seen order.

    Priority:
    1. A slug already routed to a cluster → that cluster
    2. Best tag / title similarity match ≥ ``MERGE_THRESHOLD``
    3. A new cluster keyed by the beat's slug
    """
    clusters: list[ThemeCluster] = []
    by_slug: dict[str, ThemeCluster] = {}

    for beat in beats:
        slug = beat.group_key
        cluster = by_slug.get(slug)

        if cluster is None:
            cluster = _best_match(beat, clusters)
            if cluster is None:
                cluster = ThemeCluster(slug=slug)
                clusters.append(cluster)
            # Later beats with this slug go straight to the same cluster.
            by_slug[slug] = cluster

        cluster.add(beat)

    logger.info("Clustered %d beats into %d themes", len(beats), len(clusters))
    return clusters
