"""Cluster summariser — one narrative brief per theme cluster."""

from __future__ import annotations

import logging
from typing import Any

from dailybrief.errors import MalformedResponseError
from dailybrief.llm import CompletionService, complete
from dailybrief.models import ClusterSummary, MapBeat, ThemeCluster
from dailybrief.parsing import (
    as_text,
    clean_string_list,
    expect_object,
    extract_json_payload,
    normalize_soundbite,
)
from dailybrief.prompts import PromptTemplate

logger = logging.getLogger(__name__)


def candidate_titles(cluster: ThemeCluster) -> list[str]:
    """Distinct segment titles and headlines across the cluster, in order."""
    seen: dict[str, None] = {}
    for beat in cluster.beats:
        for title in (beat.segment_title, beat.headline):
            if title:
                seen.setdefault(title, None)
    return list(seen)


def format_urgency(label: str, score: int) -> str:
    return f"{label} ({score}/5)"


def _beat_block(beat: MapBeat) -> str:
    facts = "\n".join(f"  • {fact}" for fact in beat.fast_facts) or "  • (fact missing)"
    return (
        f"Item {beat.item_number}:\n"
        f"  Urgency: {format_urgency(beat.urgency_label.value, beat.urgency_score)}\n"
        f"  Segment: {beat.segment_title}\n"
        f"  Headline: {beat.headline}\n"
        f"  Why it matters: {beat.why_it_matters}\n"
        f"  Fast facts:\n{facts}\n"
        f"  Soundbite: {beat.soundbite or 'n/a'}\n"
        f"  Action: {beat.action_step}\n"
        f"  Forward signal: {beat.forward_signal}\n"
        f"  Format: {beat.format_cue}\n"
        f"  Tags: {', '.join(beat.tags) or 'none'}\n"
        f"  Source: {beat.source_notes}"
    )


def build_cluster_prompt(prompt: PromptTemplate, cluster: ThemeCluster) -> str:
    return prompt.render(
        cluster_slug=cluster.slug,
        candidate_titles=" | ".join(candidate_titles(cluster)) or cluster.slug,
        cluster_tags=", ".join(cluster.tags) or "general",
        cluster_urgency=format_urgency(cluster.urgency_label.value, cluster.max_urgency),
        cluster_formats=" | ".join(cluster.format_cues) or "mixed formats",
        cluster_items="\n\n".join(_beat_block(b) for b in cluster.beats),
    )


def parse_cluster_summary(payload: Any, cluster: ThemeCluster) -> ClusterSummary:
    """Validate a cluster-summary payload; name and intro are mandatory."""
    data = expect_object(payload, f"Cluster summary ({cluster.slug})")

    segment_name = as_text(data.get("segment_name"))
    anchor_intro = as_text(data.get("anchor_intro"))
    if not segment_name or not anchor_intro:
        missing = [
            field
            for field, value in (("segment_name", segment_name), ("anchor_intro", anchor_intro))
            if not value
        ]
        raise MalformedResponseError(
            f"Cluster summary missing fields for slug {cluster.slug}: {', '.join(missing)}"
        )

    return ClusterSummary(
        slug=cluster.slug,
        segment_name=segment_name,
        anchor_intro=anchor_intro,
        essential_points=clean_string_list(data.get("essential_points")),
        highlight_soundbite=normalize_soundbite(data.get("highlight_soundbite")),
        recommended_action=as_text(data.get("recommended_action")),
        segue=as_text(data.get("segue")),
        tags=list(cluster.tags),
        max_urgency=cluster.max_urgency,
        urgency_label=cluster.urgency_label,
        format_cues=list(cluster.format_cues),
    )


class ClusterSummarizer:
    """Summarise clusters one at a time, in cluster order."""

    def __init__(
        self,
        llm: CompletionService,
        prompt: PromptTemplate,
        max_input_tokens: int | None = None,
    ) -> None:
        self._llm = llm
        self._prompt = prompt
        self._max_input_tokens = max_input_tokens

    def summarize(self, cluster: ThemeCluster) -> ClusterSummary:
        raw = complete(
            self._llm,
            build_cluster_prompt(self._prompt, cluster),
            label=f"Cluster summary ({cluster.slug})",
            max_input_tokens=self._max_input_tokens,
        )
        return parse_cluster_summary(extract_json_payload(raw), cluster)

    def summarize_all(self, clusters: list[ThemeCluster]) -> list[ClusterSummary]:
        summaries: list[ClusterSummary] = []
        for index, cluster in enumerate(clusters):
            logger.info(
                "Summarising cluster %d/%d: %s (%d beats)",
                index + 1,
                len(clusters),
                cluster.slug,
                len(cluster.beats),
            )
            summaries.append(self.summarize(cluster))
        return summaries
