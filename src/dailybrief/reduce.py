"""Reduce phase — compose ranked cluster briefs into the final digest."""

from __future__ import annotations

import logging

from dailybrief.errors import InputStarvationError
from dailybrief.llm import CompletionService, complete
from dailybrief.models import ClusterSummary, DigestNarrativeContext
from dailybrief.prompts import PromptTemplate
from dailybrief.rank import rank

logger = logging.getLogger(__name__)

DEFAULT_DIGEST_DATE = "Today"


def format_cluster_brief(position: int, summary: ClusterSummary) -> str:
    points = "\n".join(f"- {p}" for p in summary.essential_points) or "-"
    return (
        f"Cluster {position} ({summary.slug})\n"
        f"Segment: {summary.segment_name}\n"
        f"Urgency: {summary.urgency_label.value} ({summary.max_urgency}/5)\n"
        f"Formats: {' | '.join(summary.format_cues) or 'mixed formats'}\n"
        f"Anchor intro: {summary.anchor_intro}\n"
        f"Essential points:\n{points}\n"
        f"Soundbite: {summary.highlight_soundbite}\n"
        f"Recommended action: {summary.recommended_action}\n"
        f"Segue: {summary.segue}\n"
        f"Tags: {', '.join(summary.tags) or 'general'}"
    )


def build_reduce_prompt(
    prompt: PromptTemplate,
    summaries: list[ClusterSummary],
    context: DigestNarrativeContext,
) -> str:
    """Render the reduce prompt; *summaries* must already be ranked."""
    briefs = "\n\n".join(
        format_cluster_brief(idx + 1, s) for idx, s in enumerate(summaries)
    )
    total = context.total_items if context.total_items is not None else len(summaries)
    return prompt.render(
        cluster_briefs=briefs,
        digest_date=context.digest_date or DEFAULT_DIGEST_DATE,
        total_items=total,
        audio_count=context.audio_count or 0,
        article_count=context.article_count or 0,
        spotlight_slug=summaries[0].slug,
    )


class ReduceComposer:
    """Single completion call; its raw text is the digest."""

    def __init__(
        self,
        llm: CompletionService,
        prompt: PromptTemplate,
        max_input_tokens: int | None = None,
    ) -> None:
        self._llm = llm
        self._prompt = prompt
        self._max_input_tokens = max_input_tokens

    def compose(
        self,
        summaries: list[ClusterSummary],
        context: DigestNarrativeContext | None = None,
    ) -> str:
        if not summaries:
            raise InputStarvationError("No cluster summaries available for reduction")

        logger.info("Starting reduce phase: %d clusters", len(summaries))
        ranked = rank(summaries)
        prompt = build_reduce_prompt(
            self._prompt, ranked, context or DigestNarrativeContext()
        )
        return complete(
            self._llm,
            prompt,
            label="Reduce phase",
            max_input_tokens=self._max_input_tokens,
        )
