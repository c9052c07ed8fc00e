"""Pipeline orchestration — wires batch → map → cluster → summarise → reduce."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from dailybrief import config
from dailybrief.cluster import cluster_beats
from dailybrief.errors import DigestGenerationError
from dailybrief.llm import CompletionService, OpenAICompletionClient
from dailybrief.mapper import MapPhaseAnalyzer
from dailybrief.models import DigestContentItem, DigestNarrativeContext
from dailybrief.prompts import PromptSet, load_prompts
from dailybrief.reduce import ReduceComposer
from dailybrief.summarizer import ClusterSummarizer
from dailybrief.tokens import batch_summaries, get_token_stats

logger = logging.getLogger(__name__)


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def count_formats(items: list[DigestContentItem]) -> tuple[int, int]:
    """Return ``(audio_count, article_count)``."""
    audio = sum(1 for i in items if i.content_type == "audio")
    return audio, len(items) - audio


class MapReduceDigestService:
    """Turns a list of summarised bookmarks into one narrated digest.

    Holds no per-digest state, so one instance may serve several
    ``generate_digest`` calls.
    """

    def __init__(
        self,
        llm: CompletionService,
        prompts: PromptSet | None = None,
        max_tokens_per_batch: int | None = None,
        max_input_tokens: int | None = None,
    ) -> None:
        self._llm = llm
        self._prompts = prompts or load_prompts(config.PROMPTS_PATH)
        self._max_tokens_per_batch = max_tokens_per_batch or config.MAX_TOKENS_PER_BATCH
        self._max_input_tokens = max_input_tokens

        self._mapper = MapPhaseAnalyzer(llm, self._prompts.map, max_input_tokens)
        self._summarizer = ClusterSummarizer(
            llm, self._prompts.cluster_summary, max_input_tokens
        )
        self._composer = ReduceComposer(llm, self._prompts.reduce, max_input_tokens)

    @classmethod
    def from_config(cls, prompts_path: Path | None = None) -> MapReduceDigestService:
        """Build a service wired to the configured OpenAI client."""
        prompts = load_prompts(prompts_path or config.PROMPTS_PATH)
        llm = OpenAICompletionClient(
            provider=config.LLM_PROVIDER,
            api_key=config.LLM_API_KEY,
            model=config.LLM_MODEL,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS,
            system_prompt=prompts.system,
        )
        return cls(
            llm,
            prompts=prompts,
            max_tokens_per_batch=config.MAX_TOKENS_PER_BATCH,
            max_input_tokens=config.MAX_INPUT_TOKENS,
        )

    # ── public ──────────────────────────────────────────────────────────

    def generate_digest(
        self,
        content_items: list[DigestContentItem],
        context: DigestNarrativeContext | None = None,
    ) -> str:
        """Run the full map → cluster → reduce pipeline and return the digest.

        Any stage failure is raised as :class:`DigestGenerationError`; no
        partial digest is ever returned.
        """
        audio_count, article_count = count_formats(content_items)
        context = context or DigestNarrativeContext()
        logger.info(
            "Starting map-reduce digest generation: %d items (audio=%d, articles=%d)",
            len(content_items),
            audio_count,
            article_count,
        )

        try:
            # ── 1. Batch summaries under the token budget ─────────────────
            summaries = [item.summary for item in content_items]
            stats = get_token_stats(summaries)
            logger.info(
                "Prepared %d summaries (~%d tokens)", stats.count, stats.total_tokens
            )
            batches = batch_summaries(summaries, self._max_tokens_per_batch)
            logger.info("Created %d batches for map phase", len(batches))

            # ── 2. Map ────────────────────────────────────────────────────
            beats = self._mapper.run(batches, content_items)

            # ── 3. Cluster ────────────────────────────────────────────────
            clusters = cluster_beats(beats)
            logger.info("Cluster slugs: %s", ", ".join(c.slug for c in clusters))

            # ── 4. Summarise clusters ─────────────────────────────────────
            cluster_summaries = self._summarizer.summarize_all(clusters)

            # ── 5. Reduce ─────────────────────────────────────────────────
            digest = self._composer.compose(
                cluster_summaries,
                DigestNarrativeContext(
                    digest_date=context.digest_date,
                    total_items=(
                        context.total_items
                        if context.total_items is not None
                        else len(content_items)
                    ),
                    audio_count=(
                        context.audio_count
                        if context.audio_count is not None
                        else audio_count
                    ),
                    article_count=(
                        context.article_count
                        if context.article_count is not None
                        else article_count
                    ),
                ),
            )
        except Exception as exc:
            logger.exception("Map-reduce digest generation failed")
            raise DigestGenerationError(
                f"Map-reduce digest generation failed: {exc}"
            ) from exc

        logger.info("Map-reduce digest generation completed (%d chars)", len(digest))
        return digest
