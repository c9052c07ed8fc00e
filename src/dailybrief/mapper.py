"""Map phase — turn batches of item summaries into structured beats."""

from __future__ import annotations

import logging
import math
from typing import Any

from dailybrief.errors import InputStarvationError
from dailybrief.llm import CompletionService, complete
from dailybrief.models import DigestContentItem, MapBeat
from dailybrief.parsing import (
    align_or_warn,
    as_text,
    clean_string_list,
    coerce_urgency_score,
    expect_array,
    extract_json_payload,
    normalize_soundbite,
    normalize_tags,
    resolve_urgency_label,
    slugify,
)
from dailybrief.prompts import PromptTemplate, format_source_name

logger = logging.getLogger(__name__)

_FORMAT_CUES: dict[str, str] = {
    "audio": "Audio highlight",
    "article": "Quick read",
}


def _meta_line(item: DigestContentItem) -> str | None:
    parts: list[str] = []
    if item.content_type == "audio" and item.duration:
        minutes = max(1, math.floor(item.duration / 60 + 0.5))
        parts.append(f"{minutes} min runtime")
    if item.content_type == "article" and item.reading_minutes:
        parts.append(f"{item.reading_minutes:g} min read")
    if item.sentiment:
        parts.append(f"tone: {item.sentiment}")
    return f"Meta: {' · '.join(parts)}" if parts else None


def format_content_items(items: list[DigestContentItem], start_index: int) -> str:
    """Render items as numbered ``[ITEM n]`` blocks for the map prompt.

    Numbers are absolute: *start_index* is the count of items in all
    earlier batches.
    """
    blocks: list[str] = []
    for idx, item in enumerate(items):
        source_name = format_source_name(item.source)
        created = item.created_at.isoformat() if item.created_at else "unknown"
        lines = [
            f"[ITEM {start_index + idx + 1}]",
            f"Type: {'Audio' if item.content_type == 'audio' else 'Article'}",
            f"Title: {item.title or source_name}",
            f"Source: {source_name}",
            f"Captured: {created}",
        ]
        meta = _meta_line(item)
        if meta:
            lines.append(meta)
        lines += ["Summary:", item.summary, "---"]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def parse_beat(
    raw: Any,
    fallback_number: int,
    source_item: DigestContentItem | None = None,
) -> MapBeat:
    """Validate one element of the map response into a :class:`MapBeat`."""
    if not isinstance(raw, dict):
        logger.warning("Map element #%d is not an object; using defaults", fallback_number)
        raw = {}

    item_number = raw.get("item_number")
    if isinstance(item_number, bool) or not (
        isinstance(item_number, int)
        or (isinstance(item_number, float) and math.isfinite(item_number))
    ):
        item_number = fallback_number

    raw_key = as_text(raw.get("group_key"))
    segment_title = as_text(raw.get("segment_title"))
    headline = as_text(raw.get("headline"))
    group_key = slugify(raw_key, segment_title or headline)

    score = coerce_urgency_score(raw.get("urgency_score"))

    format_cue = as_text(raw.get("format_cue"))
    if not format_cue and source_item is not None:
        format_cue = _FORMAT_CUES.get(source_item.content_type, "")

    return MapBeat(
        item_number=int(item_number),
        group_key=group_key,
        raw_group_key=raw_key,
        segment_title=segment_title,
        headline=headline,
        urgency_score=score,
        urgency_label=resolve_urgency_label(raw.get("urgency_label"), score),
        why_it_matters=as_text(raw.get("why_it_matters")),
        fast_facts=clean_string_list(raw.get("fast_facts")),
        soundbite=normalize_soundbite(raw.get("soundbite")),
        format_cue=format_cue,
        action_step=as_text(raw.get("action_step")),
        forward_signal=as_text(raw.get("forward_signal")),
        tags=normalize_tags(raw.get("tags")),
        source_notes=as_text(raw.get("source_notes")),
    )


class MapPhaseAnalyzer:
    """One completion call per batch, strictly in order."""

    def __init__(
        self,
        llm: CompletionService,
        prompt: PromptTemplate,
        max_input_tokens: int | None = None,
    ) -> None:
        self._llm = llm
        self._prompt = prompt
        self._max_input_tokens = max_input_tokens

    def run(
        self,
        batches: list[list[str]],
        items: list[DigestContentItem],
    ) -> list[MapBeat]:
        if not batches:
            raise InputStarvationError("Map phase received no batches; nothing to analyse")

        logger.info("Starting map phase: %d batches", len(batches))
        beats: list[MapBeat] = []
        offset = 0

        for batch_index, batch in enumerate(batches):
            batch_items = items[offset : offset + len(batch)]
            logger.info(
                "Processing batch %d (size=%d, start=%d)", batch_index, len(batch), offset
            )

            prompt = self._prompt.render(
                batch_summaries=format_content_items(batch_items, offset)
            )
            raw = complete(
                self._llm,
                prompt,
                label=f"Map batch {batch_index}",
                max_input_tokens=self._max_input_tokens,
            )
            payload = expect_array(extract_json_payload(raw), "Map phase")

            for idx, raw_beat in enumerate(
                align_or_warn(payload, len(batch), f"Map batch {batch_index}")
            ):
                fallback = offset + idx + 1
                beats.append(
                    parse_beat(raw_beat, fallback, _source_item(raw_beat, fallback, items))
                )

            offset += len(batch)

        logger.info("Map phase produced %d beats", len(beats))
        return beats


def _source_item(
    raw: Any,
    fallback_number: int,
    items: list[DigestContentItem],
) -> DigestContentItem | None:
    """Find the content item a beat describes: by its number, else by position."""
    number = raw.get("item_number") if isinstance(raw, dict) else None
    for candidate in (number, fallback_number):
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            if 1 <= candidate <= len(items):
                return items[candidate - 1]
    return None
