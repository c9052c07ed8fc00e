"""Load prompt templates from YAML and fill their placeholders."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from dailybrief.models import BookmarkSource

logger = logging.getLogger(__name__)

MAP_PLACEHOLDERS = ("batch_summaries",)
CLUSTER_PLACEHOLDERS = (
    "cluster_slug",
    "candidate_titles",
    "cluster_tags",
    "cluster_urgency",
    "cluster_formats",
    "cluster_items",
)
REDUCE_PLACEHOLDERS = (
    "cluster_briefs",
    "digest_date",
    "total_items",
    "audio_count",
    "article_count",
    "spotlight_slug",
)

_SOURCE_NAMES: dict[str, str] = {
    BookmarkSource.YOUTUBE.value: "YouTube Video",
    BookmarkSource.PODCAST.value: "Podcast Episode",
    BookmarkSource.REDDIT.value: "Reddit Post",
    BookmarkSource.TWITTER.value: "Twitter Thread",
    BookmarkSource.LINKEDIN.value: "LinkedIn Article",
    BookmarkSource.BLOG.value: "Blog Post",
    BookmarkSource.WEB.value: "Web Article",
    BookmarkSource.OTHER.value: "Other Content",
}


def format_source_name(source: str) -> str:
    """Human-readable label for a bookmark source tag."""
    return _SOURCE_NAMES.get(str(source).lower(), str(source))


class PromptTemplate:
    """A template whose named ``{placeholders}`` each occur exactly once.

    Substitution is a single literal pass: only the declared placeholders
    are replaced, and text substituted in is never rescanned.
    """

    def __init__(self, name: str, text: str, placeholders: tuple[str, ...]) -> None:
        for key in placeholders:
            count = text.count("{" + key + "}")
            if count != 1:
                raise ValueError(
                    f"Prompt template '{name}' must contain {{{key}}} exactly once "
                    f"(found {count})"
                )
        self.name = name
        self.text = text
        self.placeholders = placeholders
        self._pattern = re.compile(
            "|".join(re.escape("{" + key + "}") for key in placeholders)
        )

    def render(self, **values: Any) -> str:
        missing = [key for key in self.placeholders if key not in values]
        if missing:
            raise KeyError(f"Prompt '{self.name}' missing values for: {', '.join(missing)}")
        return self._pattern.sub(lambda m: str(values[m.group(0)[1:-1]]), self.text)

    def __repr__(self) -> str:
        return f"PromptTemplate(name={self.name!r})"


class PromptSet:
    """The four named prompts the pipeline needs."""

    def __init__(
        self,
        map_prompt: PromptTemplate,
        cluster_prompt: PromptTemplate,
        reduce_prompt: PromptTemplate,
        system: str = "",
    ) -> None:
        self.map = map_prompt
        self.cluster_summary = cluster_prompt
        self.reduce = reduce_prompt
        self.system = system


def load_prompts(path: Path) -> PromptSet:
    """Parse ``prompts.yml`` into a validated :class:`PromptSet`.

    Expected keys: ``system`` (optional), ``map``, ``cluster_summary``,
    ``reduce``.
    """
    with open(path, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    for key in ("map", "cluster_summary", "reduce"):
        if not cfg.get(key):
            raise ValueError(f"Prompt file {path} is missing the '{key}' template")

    prompts = PromptSet(
        map_prompt=PromptTemplate("map", cfg["map"], MAP_PLACEHOLDERS),
        cluster_prompt=PromptTemplate(
            "cluster_summary", cfg["cluster_summary"], CLUSTER_PLACEHOLDERS
        ),
        reduce_prompt=PromptTemplate("reduce", cfg["reduce"], REDUCE_PLACEHOLDERS),
        system=str(cfg.get("system") or "").strip(),
    )
    logger.debug("Loaded prompt templates from %s", path)
    return prompts
