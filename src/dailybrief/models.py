"""Domain models used across the pipeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MISSING_SUMMARY = "No summary available"


class BookmarkSource(str, Enum):
    YOUTUBE = "youtube"
    PODCAST = "podcast"
    REDDIT = "reddit"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    BLOG = "blog"
    WEB = "web"
    OTHER = "other"


class UrgencyLabel(str, Enum):
    IMMEDIATE = "Immediate"
    HIGH = "High"
    WATCH = "Watch"
    BACKGROUND = "Background"

    @classmethod
    def from_score(cls, score: int) -> UrgencyLabel:
        """Map a clamped 1–5 score to its label."""
        if score >= 5:
            return cls.IMMEDIATE
        if score == 4:
            return cls.HIGH
        if score == 3:
            return cls.WATCH
        return cls.BACKGROUND


class DigestContentItem(BaseModel):
    """One already-summarised bookmark handed to the digest pipeline.

    Video links (e.g. YouTube) have no type of their own; they are ingested
    with ``content_type="audio"``.
    """

    model_config = ConfigDict(frozen=True)

    bookmark_id: int | str
    content_type: Literal["audio", "article"]
    summary: str = MISSING_SUMMARY
    source: str = BookmarkSource.OTHER.value
    title: str | None = None
    duration: float | None = None  # seconds, audio only
    word_count: int | None = None  # article only
    reading_minutes: float | None = None  # article only
    sentiment: str | None = None
    created_at: datetime | None = None

    @field_validator("summary", mode="before")
    @classmethod
    def _fallback_summary(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return MISSING_SUMMARY
        return value

    @field_validator("source", mode="before")
    @classmethod
    def _source_value(cls, value: object) -> object:
        if isinstance(value, BookmarkSource):
            return value.value
        return value


class DigestNarrativeContext(BaseModel):
    digest_date: str | None = None
    total_items: int | None = None
    audio_count: int | None = None
    article_count: int | None = None


class MapBeat(BaseModel):
    """A structured narrative atom derived from a single content item."""

    item_number: int
    group_key: str
    raw_group_key: str = ""
    segment_title: str = ""
    headline: str = ""
    urgency_score: int = Field(default=3, ge=1, le=5)
    urgency_label: UrgencyLabel = UrgencyLabel.WATCH
    why_it_matters: str = ""
    fast_facts: list[str] = Field(default_factory=list)
    soundbite: str = ""
    format_cue: str = ""
    action_step: str = ""
    forward_signal: str = ""
    tags: list[str] = Field(default_factory=list)
    source_notes: str = ""


class ThemeCluster(BaseModel):
    """Accumulator for beats that share a theme.

    ``tags`` and ``format_cues`` are insertion-ordered sets (dict keys);
    they and ``max_urgency`` only ever grow as beats are added.
    """

    slug: str
    beats: list[MapBeat] = Field(default_factory=list)
    tags: dict[str, None] = Field(default_factory=dict)
    max_urgency: int = 0
    format_cues: dict[str, None] = Field(default_factory=dict)

    def add(self, beat: MapBeat) -> None:
        self.beats.append(beat)
        for tag in beat.tags:
            self.tags.setdefault(tag, None)
        self.max_urgency = max(self.max_urgency, beat.urgency_score)
        if beat.format_cue:
            self.format_cues.setdefault(beat.format_cue, None)

    @property
    def urgency_label(self) -> UrgencyLabel:
        return UrgencyLabel.from_score(self.max_urgency)

    @property
    def lead(self) -> MapBeat:
        """The first beat assigned; title matching compares against it."""
        return self.beats[0]


class ClusterSummary(BaseModel):
    """Narrative brief for one cluster, ready for the reduce phase."""

    model_config = ConfigDict(frozen=True)

    slug: str
    segment_name: str = Field(min_length=1)
    anchor_intro: str = Field(min_length=1)
    essential_points: list[str] = Field(default_factory=list)
    highlight_soundbite: str = ""
    recommended_action: str = ""
    segue: str = ""
    tags: list[str] = Field(default_factory=list)
    max_urgency: int = Field(ge=1, le=5)
    urgency_label: UrgencyLabel
    format_cues: list[str] = Field(default_factory=list)


class Completion(BaseModel):
    """Raw text returned by the completion service."""

    content: str = ""
