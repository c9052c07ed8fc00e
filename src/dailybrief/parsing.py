"""Parsing and normalisation helpers for model responses.

Everything the model returns is untrusted: payloads are extracted here,
shape-checked with ``expect_array`` / ``expect_object``, and individual
fields are coerced with the small normalisers below.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Sequence
from typing import Any, TypeVar

from dailybrief.errors import MalformedResponseError, PayloadParseError
from dailybrief.models import UrgencyLabel

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_DASHES_RE = re.compile(r"-+")
_TAG_SPLIT_RE = re.compile(r"[,\s]+")

DEFAULT_SLUG = "general"
DEFAULT_URGENCY = 3

# Lower-cased label synonyms the model tends to produce.
_URGENCY_SYNONYMS: dict[str, UrgencyLabel] = {
    "immediate": UrgencyLabel.IMMEDIATE,
    "urgent": UrgencyLabel.IMMEDIATE,
    "critical": UrgencyLabel.IMMEDIATE,
    "breaking": UrgencyLabel.IMMEDIATE,
    "now": UrgencyLabel.IMMEDIATE,
    "high": UrgencyLabel.HIGH,
    "important": UrgencyLabel.HIGH,
    "priority": UrgencyLabel.HIGH,
    "high priority": UrgencyLabel.HIGH,
    "watch": UrgencyLabel.WATCH,
    "medium": UrgencyLabel.WATCH,
    "moderate": UrgencyLabel.WATCH,
    "monitor": UrgencyLabel.WATCH,
    "background": UrgencyLabel.BACKGROUND,
    "low": UrgencyLabel.BACKGROUND,
    "fyi": UrgencyLabel.BACKGROUND,
    "context": UrgencyLabel.BACKGROUND,
}


# ── JSON extraction ────────────────────────────────────────────────────────


def extract_json_payload(text: str) -> Any:
    """Pull a JSON value out of raw model text.

    Tries, in order: the whole text, the contents of a fenced code block,
    and the text starting at the first ``[`` or ``{``.
    """
    trimmed = (text or "").strip()
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    match = _FENCE_RE.search(trimmed)
    if match:
        try:
            return extract_json_payload(match.group(1))
        except PayloadParseError:
            pass

    starts = [pos for pos in (trimmed.find("["), trimmed.find("{")) if pos != -1]
    if starts:
        snippet = trimmed[min(starts):]
        try:
            # raw_decode tolerates trailing prose after the payload
            payload, _end = json.JSONDecoder().raw_decode(snippet)
            return payload
        except json.JSONDecodeError:
            pass

    raise PayloadParseError("Unable to parse JSON payload from LLM response")


def expect_array(payload: Any, what: str) -> list[Any]:
    if not isinstance(payload, list):
        raise MalformedResponseError(
            f"{what} response was not an array (got {type(payload).__name__})"
        )
    return payload


def expect_object(payload: Any, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"{what} response was not an object (got {type(payload).__name__})"
        )
    return payload


def align_or_warn(
    received: Sequence[T],
    expected: int,
    label: str,
) -> Sequence[T]:
    """Best-effort positional alignment.

    A length mismatch between what the model returned and what was asked
    for is logged and tolerated; every received element is still used in
    order. This is the only place such a mismatch is allowed through.
    """
    if len(received) != expected:
        logger.warning(
            "%s length mismatch, aligning best effort: expected=%d received=%d",
            label,
            expected,
            len(received),
        )
    return received


# ── Field normalisers ──────────────────────────────────────────────────────


def as_text(value: Any) -> str:
    """Coerce an optional scalar to a stripped string."""
    if value is None:
        return ""
    return str(value).strip()


def slugify(value: str, fallback: str = "") -> str:
    """Normalise free text into a cluster key; never returns an empty string."""
    base = (value or "").strip().lower() or (fallback or "").strip().lower()
    slug = _SLUG_STRIP_RE.sub("", base)
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _DASHES_RE.sub("-", slug).strip("-")
    return slug or DEFAULT_SLUG


def normalize_tags(tags: Any) -> list[str]:
    """Split, lower-case and dedupe tags, keeping first-seen order."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, list):
        return []

    seen: dict[str, None] = {}
    for raw in tags:
        if raw is None:
            continue
        for part in _TAG_SPLIT_RE.split(str(raw)):
            tag = part.strip().lower()
            if tag:
                seen.setdefault(tag, None)
    return list(seen)


def clean_string_list(value: Any) -> list[str]:
    """Trimmed, non-empty strings from a list; anything else yields ``[]``."""
    if not isinstance(value, list):
        return []
    cleaned: list[str] = []
    for entry in value:
        if entry is None or isinstance(entry, (dict, list)):
            continue
        text = str(entry).strip()
        if text:
            cleaned.append(text)
    return cleaned


def coerce_urgency_score(value: Any) -> int:
    """Clamp any model-supplied score into 1–5 (default 3)."""
    if isinstance(value, bool):
        number = math.nan
    elif isinstance(value, int):
        # Ints may be too large for a float.
        return max(1, min(5, value))
    elif isinstance(value, float):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except (TypeError, ValueError):
            number = math.nan

    if not math.isfinite(number):
        number = float(DEFAULT_URGENCY)

    # Round half up, not Python's round-half-even.
    rounded = math.floor(number + 0.5)
    return max(1, min(5, rounded))


def resolve_urgency_label(label: Any, score: int) -> UrgencyLabel:
    """Canonical label for *label*, or the one derived from *score*."""
    if isinstance(label, str):
        match = _URGENCY_SYNONYMS.get(label.strip().lower())
        if match is not None:
            return match
    return UrgencyLabel.from_score(score)


def normalize_soundbite(value: Any) -> str:
    text = as_text(value)
    if text.lower() == "n/a":
        return ""
    return text
