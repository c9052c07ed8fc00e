"""Shared fixtures: a scripted completion service and minimal prompts."""

from __future__ import annotations

import json
from typing import Any

import pytest

from dailybrief.models import Completion
from dailybrief.prompts import (
    CLUSTER_PLACEHOLDERS,
    MAP_PLACEHOLDERS,
    REDUCE_PLACEHOLDERS,
    PromptSet,
    PromptTemplate,
)

MAP_TEXT = "MAP_PROMPT {batch_summaries}"
CLUSTER_TEXT = (
    "CLUSTER_PROMPT slug:{cluster_slug} titles:{candidate_titles} "
    "tags:{cluster_tags} urgency:{cluster_urgency} formats:{cluster_formats} "
    "items:{cluster_items}"
)
REDUCE_TEXT = (
    "REDUCE {cluster_briefs} ## TL;DR :: {digest_date} :: {total_items} :: "
    "{audio_count} :: {article_count} :: {spotlight_slug}"
)


class ScriptedLLM:
    """Returns canned responses in order and records every prompt."""

    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.prompts: list[str] = []

    def invoke(self, prompt: str) -> Completion:
        self.prompts.append(prompt)
        if not self._responses:
            raise AssertionError("Unexpected completion call")
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        if not isinstance(nxt, str):
            nxt = json.dumps(nxt)
        return Completion(content=nxt)

    @property
    def calls(self) -> int:
        return len(self.prompts)


@pytest.fixture
def scripted_llm() -> type[ScriptedLLM]:
    return ScriptedLLM


@pytest.fixture
def prompts() -> PromptSet:
    return PromptSet(
        map_prompt=PromptTemplate("map", MAP_TEXT, MAP_PLACEHOLDERS),
        cluster_prompt=PromptTemplate("cluster_summary", CLUSTER_TEXT, CLUSTER_PLACEHOLDERS),
        reduce_prompt=PromptTemplate("reduce", REDUCE_TEXT, REDUCE_PLACEHOLDERS),
    )
