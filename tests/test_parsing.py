"""Unit tests for model-response parsing and field normalisation."""

import logging

import pytest

from dailybrief.errors import MalformedResponseError, PayloadParseError
from dailybrief.models import UrgencyLabel
from dailybrief.parsing import (
    align_or_warn,
    clean_string_list,
    coerce_urgency_score,
    expect_array,
    expect_object,
    extract_json_payload,
    normalize_soundbite,
    normalize_tags,
    resolve_urgency_label,
    slugify,
)


class TestExtractJsonPayload:
    def test_plain_json(self) -> None:
        assert extract_json_payload('[{"a": 1}]') == [{"a": 1}]

    def test_fenced_block(self) -> None:
        text = 'Here you go:\n```json\n{"segment_name": "x"}\n```\nThanks!'
        assert extract_json_payload(text) == {"segment_name": "x"}

    def test_fence_without_language(self) -> None:
        assert extract_json_payload("```\n[1, 2]\n```") == [1, 2]

    def test_leading_prose(self) -> None:
        assert extract_json_payload('Sure! [{"item_number": 1}]') == [{"item_number": 1}]

    def test_first_bracket_wins(self) -> None:
        text = 'Result: {"beats": [1]} trailing words'
        assert extract_json_payload(text) == {"beats": [1]}

    def test_unparseable(self) -> None:
        with pytest.raises(PayloadParseError):
            extract_json_payload("I could not do that, sorry.")

    def test_broken_json(self) -> None:
        with pytest.raises(PayloadParseError):
            extract_json_payload('[{"item_number": 1,')

    def test_parse_error_is_malformed_response(self) -> None:
        assert issubclass(PayloadParseError, MalformedResponseError)


class TestShapeChecks:
    def test_expect_array(self) -> None:
        assert expect_array([1], "Map") == [1]
        with pytest.raises(MalformedResponseError, match="not an array"):
            expect_array({"a": 1}, "Map")

    def test_expect_object(self) -> None:
        assert expect_object({"a": 1}, "Cluster") == {"a": 1}
        with pytest.raises(MalformedResponseError, match="not an object"):
            expect_object([1], "Cluster")


class TestAlignOrWarn:
    def test_match_is_silent(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert list(align_or_warn([1, 2], 2, "Batch 0")) == [1, 2]
        assert not caplog.records

    def test_mismatch_warns_but_keeps_everything(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert list(align_or_warn([1, 2, 3], 2, "Batch 0")) == [1, 2, 3]
        assert "length mismatch" in caplog.text


class TestSlugify:
    def test_basic(self) -> None:
        assert slugify("Market Pulse!") == "market-pulse"

    def test_collapses_separators(self) -> None:
        assert slugify("  AI -- Policy   watch ") == "ai-policy-watch"

    def test_trims_dashes(self) -> None:
        assert slugify("--edge-case--") == "edge-case"

    def test_fallback_used_when_empty(self) -> None:
        assert slugify("", "Tech Stocks Wobble") == "tech-stocks-wobble"

    def test_empty_result_is_general(self) -> None:
        assert slugify("!!!") == "general"
        assert slugify("", "") == "general"


class TestNormalizeTags:
    def test_split_lower_dedupe(self) -> None:
        assert normalize_tags(["Markets, Stocks", "markets", " bonds  yields"]) == [
            "markets",
            "stocks",
            "bonds",
            "yields",
        ]

    def test_missing_or_malformed(self) -> None:
        assert normalize_tags(None) == []
        assert normalize_tags(42) == []

    def test_single_string(self) -> None:
        assert normalize_tags("ai,policy") == ["ai", "policy"]


class TestUrgency:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (5, 5),
            (1, 1),
            (0, 1),
            (-3, 1),
            (9, 5),
            (3.5, 4),
            (2.4, 2),
            ("4", 4),
            ("high", 3),
            (None, 3),
            (float("nan"), 3),
            (float("inf"), 3),
            (True, 3),
            (10**400, 5),
            (-(10**400), 1),
        ],
    )
    def test_score_is_always_clamped(self, raw: object, expected: int) -> None:
        score = coerce_urgency_score(raw)
        assert score == expected
        assert score in {1, 2, 3, 4, 5}

    @pytest.mark.parametrize(
        ("score", "label"),
        [
            (5, UrgencyLabel.IMMEDIATE),
            (4, UrgencyLabel.HIGH),
            (3, UrgencyLabel.WATCH),
            (2, UrgencyLabel.BACKGROUND),
            (1, UrgencyLabel.BACKGROUND),
        ],
    )
    def test_label_derived_from_score(self, score: int, label: UrgencyLabel) -> None:
        assert resolve_urgency_label(None, score) is label
        assert resolve_urgency_label("whenever", score) is label

    def test_synonyms_case_insensitive(self) -> None:
        assert resolve_urgency_label("URGENT", 1) is UrgencyLabel.IMMEDIATE
        assert resolve_urgency_label(" high ", 1) is UrgencyLabel.HIGH
        assert resolve_urgency_label("Medium", 5) is UrgencyLabel.WATCH
        assert resolve_urgency_label("low", 5) is UrgencyLabel.BACKGROUND


class TestSmallNormalisers:
    def test_clean_string_list(self) -> None:
        assert clean_string_list([" a ", "", None, 3, {"x": 1}, "b"]) == ["a", "3", "b"]
        assert clean_string_list("not a list") == []

    def test_soundbite_na(self) -> None:
        assert normalize_soundbite("N/A") == ""
        assert normalize_soundbite(" n/a ") == ""
        assert normalize_soundbite("Traders call it a tantrum") == "Traders call it a tantrum"
        assert normalize_soundbite(None) == ""


def test_oversized_score_from_json_clamps() -> None:
    payload = extract_json_payload('{"urgency_score": ' + "9" * 400 + "}")
    assert coerce_urgency_score(payload["urgency_score"]) == 5
