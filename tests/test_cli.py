"""Tests for the ``python -m dailybrief`` entry-point."""

import json
from pathlib import Path

import pytest

from dailybrief import __main__ as cli
from dailybrief import config
from dailybrief.pipeline import MapReduceDigestService


def _write_items(tmp_path: Path) -> Path:
    path = tmp_path / "items.json"
    path.write_text(
        json.dumps(
            [
                {
                    "bookmark_id": 1,
                    "content_type": "article",
                    "summary": "x" * 400,
                    "source": "blog",
                    "created_at": "2025-01-15T10:00:00Z",
                },
                {
                    "bookmark_id": 2,
                    "content_type": "audio",
                    "summary": "y" * 400,
                    "source": "podcast",
                    "created_at": "2025-01-14T10:00:00Z",
                },
            ]
        )
    )
    return path


class TestPlan:
    def test_prints_batches(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = _write_items(tmp_path)
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["plan", "--input", str(path), "--budget", "150"])
        assert excinfo.value.code == 0

        out = capsys.readouterr().out
        assert "Items:            2" in out
        assert "total=200" in out
        assert "Batches:          2" in out


class TestRun:
    def test_requires_api_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "LLM_API_KEY", "")
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["run", "--input", str(_write_items(tmp_path)), "--date", "2025-01-15"])
        assert excinfo.value.code == 1

    def test_writes_digest(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        scripted_llm,
        prompts,
    ) -> None:
        llm = scripted_llm(
            [
                [{"item_number": 1, "group_key": "solo", "tags": ["x"]}],
                {"segment_name": "Solo", "anchor_intro": "Only one item today."},
                "The digest",
            ]
        )
        monkeypatch.setattr(config, "LLM_API_KEY", "key")
        monkeypatch.setattr(
            MapReduceDigestService,
            "from_config",
            classmethod(lambda cls, prompts_path=None: cls(llm, prompts=prompts)),
        )
        out_path = tmp_path / "out" / "digest.md"

        with pytest.raises(SystemExit) as excinfo:
            cli.main(
                [
                    "run",
                    "--input",
                    str(_write_items(tmp_path)),
                    "--date",
                    "2025-01-15",
                    "--window",
                    "--output",
                    str(out_path),
                ]
            )

        assert excinfo.value.code == 0
        assert out_path.read_text() == "The digest"
        # --window keeps only the item captured on 2025-01-15
        assert "[ITEM 2]" not in llm.prompts[0]
        assert llm.prompts[2].endswith(":: 2025-01-15 :: 1 :: 0 :: 1 :: solo")


class TestBadInput:
    def test_bad_date_exits_1(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["run", "--input", str(_write_items(tmp_path)), "--date", "15/01/2025"])
        assert excinfo.value.code == 1

    def test_invalid_items_file_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "items.json"
        path.write_text(json.dumps([{"bookmark_id": 1, "content_type": "video"}]))
        for command in ("run", "plan"):
            with pytest.raises(SystemExit) as excinfo:
                cli.main([command, "--input", str(path)])
            assert excinfo.value.code == 1

    def test_non_json_items_file_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "items.json"
        path.write_text("not json")
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["plan", "--input", str(path)])
        assert excinfo.value.code == 1
