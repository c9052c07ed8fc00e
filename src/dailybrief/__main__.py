"""CLI entry-point: ``python -m dailybrief run`` / ``python -m dailybrief plan``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter

from dailybrief import config
from dailybrief.errors import DigestError
from dailybrief.models import DigestContentItem, DigestNarrativeContext
from dailybrief.pipeline import MapReduceDigestService, count_formats, setup_logging
from dailybrief.tokens import batch_summaries, calculate_batch_size, get_token_stats
from dailybrief.window import (
    format_digest_date,
    get_digest_date_range,
    items_in_window,
    parse_digest_date,
    window_for_date,
)

logger = logging.getLogger(__name__)

_ITEMS_ADAPTER = TypeAdapter(list[DigestContentItem])


def load_items(path: Path) -> list[DigestContentItem]:
    """Read a JSON array of content items."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    return _ITEMS_ADAPTER.validate_python(raw)


def _resolve_date(date_arg: str | None) -> str:
    if date_arg:
        return format_digest_date(parse_digest_date(date_arg))
    _start, _end, digest_date = get_digest_date_range()
    return format_digest_date(digest_date)


def _run(args: argparse.Namespace) -> int:
    try:
        items = load_items(args.input)
        digest_date = _resolve_date(args.date)
    except ValueError as exc:
        logger.error("Bad input: %s", exc)
        return 1

    if args.window:
        start, end = window_for_date(parse_digest_date(digest_date))
        items = items_in_window(items, start, end)

    if not items:
        logger.error("No content items to digest for %s", digest_date)
        return 1

    if not config.llm_enabled():
        logger.error("LLM not configured. Set LLM_API_KEY in .env")
        return 1

    audio_count, article_count = count_formats(items)
    service = MapReduceDigestService.from_config(prompts_path=args.prompts)
    try:
        digest = service.generate_digest(
            items,
            DigestNarrativeContext(
                digest_date=digest_date,
                total_items=len(items),
                audio_count=audio_count,
                article_count=article_count,
            ),
        )
    except DigestError as exc:
        logger.error("%s", exc)
        return 1

    if args.stdout:
        sys.stdout.write(digest + "\n")
        return 0

    out_path: Path = args.output or config.OUTPUT_DIR / f"digest-{digest_date}.md"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(digest, encoding="utf-8")
    logger.info("Digest written to %s", out_path)
    return 0


def _plan(args: argparse.Namespace) -> int:
    """Show the token budget and batch plan without calling the model."""
    try:
        items = load_items(args.input)
    except ValueError as exc:
        logger.error("Bad input: %s", exc)
        return 1
    summaries = [item.summary for item in items]
    budget = args.budget or config.MAX_TOKENS_PER_BATCH

    stats = get_token_stats(summaries)
    batches = batch_summaries(summaries, budget)

    print(f"Items:            {stats.count}")
    print(
        f"Tokens (est.):    total={stats.total_tokens} avg={stats.avg_tokens} "
        f"min={stats.min_tokens} max={stats.max_tokens}"
    )
    print(f"Budget per batch: {budget}")
    print(f"Suggested size:   {calculate_batch_size(summaries, budget)}")
    print(f"Batches:          {len(batches)}")
    for idx, batch in enumerate(batches):
        print(f"  [{idx}] {len(batch)} items")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="dailybrief",
        description="Narrated daily digest from summarised bookmarks.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL.")
    sub = parser.add_subparsers(dest="command")

    # ── run ────────────────────────────────────────────────────────────
    run_parser = sub.add_parser("run", help="Generate a digest.")
    run_parser.add_argument(
        "--input", type=Path, required=True, help="JSON file with content items."
    )
    run_parser.add_argument(
        "--date", default=None, help="Digest date YYYY-MM-DD (default: yesterday)."
    )
    run_parser.add_argument(
        "--window",
        action="store_true",
        help="Only include items captured on the digest date.",
    )
    run_parser.add_argument(
        "--prompts", type=Path, default=None, help="Alternative prompts.yml."
    )
    run_parser.add_argument("--output", type=Path, default=None, help="Output file.")
    run_parser.add_argument(
        "--stdout", action="store_true", help="Print the digest instead of writing it."
    )

    # ── plan ───────────────────────────────────────────────────────────
    plan_parser = sub.add_parser(
        "plan",
        help="Show token estimates and map batches without calling the model.",
    )
    plan_parser.add_argument(
        "--input", type=Path, required=True, help="JSON file with content items."
    )
    plan_parser.add_argument(
        "--budget", type=int, default=None, help="Max estimated tokens per batch."
    )

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "run":
        sys.exit(_run(args))
    elif args.command == "plan":
        sys.exit(_plan(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
