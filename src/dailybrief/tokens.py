"""Token estimation and greedy batching for the map phase.

Uses the character approximation OpenAI suggests for English text:
one token is roughly four characters.
"""

from __future__ import annotations

import math

from pydantic import BaseModel


class TokenStats(BaseModel):
    total_tokens: int = 0
    avg_tokens: int = 0
    min_tokens: int = 0
    max_tokens: int = 0
    count: int = 0


def estimate_token_count(text: str) -> int:
    """Estimate the token cost of *text*; 0 for empty input."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def estimate_total_tokens(texts: list[str]) -> int:
    return sum(estimate_token_count(t) for t in texts)


def validate_context_window(
    text: str,
    max_tokens: int,
    reserved_tokens: int = 1000,
) -> bool:
    """Return True if *text* fits in *max_tokens* minus the reserved headroom."""
    return estimate_token_count(text) <= max_tokens - reserved_tokens


def calculate_batch_size(
    texts: list[str],
    max_tokens_per_batch: int,
    overhead_tokens: int = 500,
) -> int:
    """Suggest how many average-sized texts fit in one batch.

    Always at least 1 and never more than ``len(texts)``.
    """
    if not texts:
        return 0

    available = max_tokens_per_batch - overhead_tokens
    avg = estimate_total_tokens(texts) / len(texts)
    if avg <= 0:
        return len(texts)

    optimal = math.floor(available / avg)
    return max(1, min(optimal, len(texts)))


def batch_summaries(texts: list[str], max_tokens_per_batch: int) -> list[list[str]]:
    """Split *texts* into order-preserving batches under the token budget.

    A text that alone exceeds the budget becomes its own batch; nothing is
    split or dropped.
    """
    batches: list[list[str]] = []
    current: list[str] = []
    current_tokens = 0

    for text in texts:
        tokens = estimate_token_count(text)
        if current and current_tokens + tokens > max_tokens_per_batch:
            batches.append(current)
            current = []
            current_tokens = 0
        current.append(text)
        current_tokens += tokens

    if current:
        batches.append(current)

    return batches


def get_token_stats(texts: list[str]) -> TokenStats:
    if not texts:
        return TokenStats()

    counts = [estimate_token_count(t) for t in texts]
    total = sum(counts)
    return TokenStats(
        total_tokens=total,
        avg_tokens=round(total / len(counts)),
        min_tokens=min(counts),
        max_tokens=max(counts),
        count=len(counts),
    )
