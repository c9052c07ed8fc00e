"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE_DIR = Path(__file__).resolve().parent

# ── LLM ────────────────────────────────────────────────────────────────────
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
LLM_API_KEY: str = os.getenv("LLM_API_KEY", "")
LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4.1")
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "4000"))

# ── Map-reduce budgets ─────────────────────────────────────────────────────
# Per-batch budget leaves room for the prompt template and the model output.
MAX_TOKENS_PER_BATCH: int = int(os.getenv("DIGEST_MAX_TOKENS_PER_BATCH", "30000"))
MAX_INPUT_TOKENS: int = int(os.getenv("DIGEST_MAX_INPUT_TOKENS", "120000"))

# ── Prompts / output ───────────────────────────────────────────────────────
PROMPTS_PATH: Path = Path(
    os.getenv("DIGEST_PROMPTS_PATH", str(PACKAGE_DIR / "prompts.yml"))
)
OUTPUT_DIR: Path = Path(os.getenv("DIGEST_OUTPUT_DIR", str(PROJECT_ROOT / "out")))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


def llm_enabled() -> bool:
    """Return True when an API key for the completion provider is configured."""
    return bool(LLM_API_KEY)
