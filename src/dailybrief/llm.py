"""Completion-service client used by every LLM stage of the digest."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from dailybrief.errors import CompletionError
from dailybrief.models import Completion
from dailybrief.tokens import estimate_token_count, validate_context_window

logger = logging.getLogger(__name__)


class CompletionService(Protocol):
    """Anything that turns a prompt into a :class:`Completion`."""

    def invoke(self, prompt: str) -> Completion: ...


class OpenAICompletionClient:
    """Provider-agnostic completion client. Ships with OpenAI."""

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        system_prompt: str = "",
    ) -> None:
        if not api_key:
            raise ValueError("LLM_API_KEY is required but was empty.")

        self._provider = provider.lower()
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt
        self._client: Any = None

        if self._provider == "openai":
            from openai import OpenAI

            self._client = OpenAI(api_key=api_key)
        else:
            raise ValueError(f"Unknown LLM_PROVIDER '{provider}'")

    # ── public ──────────────────────────────────────────────────────────

    def invoke(self, prompt: str) -> Completion:
        """Send one chat-completion request and return its text."""
        messages: list[dict[str, str]] = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.debug(
            "Invoking %s/%s (%d prompt chars)", self._provider, self._model, len(prompt)
        )
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            raise CompletionError(
                f"{self._provider} completion failed: {exc}"
            ) from exc

        return Completion(content=resp.choices[0].message.content or "")


def complete(
    service: CompletionService,
    prompt: str,
    *,
    label: str,
    max_input_tokens: int | None = None,
) -> str:
    """Invoke *service* once and return the response text.

    Any exception from the service surfaces as :class:`CompletionError`.
    """
    if max_input_tokens and not validate_context_window(prompt, max_input_tokens):
        logger.warning(
            "%s prompt is ~%d tokens, over the %d-token input budget",
            label,
            estimate_token_count(prompt),
            max_input_tokens,
        )

    try:
        result = service.invoke(prompt)
    except CompletionError:
        raise
    except Exception as exc:
        raise CompletionError(f"{label} completion failed: {exc}") from exc

    content = getattr(result, "content", result)
    return "" if content is None else str(content)
