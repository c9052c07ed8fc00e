"""Exception hierarchy for digest generation."""

from __future__ import annotations


class DigestError(Exception):
    """Base error for every failure inside the narrative pipeline."""


class InputStarvationError(DigestError):
    """A stage received nothing to work on (no batches, no cluster summaries)."""


class CompletionError(DigestError):
    """The completion service call raised."""


class MalformedResponseError(DigestError):
    """The model answered, but the payload failed shape validation."""


class PayloadParseError(MalformedResponseError):
    """No JSON payload could be extracted from the model text."""


class DigestGenerationError(DigestError):
    """Raised by ``generate_digest``; wraps the stage failure as ``__cause__``."""
