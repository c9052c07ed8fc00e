"""Map → cluster → reduce narrative pipeline for daily bookmark digests."""

from dailybrief.pipeline import MapReduceDigestService

__all__ = ["MapReduceDigestService"]
