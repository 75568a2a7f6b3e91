"""Tiered question answering over the portfolio corpus."""

from .service import AskService
from .streaming import stream_answer, stream_ndjson
from .tiers import LlmCorpusTier, LocalCorpusTier, VectorTier, tiers_for

__all__ = [
    "AskService",
    "stream_answer",
    "stream_ndjson",
    "LlmCorpusTier",
    "LocalCorpusTier",
    "VectorTier",
    "tiers_for",
]
