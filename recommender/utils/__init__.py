"""Shared utilities for scoring, similarity, and timeframes."""

from .scores import (
    TIMEFRAMES,
    calculate_confidence,
    confidence_key,
    normalize_by_max,
    normalize_min_max,
    parse_timeframe,
)
from .similarity import clamp_unit, cosine_similarity, cosine_similarity_matrix

__all__ = [
    "TIMEFRAMES",
    "calculate_confidence",
    "clamp_unit",
    "confidence_key",
    "cosine_similarity",
    "cosine_similarity_matrix",
    "normalize_by_max",
    "normalize_min_max",
    "parse_timeframe",
]
