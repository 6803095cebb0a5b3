"""
Score helpers: confidence calibration, normalization, and timeframe utilities.
"""

from datetime import timedelta
from typing import Dict, Optional

from ..errors import InvalidArgument
from ..models.config import DEFAULT_CONFIG, RecommendationConfig

TIMEFRAMES: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def confidence_key(algorithm: str) -> str:
    """Calibration bucket for an algorithm tag; trending and fallback share "default"."""
    if algorithm in ("hybrid", "collaborative", "content-based", "bandit"):
        return algorithm
    return "default"


def calculate_confidence(
    score: float,
    algorithm: str,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> float:
    """
    confidence = min(ceiling[algorithm], score * multiplier[algorithm]), floored at 0.

    Monotonic in score and never above the algorithm's ceiling.
    """
    key = confidence_key(algorithm)
    ceiling = config.confidence_ceilings[key]
    multiplier = config.confidence_multipliers[key]
    return round(max(0.0, min(ceiling, score * multiplier)), 6)


def normalize_by_max(scores: Dict[str, float]) -> Dict[str, float]:
    """Scale non-negative scores into [0, 1] by the maximum value."""
    if not scores:
        return {}
    top = max(scores.values())
    if top <= 0:
        return {k: 0.0 for k in scores}
    return {k: max(0.0, v) / top for k, v in scores.items()}


def normalize_min_max(scores: Dict[str, float]) -> Dict[str, float]:
    """Min-max scale into [0, 1]. All-equal inputs map to 1.0."""
    if not scores:
        return {}
    low = min(scores.values())
    high = max(scores.values())
    if high - low <= 1e-12:
        return {k: 1.0 for k in scores}
    return {k: (v - low) / (high - low) for k, v in scores.items()}


def parse_timeframe(timeframe: Optional[str]) -> timedelta:
    """Window length for a timeframe tag (1h, 24h, 7d, 30d)."""
    if timeframe not in TIMEFRAMES:
        raise InvalidArgument(
            f"timeframe must be one of {', '.join(TIMEFRAMES)}, got {timeframe!r}"
        )
    return TIMEFRAMES[timeframe]
