"""Pure helpers: config merge and recommendation response formatting."""

from typing import Any, Dict, Optional

from recommender.models.recommendation import GameRecommendation

from .models import RecommendationHistoryItem, RecommendationItem


def deep_merge(base: dict, updates: dict) -> dict:
    """Deep merge updates into base dict, returning new dict."""
    result = base.copy()
    for key, value in updates.items():
        if key.startswith("_"):
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def to_recommendation_item(
    rec: GameRecommendation,
    game_metadata: Optional[Dict[str, Any]] = None,
) -> RecommendationItem:
    """Convert a stored GameRecommendation to its API shape."""
    return RecommendationItem(
        recommendation_id=rec.id,
        game_id=rec.game_id,
        score=rec.score,
        position=rec.position,
        reason=rec.reason,
        category=rec.category,
        confidence=rec.confidence,
        features=rec.features,
        game_metadata=game_metadata,
    )


def to_history_item(rec: GameRecommendation) -> RecommendationHistoryItem:
    return RecommendationHistoryItem(
        **to_recommendation_item(rec).model_dump(),
        player_id=rec.player_id,
        algorithm=rec.algorithm,
        context=rec.context,
        source=rec.source.value,
        created_at=rec.created_at,
        is_clicked=rec.is_clicked,
        is_played=rec.is_played,
        is_dismissed=rec.is_dismissed,
    )
