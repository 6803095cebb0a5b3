"""Data models for the recommendation engine."""

from .config import DEFAULT_CONFIG, RecommendationConfig, resolve_config
from .game import (
    Game,
    PlayRecord,
    Player,
    PlayerProfile,
    build_profile,
    ensure_games,
    ensure_plays,
)
from .recommendation import (
    Algorithm,
    BanditArm,
    GameCandidate,
    GameRecommendation,
    InteractionType,
    RecommendationResult,
    RecommendationSource,
    ResultStatus,
    SimilarGame,
    StrategyKind,
    TrendingGame,
)

__all__ = [
    "DEFAULT_CONFIG",
    "Algorithm",
    "BanditArm",
    "Game",
    "GameCandidate",
    "GameRecommendation",
    "InteractionType",
    "PlayRecord",
    "Player",
    "PlayerProfile",
    "RecommendationConfig",
    "RecommendationResult",
    "RecommendationSource",
    "ResultStatus",
    "SimilarGame",
    "StrategyKind",
    "TrendingGame",
    "build_profile",
    "ensure_games",
    "ensure_plays",
    "resolve_config",
]
