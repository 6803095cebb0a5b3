"""
Game Recommendation Orchestration Engine

Single entry point for the engine package:
- models/: RecommendationConfig, Game, Player, PlayRecord, GameRecommendation
- strategies/: collaborative, content-based, trending, bandit
- stages/: hybrid fusion, orchestrator
- ledger / stores / batch: impressions, interaction outcomes, arm arena, batch runs
"""

from .batch import BatchGenerator, BatchReport, PlayerBatchResult
from .catalog import GameCatalog, InMemoryGameCatalog, load_profile
from .errors import (
    BatchInProgress,
    InvalidArgument,
    NotFound,
    PersistenceFailure,
    RecommendationError,
    StrategyTimeout,
    UpstreamUnavailable,
)
from .ledger import InteractionLedger
from .models.config import DEFAULT_CONFIG, RecommendationConfig, resolve_config
from .models.game import Game, PlayRecord, Player, PlayerProfile, build_profile
from .models.recommendation import (
    Algorithm,
    BanditArm,
    GameCandidate,
    GameRecommendation,
    InteractionType,
    RecommendationResult,
    RecommendationSource,
    ResultStatus,
    StrategyKind,
)
from .stages.fusion import fuse
from .stages.orchestrator import RecommendationOrchestrator, RecommendationPage
from .stores import (
    BanditArmStore,
    InMemoryBanditArmStore,
    InMemoryRecommendationStore,
    RecommendationStore,
    latest_generation,
)
from .utils.scores import calculate_confidence

__all__ = [
    "Algorithm",
    "BanditArm",
    "BanditArmStore",
    "BatchInProgress",
    "BatchGenerator",
    "BatchReport",
    "DEFAULT_CONFIG",
    "Game",
    "GameCandidate",
    "GameCatalog",
    "GameRecommendation",
    "InMemoryBanditArmStore",
    "InMemoryGameCatalog",
    "InMemoryRecommendationStore",
    "InteractionLedger",
    "InteractionType",
    "InvalidArgument",
    "NotFound",
    "PersistenceFailure",
    "PlayRecord",
    "Player",
    "PlayerBatchResult",
    "PlayerProfile",
    "RecommendationConfig",
    "RecommendationError",
    "RecommendationOrchestrator",
    "RecommendationPage",
    "RecommendationResult",
    "RecommendationSource",
    "RecommendationStore",
    "ResultStatus",
    "StrategyKind",
    "StrategyTimeout",
    "UpstreamUnavailable",
    "build_profile",
    "calculate_confidence",
    "fuse",
    "latest_generation",
    "load_profile",
    "resolve_config",
]
