"""
Scoring strategies and their dispatch.

Every strategy exposes `kind` and `async execute(request)`. build_strategies()
wires one instance of each against a catalog; execute() dispatches by kind.
"""

import random
from typing import Dict, List, Optional

from ..catalog import GameCatalog
from ..errors import InvalidArgument
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.recommendation import GameCandidate, StrategyKind
from ..stores import BanditArmStore
from .bandit import BanditStrategy
from .base import Strategy, StrategyRequest
from .collaborative import CollaborativeFilteringStrategy
from .content_based import ContentBasedStrategy, GameFeatureSpace, game_similarity
from .trending import TrendingStrategy, trending_games

StrategyRegistry = Dict[StrategyKind, Strategy]


def build_strategies(
    catalog: GameCatalog,
    arms: BanditArmStore,
    config: RecommendationConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> StrategyRegistry:
    """One instance of each built-in strategy."""
    return {
        StrategyKind.COLLABORATIVE: CollaborativeFilteringStrategy(catalog, config),
        StrategyKind.CONTENT_BASED: ContentBasedStrategy(catalog, config),
        StrategyKind.TRENDING: TrendingStrategy(catalog, config),
        StrategyKind.BANDIT: BanditStrategy(catalog, arms, config, rng=rng),
    }


async def execute(
    registry: StrategyRegistry,
    kind: StrategyKind,
    request: StrategyRequest,
) -> List[GameCandidate]:
    """Run the strategy registered for `kind`."""
    strategy = registry.get(kind)
    if strategy is None:
        raise InvalidArgument(f"No strategy registered for {kind.value}")
    return await strategy.execute(request)


__all__ = [
    "BanditStrategy",
    "CollaborativeFilteringStrategy",
    "ContentBasedStrategy",
    "GameFeatureSpace",
    "Strategy",
    "StrategyRegistry",
    "StrategyRequest",
    "TrendingStrategy",
    "build_strategies",
    "execute",
    "game_similarity",
    "trending_games",
]
